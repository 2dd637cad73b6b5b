"""Tests for rule declarations and the rule registry."""

from threading import Thread

from dataknobs_rules import RuleDeclaration, RuleOptions, RuleRegistry


class Account:
    pass


class Profile:
    pass


class TestRuleDeclaration:
    """Test RuleDeclaration accessors."""

    def test_constraint_defaults(self):
        """Test positional constraints fall back to defaults."""
        declaration = RuleDeclaration(Account, "name", "Length", (3, None))
        assert declaration.constraint(0) == 3
        assert declaration.constraint(1, 99) == 99
        assert declaration.constraint(5, "default") == "default"

    def test_override_message(self):
        """Test the declaration message wins over the options message."""
        assert RuleDeclaration(Account, "a", "Min").override_message is None
        assert RuleDeclaration(
            Account, "a", "Min", options=RuleOptions(message="from options")
        ).override_message == "from options"
        assert RuleDeclaration(
            Account, "a", "Min", message="direct", options=RuleOptions(message="from options")
        ).override_message == "direct"

    def test_each_and_priority(self):
        """Test each and priority default when options are missing."""
        plain = RuleDeclaration(Account, "a", "Min")
        assert plain.each is False
        assert plain.priority == 0

        tuned = RuleDeclaration(Account, "a", "Min", options=RuleOptions(each=True, priority=5))
        assert tuned.each is True
        assert tuned.priority == 5


class TestRuleRegistry:
    """Test RuleRegistry storage and lookup."""

    def test_unknown_type_has_no_rules(self):
        """Test lookup for a type without declarations."""
        registry = RuleRegistry()
        assert registry.get_rules(Account) == []
        assert Account not in registry

    def test_preserves_registration_order(self):
        """Test declarations come back in the order they were added."""
        registry = RuleRegistry()
        first = RuleDeclaration(Account, "age", "IsNumber")
        second = RuleDeclaration(Account, "name", "IsString")
        third = RuleDeclaration(Account, "age", "Min", (18,))
        for declaration in (first, second, third):
            registry.add_rule(declaration)

        assert registry.get_rules(Account) == [first, second, third]
        assert registry.property_keys(Account) == ["age", "name"]

    def test_duplicates_are_kept(self):
        """Test the same rule twice is stored twice."""
        registry = RuleRegistry()
        declaration = RuleDeclaration(Account, "age", "Min", (18,))
        registry.add_rule(declaration)
        registry.add_rule(declaration)
        assert registry.count(Account) == 2

    def test_owner_identity(self):
        """Test subclasses do not see the rules of their base."""

        class Premium(Account):
            pass

        registry = RuleRegistry()
        registry.add_rule(RuleDeclaration(Account, "age", "Min", (18,)))
        assert registry.get_rules(Premium) == []
        assert registry.owners() == [Account]

    def test_returned_list_is_a_copy(self):
        """Test callers cannot mutate the stored declarations."""
        registry = RuleRegistry()
        registry.add_rule(RuleDeclaration(Profile, "bio", "IsString"))
        registry.get_rules(Profile).clear()
        assert registry.count(Profile) == 1

    def test_non_string_keys(self):
        """Test any hashable works as a property key."""
        registry = RuleRegistry()
        registry.add_rule(RuleDeclaration(Profile, 7, "IsString"))
        registry.add_rule(RuleDeclaration(Profile, ("a", "b"), "IsString"))
        assert registry.property_keys(Profile) == [7, ("a", "b")]

    def test_thread_safety(self):
        """Test concurrent registration loses nothing."""
        registry = RuleRegistry()

        def register_items(start, end):
            for i in range(start, end):
                registry.add_rule(RuleDeclaration(Account, f"field{i}", "IsString"))

        threads = [
            Thread(target=register_items, args=(0, 100)),
            Thread(target=register_items, args=(100, 200)),
            Thread(target=register_items, args=(200, 300)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert registry.count() == 300
