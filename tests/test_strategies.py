"""Tests for the built-in strategies and the strategy registry."""

import logging
import math
import re

import pytest

from dataknobs_rules import RuleDeclaration, StrategyRegistry
from dataknobs_rules.strategies import BUILTIN_STRATEGIES


class Owner:
    pass


def run(rule_type, value, *constraints):
    """Run a built-in strategy for property 'field'."""
    declaration = RuleDeclaration(Owner, "field", rule_type, constraints)
    return BUILTIN_STRATEGIES[rule_type](value, declaration, "field")


class TestTypeChecks:
    """Test the type-checking strategies."""

    def test_is_string(self):
        assert run("IsString", "text") is None
        assert run("IsString", "") is None
        assert run("IsString", 5) == "field must be a string"
        assert run("IsString", None) == "field must be a string"

    def test_is_number(self):
        """Test finite real numbers pass and booleans do not."""
        assert run("IsNumber", 5) is None
        assert run("IsNumber", 2.5) is None
        assert run("IsNumber", "5") == "field must be a valid number"
        assert run("IsNumber", True) == "field must be a valid number"
        assert run("IsNumber", math.nan) == "field must be a valid number"
        assert run("IsNumber", math.inf) == "field must be a valid number"

    def test_is_boolean(self):
        assert run("IsBoolean", False) is None
        assert run("IsBoolean", 0) == "field must be a boolean"

    def test_is_array(self):
        """Test sequences pass but text does not."""
        assert run("IsArray", [1, 2]) is None
        assert run("IsArray", ()) is None
        assert run("IsArray", "abc") == "field must be an array"
        assert run("IsArray", {"a": 1}) == "field must be an array"

    def test_is_positive(self):
        assert run("IsPositive", 0.1) is None
        assert run("IsPositive", 0) == "field must be a positive number"
        assert run("IsPositive", -3) == "field must be a positive number"
        assert run("IsPositive", "3") == "field must be a positive number"

    def test_is_int(self):
        """Test integral floats count as integers."""
        assert run("IsInt", 3) is None
        assert run("IsInt", 3.0) is None
        assert run("IsInt", 3.5) == "field must be an integer"
        assert run("IsInt", True) == "field must be an integer"
        assert run("IsInt", math.inf) == "field must be an integer"


class TestBounds:
    """Test Min, Max and Length."""

    def test_min_inclusive(self):
        assert run("Min", 18, 18) is None
        assert run("Min", 17, 18) == "field must be at least 18"
        assert run("Min", "20", 18) == "field must be at least 18"

    def test_min_defaults_to_zero(self):
        assert run("Min", 0) is None
        assert run("Min", -1) == "field must be at least 0"

    def test_max_inclusive(self):
        assert run("Max", 100, 100) is None
        assert run("Max", 101, 100) == "field must be at most 100"
        assert run("Max", None, 100) == "field must be at most 100"

    def test_bound_misconfiguration(self):
        assert run("Min", 5, "ten") == "field validation configuration error"

    def test_length(self):
        assert run("Length", "abc", 3, 10) is None
        assert run("Length", "ab", 3, 10) == "field must be between 3 and 10 characters"
        assert run("Length", "a" * 11, 3, 10) == "field must be between 3 and 10 characters"
        assert run("Length", 123, 3, 10) == "field must be a string"

    def test_length_unbounded_max(self):
        assert run("Length", "a" * 500, 3) is None
        assert run("Length", "ab", 3) == "field must be longer than or equal to 3 characters"
        assert run("Length", "ab", 3, None) == "field must be longer than or equal to 3 characters"


class TestPatterns:
    """Test Matches and IsEmail."""

    def test_matches_compiled_pattern(self):
        assert run("Matches", "abc123", re.compile(r"^[a-z]+\d+$")) is None
        assert run("Matches", "123abc", re.compile(r"^[a-z]+\d+$")) == "field format is invalid"

    def test_matches_string_pattern(self):
        assert run("Matches", "abc", r"^a") is None

    def test_matches_misconfiguration(self):
        """Test a missing or broken pattern is a failure, not an exception."""
        assert run("Matches", "abc") == "field validation configuration error"
        assert run("Matches", "abc", 42) == "field validation configuration error"
        assert run("Matches", "abc", "([") == "field validation configuration error"

    def test_matches_requires_string(self):
        assert run("Matches", 5, re.compile("5")) == "field must be a string"

    @pytest.mark.parametrize("address", ["user@example.com", "first.last+tag@sub.example.org"])
    def test_valid_emails(self, address):
        assert run("IsEmail", address) is None

    @pytest.mark.parametrize("address", ["not-an-email", "user@", "@example.com", "a b@example.com", None])
    def test_invalid_emails(self, address):
        assert run("IsEmail", address) == "field must be a valid email address"


class TestArraySize:
    """Test ArrayMinSize and ArrayMaxSize."""

    def test_min_size(self):
        assert run("ArrayMinSize", [1, 2], 2) is None
        assert run("ArrayMinSize", [1], 2) == "field must contain at least 2 elements"
        assert run("ArrayMinSize", "ab", 2) == "field must be an array"

    def test_max_size(self):
        assert run("ArrayMaxSize", [1, 2], 2) is None
        assert run("ArrayMaxSize", [1, 2, 3], 2) == "field must contain no more than 2 elements"
        assert run("ArrayMaxSize", list(range(1000))) is None


class TestCustom:
    """Test the Custom strategy."""

    def test_predicate_result(self):
        assert run("Custom", 4, lambda v: v % 2 == 0) is None
        assert run("Custom", 3, lambda v: v % 2 == 0) == "field failed custom validation"

    def test_missing_callable(self):
        assert run("Custom", 3) == "field validation configuration error"

    def test_exceptions_propagate_to_caller(self):
        """Test the strategy leaves exception handling to the executor."""
        with pytest.raises(ZeroDivisionError):
            run("Custom", 3, lambda v: v / 0)


class TestStrategyRegistry:
    """Test StrategyRegistry registration and lookup."""

    def test_builtins_available(self):
        registry = StrategyRegistry()
        for name in ("IsString", "Min", "Length", "Matches", "Custom", "ArrayMaxSize"):
            assert name in registry

    def test_without_builtins(self):
        registry = StrategyRegistry(include_builtins=False)
        assert registry.names() == []
        assert registry.get("IsString") is None

    def test_register_new_strategy(self, caplog):
        """Test registering a new name is silent."""
        registry = StrategyRegistry()

        def is_blue(value, rule, prop):
            return None if value == "blue" else f"{prop} must be blue"

        with caplog.at_level(logging.WARNING):
            registry.register("IsBlue", is_blue)

        assert registry.get("IsBlue") is is_blue
        assert caplog.records == []

    def test_overwrite_warns(self, caplog):
        """Test overwriting an existing name logs a warning and takes effect."""
        registry = StrategyRegistry("themes")

        def always_ok(value, rule, prop):
            return None

        with caplog.at_level(logging.WARNING):
            registry.register("IsString", always_ok)

        assert registry.get("IsString") is always_ok
        assert "Strategy 'IsString' is being overwritten in themes" in caplog.text

    def test_registries_are_independent(self):
        """Test registering in one registry does not affect another."""
        first = StrategyRegistry()
        second = StrategyRegistry()
        first.register("Extra", lambda value, rule, prop: None)
        assert "Extra" in first
        assert "Extra" not in second
