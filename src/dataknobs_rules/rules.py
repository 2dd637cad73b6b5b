"""Rule declarations and the append-only registry that stores them.

Declarations are attached to an owner type once, when the type is defined,
and live for the lifetime of the process. The registry is queried by the
exact owner type (identity, not subclass) and preserves registration order.

Example:
    ```python
    from dataknobs_rules.rules import RuleDeclaration, RuleOptions, RuleRegistry

    registry = RuleRegistry("users")
    registry.add_rule(RuleDeclaration(User, "age", "Min", (18,)))
    registry.add_rule(RuleDeclaration(User, "tags", "IsString", options=RuleOptions(each=True)))
    registry.get_rules(User)
    ```
"""

from __future__ import annotations

import threading
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any, Dict, List

IS_OPTIONAL = "IsOptional"
VALIDATE_NESTED = "ValidateNested"


@dataclass(frozen=True)
class RuleOptions:
    """Per-rule options.

    Attributes:
        message: Message overriding the strategy's default failure message
        each: Apply the rule to every element when the value is a sequence
        priority: Higher priorities run first within a property
    """

    message: str | None = None
    each: bool = False
    priority: float | None = None


@dataclass(frozen=True)
class RuleDeclaration:
    """A rule type bound to one property of an owner type."""

    owner: type
    property_key: Hashable
    rule_type: str
    constraints: tuple[Any, ...] = ()
    message: str | None = None
    options: RuleOptions | None = None
    at: str | None = None

    def constraint(self, index: int, default: Any = None) -> Any:
        """Positional constraint argument, or ``default`` when missing or None."""
        if index < len(self.constraints) and self.constraints[index] is not None:
            return self.constraints[index]
        return default

    @property
    def override_message(self) -> str | None:
        """Caller-supplied message, from the declaration or its options."""
        if self.message is not None:
            return self.message
        return self.options.message if self.options else None

    @property
    def each(self) -> bool:
        return bool(self.options and self.options.each)

    @property
    def priority(self) -> float:
        if self.options is None or self.options.priority is None:
            return 0
        return self.options.priority


class RuleRegistry:
    """Thread-safe, append-only store of rule declarations keyed by owner type.

    Duplicate declarations are kept: two ``Min`` rules on the same property
    both run.

    Args:
        name: Name for this registry instance (for logging/debugging)
    """

    def __init__(self, name: str = "rules"):
        self._name = name
        self._rules: Dict[type, List[RuleDeclaration]] = {}
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        """Get registry name."""
        return self._name

    def add_rule(self, declaration: RuleDeclaration) -> None:
        """Append a declaration for its owner type.

        Args:
            declaration: Declaration to store
        """
        with self._lock:
            self._rules.setdefault(declaration.owner, []).append(declaration)

    def get_rules(self, owner: type) -> list[RuleDeclaration]:
        """Get all declarations of an owner type in registration order.

        Args:
            owner: Exact owner type

        Returns:
            List of declarations, empty for unknown types
        """
        with self._lock:
            return list(self._rules.get(owner, ()))

    def property_keys(self, owner: type) -> list[Hashable]:
        """Distinct property keys declared on an owner type, in first-seen order."""
        keys: dict[Hashable, None] = {}
        for declaration in self.get_rules(owner):
            keys.setdefault(declaration.property_key, None)
        return list(keys)

    def owners(self) -> list[type]:
        """List all owner types that have declarations."""
        with self._lock:
            return list(self._rules)

    def count(self, owner: type | None = None) -> int:
        """Count declarations, for one owner type or overall."""
        with self._lock:
            if owner is not None:
                return len(self._rules.get(owner, ()))
            return sum(len(rules) for rules in self._rules.values())

    def __contains__(self, owner: type) -> bool:
        with self._lock:
            return owner in self._rules

    def __repr__(self) -> str:
        return f"RuleRegistry(name={self._name!r}, owners={len(self._rules)})"


# Shared registry used by the declaration helpers and the default engine
rule_registry = RuleRegistry("default")
