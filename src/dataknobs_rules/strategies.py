"""Rule strategies: the predicates implementing each rule type.

A strategy has the signature ``(value, rule, property_name) -> str | None``
and returns ``None`` when the value satisfies the rule, otherwise a default
failure message. Strategies never assume the shape of ``value`` and fail
closed for anything unexpected, including ``None`` and missing values.

New rule types are added by registering a strategy under a new name:

    ```python
    from dataknobs_rules import register_strategy

    def is_slug(value, rule, prop):
        if isinstance(value, str) and SLUG.fullmatch(value):
            return None
        return f"{prop} must be a slug"

    register_strategy("IsSlug", is_slug)
    ```
"""

from __future__ import annotations

import logging
import math
import re
import threading
from re import Pattern as RegexPattern
from typing import TYPE_CHECKING, Any, Callable, Dict

from .values import is_finite_number, is_real_number, is_sequence

if TYPE_CHECKING:
    from .rules import RuleDeclaration

logger = logging.getLogger(__name__)

Strategy = Callable[[Any, "RuleDeclaration", str], "str | None"]

EMAIL_REGEX = re.compile(
    r"[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*"
)


def is_string(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    return None if isinstance(value, str) else f"{prop} must be a string"


def is_number(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    return None if is_finite_number(value) else f"{prop} must be a valid number"


def is_boolean(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    return None if isinstance(value, bool) else f"{prop} must be a boolean"


def is_array(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    return None if is_sequence(value) else f"{prop} must be an array"


def is_positive(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    if is_real_number(value) and value > 0:
        return None
    return f"{prop} must be a positive number"


def is_int(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    """Integral numbers pass, including floats without a fractional part."""
    if isinstance(value, int) and not isinstance(value, bool):
        return None
    if is_finite_number(value) and float(value).is_integer():
        return None
    return f"{prop} must be an integer"


def min_value(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    minimum = rule.constraint(0, 0)
    if not is_real_number(minimum):
        return f"{prop} validation configuration error"
    if is_real_number(value) and value >= minimum:
        return None
    return f"{prop} must be at least {minimum}"


def max_value(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    maximum = rule.constraint(0, 0)
    if not is_real_number(maximum):
        return f"{prop} validation configuration error"
    if is_real_number(value) and value <= maximum:
        return None
    return f"{prop} must be at most {maximum}"


def length(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    """Inclusive string length bounds; the upper bound may be omitted."""
    if not isinstance(value, str):
        return f"{prop} must be a string"

    minimum = rule.constraint(0, 0)
    maximum = rule.constraint(1, math.inf)

    if len(value) < minimum or len(value) > maximum:
        if maximum == math.inf:
            return f"{prop} must be longer than or equal to {minimum} characters"
        return f"{prop} must be between {minimum} and {maximum} characters"
    return None


def matches(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    """Regular expression search; a constraint that is not a pattern is a failure."""
    if not isinstance(value, str):
        return f"{prop} must be a string"

    pattern = rule.constraint(0)
    if isinstance(pattern, str):
        try:
            pattern = re.compile(pattern)
        except re.error:
            return f"{prop} validation configuration error"
    if not isinstance(pattern, RegexPattern):
        return f"{prop} validation configuration error"

    return None if pattern.search(value) else f"{prop} format is invalid"


def is_email(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    if isinstance(value, str) and EMAIL_REGEX.fullmatch(value):
        return None
    return f"{prop} must be a valid email address"


def array_min_size(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    if not is_sequence(value):
        return f"{prop} must be an array"
    minimum = rule.constraint(0, 0)
    if len(value) >= minimum:
        return None
    return f"{prop} must contain at least {minimum} elements"


def array_max_size(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    if not is_sequence(value):
        return f"{prop} must be an array"
    maximum = rule.constraint(0, math.inf)
    if len(value) <= maximum:
        return None
    return f"{prop} must contain no more than {maximum} elements"


def custom(value: Any, rule: RuleDeclaration, prop: str) -> str | None:
    """Run a caller-supplied predicate; exceptions surface to the executor."""
    validator = rule.constraint(0)
    if not callable(validator):
        return f"{prop} validation configuration error"
    return None if validator(value) else f"{prop} failed custom validation"


BUILTIN_STRATEGIES: Dict[str, Strategy] = {
    "IsString": is_string,
    "IsNumber": is_number,
    "IsBoolean": is_boolean,
    "IsArray": is_array,
    "IsPositive": is_positive,
    "IsInt": is_int,
    "Min": min_value,
    "Max": max_value,
    "Length": length,
    "Matches": matches,
    "IsEmail": is_email,
    "ArrayMinSize": array_min_size,
    "ArrayMaxSize": array_max_size,
    "Custom": custom,
}


class StrategyRegistry:
    """Mutable mapping from rule type name to strategy.

    Registering a name that already exists overwrites it and logs a
    warning; it is never an error.

    Args:
        name: Name for this registry instance
        include_builtins: Start with the built-in strategies
    """

    def __init__(self, name: str = "strategies", include_builtins: bool = True):
        self._name = name
        self._strategies: Dict[str, Strategy] = dict(BUILTIN_STRATEGIES) if include_builtins else {}
        self._lock = threading.RLock()

    @property
    def name(self) -> str:
        return self._name

    def register(self, rule_type: str, strategy: Strategy) -> None:
        """Register a strategy for a rule type.

        Args:
            rule_type: Rule type name used in declarations
            strategy: Predicate implementing the rule
        """
        with self._lock:
            if rule_type in self._strategies:
                logger.warning(f"Strategy '{rule_type}' is being overwritten in {self._name}")
            self._strategies[rule_type] = strategy

    def get(self, rule_type: str) -> Strategy | None:
        """Look up the strategy for a rule type, None when unknown."""
        with self._lock:
            return self._strategies.get(rule_type)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._strategies)

    def __contains__(self, rule_type: str) -> bool:
        with self._lock:
            return rule_type in self._strategies


# Shared registry used by the default engine
strategy_registry = StrategyRegistry("default")
