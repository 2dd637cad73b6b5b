"""Declarative, per-property rule validation.

Rules are declared against the properties of a class, compiled once per
class into an execution plan, and run against instances to produce a
structured error report instead of a boolean.

- Predicate rules (type checks, bounds, patterns, custom callables)
- ``each`` rules applied to every element of a sequence
- Nested validation of composite values, recursively
- Optional properties, rule priorities and abort-early runs
- Failing predicates are isolated and reported, never raised

Example:
    ```python
    from typing import Annotated
    from dataknobs_rules import validated, validate, IsNumber, Min

    @validated
    class Person:
        age: Annotated[int, IsNumber(), Min(18)]

    person = Person()
    person.age = 15
    [e.to_dict() for e in validate(person)]
    # [{'property': 'age', 'at': '...', 'failedRules': {'Min': ['age must be at least 18']}}]
    ```
"""

from __future__ import annotations

from collections.abc import Hashable

from .compiler import ActionContext, CompiledPlan, PlanCompiler, PropertyExecutor
from .declarations import (
    ArrayMaxSize,
    ArrayMinSize,
    Custom,
    IsArray,
    IsBoolean,
    IsEmail,
    IsInt,
    IsNumber,
    IsOptional,
    IsPositive,
    IsString,
    Length,
    Matches,
    Max,
    Min,
    Rule,
    RuleSpec,
    ValidateNested,
    declare,
    validated,
)
from .exceptions import ConfigurationError, RulesError, ValidationException
from .factory import RuleSetFactory, load_rules, rule_set_factory
from .functions import assert_valid, check, validate
from .result import ValidationError, ValidatorOptions
from .rules import RuleDeclaration, RuleOptions, RuleRegistry, rule_registry
from .shaping import InstanceShaper, to_instance
from .strategies import Strategy, StrategyRegistry, strategy_registry
from .validator import Validator


def add_rule(declaration: RuleDeclaration) -> None:
    """Append a declaration to the shared rule registry."""
    rule_registry.add_rule(declaration)


def get_rules(owner: type) -> list[RuleDeclaration]:
    """Declarations of an owner type in the shared rule registry."""
    return rule_registry.get_rules(owner)


def get_allowed_keys(owner: type) -> set[Hashable]:
    """Property keys declared on an owner type in the shared rule registry."""
    return set(rule_registry.property_keys(owner))


def register_strategy(rule_type: str, strategy: Strategy) -> None:
    """Register (or overwrite) a strategy in the shared strategy registry."""
    strategy_registry.register(rule_type, strategy)


__all__ = [
    # Engine
    "Validator",
    "validate",
    "check",
    "assert_valid",
    "ValidatorOptions",
    "ValidationError",
    # Registries
    "RuleDeclaration",
    "RuleOptions",
    "RuleRegistry",
    "rule_registry",
    "add_rule",
    "get_rules",
    "get_allowed_keys",
    "Strategy",
    "StrategyRegistry",
    "strategy_registry",
    "register_strategy",
    # Compilation
    "PlanCompiler",
    "CompiledPlan",
    "PropertyExecutor",
    "ActionContext",
    # Declarations
    "validated",
    "declare",
    "RuleSpec",
    "Rule",
    "IsString",
    "IsNumber",
    "IsBoolean",
    "IsArray",
    "IsPositive",
    "IsInt",
    "IsEmail",
    "Min",
    "Max",
    "Length",
    "Matches",
    "ArrayMinSize",
    "ArrayMaxSize",
    "Custom",
    "IsOptional",
    "ValidateNested",
    # Shaping
    "InstanceShaper",
    "to_instance",
    # Configuration
    "RuleSetFactory",
    "rule_set_factory",
    "load_rules",
    # Exceptions
    "RulesError",
    "ValidationException",
    "ConfigurationError",
]
