"""Compilation of rule declarations into per-type execution plans.

A plan is built once per owner type and reused for every instance of it:

1. Declarations are grouped by property, in first-seen order.
2. ``IsOptional`` marks the property as skippable when its value is absent
   and is not compiled into an action.
3. The remaining declarations are stably sorted by descending priority and
   each one becomes a ``RuleAction``: a predicate check (optionally applied
   to every element) or a recursive ``ValidateNested`` check.
4. A ``PropertyExecutor`` runs the actions against an instance and emits at
   most one ``ValidationError`` for the property.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any, Callable

from .result import DEFAULT_OPTIONS, ValidationError, ValidatorOptions
from .rules import IS_OPTIONAL, VALIDATE_NESTED, RuleDeclaration, RuleRegistry
from .strategies import Strategy, StrategyRegistry
from .values import display_key, is_absent, is_composite, is_real_number, is_sequence, resolve_value

logger = logging.getLogger(__name__)


@dataclass
class ActionContext:
    """Mutable state shared by the actions of one property during one run."""

    validate_nested: Callable[[Any], list[ValidationError]]
    options: ValidatorOptions = DEFAULT_OPTIONS
    failed_rules: dict[str, list[str]] = field(default_factory=dict)
    children: list[ValidationError] = field(default_factory=list)
    should_stop: bool = False

    @property
    def abort_early(self) -> bool:
        return self.options.abort_early

    def record(self, rule_type: str, message: str) -> None:
        """Record a failure message for a rule type."""
        self.failed_rules.setdefault(rule_type, []).append(message)
        self.should_stop = True

    def add_children(self, errors: list[ValidationError]) -> None:
        self.children.extend(errors)
        self.should_stop = True


RuleAction = Callable[[Any, ActionContext], None]


@dataclass(frozen=True)
class PropertyExecutor:
    """Runs the compiled actions of one property against an instance."""

    property_key: Hashable
    property_name: str
    is_optional: bool
    location: str | None
    actions: tuple[RuleAction, ...]

    def execute(
        self,
        instance: Any,
        validate_nested: Callable[[Any], list[ValidationError]],
        options: ValidatorOptions = DEFAULT_OPTIONS,
    ) -> ValidationError | None:
        """Validate this property of an instance.

        Args:
            instance: Object owning the property
            validate_nested: Entry point used for nested values
            options: Caller options

        Returns:
            The property's error, or None when every rule passed
        """
        value = resolve_value(instance, self.property_key)
        if self.is_optional and is_absent(value):
            return None

        context = ActionContext(validate_nested=validate_nested, options=options)
        for action in self.actions:
            action(value, context)
            if options.abort_early and (context.should_stop or context.failed_rules):
                break

        if not context.failed_rules and not context.children:
            return None
        return ValidationError(
            property=self.property_name,
            at=self.location,
            failed_rules=context.failed_rules or None,
            children=context.children or None,
        )


@dataclass(frozen=True)
class CompiledPlan:
    """Ordered property executors for one owner type."""

    owner: type
    executors: tuple[PropertyExecutor, ...]

    def __len__(self) -> int:
        return len(self.executors)

    def __iter__(self):
        return iter(self.executors)


class PlanCompiler:
    """Builds ``CompiledPlan``s from a rule registry and a strategy registry.

    Compilation is a pure function of the registries' current contents; the
    caching of plans belongs to the ``Validator``.

    Args:
        rules: Registry holding the declarations
        strategies: Registry holding the rule strategies
    """

    def __init__(self, rules: RuleRegistry, strategies: StrategyRegistry):
        self.rules = rules
        self.strategies = strategies

    def compile(self, owner: type) -> CompiledPlan:
        """Compile the plan for an owner type.

        Args:
            owner: Exact owner type

        Returns:
            CompiledPlan with one executor per declared property
        """
        grouped: dict[Hashable, list[RuleDeclaration]] = {}
        for declaration in self.rules.get_rules(owner):
            if not isinstance(declaration.property_key, Hashable):
                logger.warning(
                    f"Property key {declaration.property_key!r} on {owner.__qualname__} "
                    f"is not hashable, rule ignored"
                )
                continue
            grouped.setdefault(declaration.property_key, []).append(declaration)

        executors = tuple(
            self._compile_property(owner, key, declarations)
            for key, declarations in grouped.items()
        )
        logger.debug(f"Compiled plan for {owner.__qualname__} with {len(executors)} properties")
        return CompiledPlan(owner=owner, executors=executors)

    def _compile_property(
        self,
        owner: type,
        key: Hashable,
        declarations: list[RuleDeclaration],
    ) -> PropertyExecutor:
        name = display_key(key)
        well_formed = []
        for declaration in declarations:
            if not isinstance(declaration.rule_type, str):
                logger.warning(
                    f"Rule type {declaration.rule_type!r} on {owner.__qualname__}.{name} "
                    f"is not a string, rule ignored"
                )
                continue
            well_formed.append(declaration)

        is_optional = any(d.rule_type == IS_OPTIONAL for d in well_formed)
        active = sorted(
            (d for d in well_formed if d.rule_type != IS_OPTIONAL),
            key=lambda d: -_sort_priority(owner, name, d),
        )
        location = next((d.at for d in active if d.at), None)

        actions: list[RuleAction] = []
        for declaration in active:
            if declaration.rule_type == VALIDATE_NESTED:
                actions.append(compile_nested(declaration, name))
                continue

            strategy = self.strategies.get(declaration.rule_type)
            if strategy is None:
                logger.warning(
                    f"Unknown rule type '{declaration.rule_type}' on "
                    f"{owner.__qualname__}.{name}, rule ignored"
                )
                continue
            actions.append(compile_predicate(declaration, strategy, name))

        return PropertyExecutor(
            property_key=key,
            property_name=name,
            is_optional=is_optional,
            location=location,
            actions=tuple(actions),
        )


def _sort_priority(owner: type, name: str, declaration: RuleDeclaration) -> float:
    priority = declaration.priority
    if is_real_number(priority) and not math.isnan(priority):
        return priority
    logger.warning(
        f"Priority {priority!r} of '{declaration.rule_type}' on {owner.__qualname__}.{name} "
        f"is not a number, using 0"
    )
    return 0


def compile_nested(declaration: RuleDeclaration, name: str) -> RuleAction:
    """Build the action validating a nested value, or each nested element."""
    each = declaration.each

    def validate_nested(value: Any, context: ActionContext) -> None:
        if is_absent(value):
            return

        if each and is_sequence(value):
            for index, element in enumerate(value):
                if not is_composite(element):
                    continue
                nested = context.validate_nested(element)
                if nested:
                    context.add_children([
                        ValidationError(property=f"{name}[{index}]", index=index, children=nested)
                    ])
                    if context.abort_early:
                        return
        elif is_composite(value):
            nested = context.validate_nested(value)
            if nested:
                context.add_children(nested)

    return validate_nested


def compile_predicate(declaration: RuleDeclaration, strategy: Strategy, name: str) -> RuleAction:
    """Build the action applying a strategy once, or to each element."""
    rule_type = declaration.rule_type
    override = declaration.override_message
    each = declaration.each

    def evaluate(value: Any) -> tuple[str | None, bool]:
        try:
            return strategy(value, declaration, name), False
        except Exception as e:
            logger.warning(f"Strategy '{rule_type}' raised while validating {name}: {e!s}")
            return f"Internal validation error: {e!s}", True

    def check(value: Any, context: ActionContext) -> None:
        if each and is_sequence(value):
            for index, element in enumerate(value):
                message, faulted = evaluate(element)
                if message is None:
                    continue
                if override is not None and not faulted:
                    context.record(rule_type, f"{override} (index: {index})")
                else:
                    context.record(rule_type, f"{message} (at index {index})")
                if context.abort_early:
                    return
            return

        message, faulted = evaluate(value)
        if message is not None:
            context.record(rule_type, override if override is not None and not faulted else message)

    return check
