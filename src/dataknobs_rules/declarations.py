"""Declaring rules on classes.

Rules are attached to properties through ``typing.Annotated`` metadata and
registered by the ``validated`` class decorator, in annotation order:

    ```python
    from typing import Annotated
    from dataknobs_rules import validated, IsString, Length, IsNumber, Min, IsOptional

    @validated
    class User:
        username: Annotated[str, IsString(), Length(3, 10)]
        age: Annotated[int, IsNumber(), Min(18, message="too young")]
        nickname: Annotated[str | None, IsOptional(), IsString()] = None
    ```

Keys that cannot be annotated (non-string keys, rules added after the fact)
are declared with ``declare``. Every rule records the source location it was
created at, reported as ``at`` on errors.
"""

from __future__ import annotations

import inspect
import logging
import sys
from collections.abc import Hashable
from re import Pattern as RegexPattern
from typing import Annotated, Any, Callable, TypeVar, get_origin

from .exceptions import ConfigurationError
from .rules import IS_OPTIONAL, VALIDATE_NESTED, RuleDeclaration, RuleOptions, RuleRegistry, rule_registry

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=type)


def caller_location() -> str | None:
    """Source location (``file:line``) of the first frame outside this module."""
    frame = inspect.currentframe()
    try:
        while frame is not None and frame.f_globals.get("__name__") == __name__:
            frame = frame.f_back
        if frame is None:
            return None
        return f"{frame.f_code.co_filename}:{frame.f_lineno}"
    finally:
        del frame


class RuleSpec:
    """A rule waiting to be bound to a property.

    Args:
        *constraints: Positional arguments handed to the rule's strategy
        message: Message overriding the strategy's default
        each: Apply the rule to every element of a sequence value
        priority: Higher priorities run first within a property
    """

    rule_type: str = ""

    def __init__(
        self,
        *constraints: Any,
        message: str | None = None,
        each: bool = False,
        priority: float | None = None,
    ):
        self.constraints = constraints
        self.options = RuleOptions(message=message, each=each, priority=priority)
        self.at = caller_location()

    def declaration(self, owner: type, key: Hashable) -> RuleDeclaration:
        """Bind this rule to a property of an owner type."""
        return RuleDeclaration(
            owner=owner,
            property_key=key,
            rule_type=self.rule_type,
            constraints=self.constraints,
            options=self.options,
            at=self.at,
        )

    def __repr__(self) -> str:
        args = ", ".join(repr(c) for c in self.constraints)
        return f"{self.rule_type}({args})"


class Rule(RuleSpec):
    """A rule of any registered type, for strategies added at runtime.

    Example:
        ```python
        register_strategy("IsBlue", is_blue)

        @validated
        class Theme:
            color: Annotated[str, Rule("IsBlue")]
        ```
    """

    def __init__(self, rule_type: str, *constraints: Any, **options: Any):
        self.rule_type = rule_type
        super().__init__(*constraints, **options)


class IsString(RuleSpec):
    rule_type = "IsString"


class IsNumber(RuleSpec):
    rule_type = "IsNumber"


class IsBoolean(RuleSpec):
    rule_type = "IsBoolean"


class IsArray(RuleSpec):
    rule_type = "IsArray"


class IsPositive(RuleSpec):
    rule_type = "IsPositive"


class IsInt(RuleSpec):
    rule_type = "IsInt"


class IsEmail(RuleSpec):
    rule_type = "IsEmail"


class Min(RuleSpec):
    rule_type = "Min"

    def __init__(self, minimum: float, **options: Any):
        super().__init__(minimum, **options)


class Max(RuleSpec):
    rule_type = "Max"

    def __init__(self, maximum: float, **options: Any):
        super().__init__(maximum, **options)


class Length(RuleSpec):
    """String length between ``min`` and ``max`` inclusive; ``max=None`` is unbounded."""

    rule_type = "Length"

    def __init__(self, min: int = 0, max: int | None = None, **options: Any):
        super().__init__(min, max, **options)


class Matches(RuleSpec):
    rule_type = "Matches"

    def __init__(self, pattern: str | RegexPattern, **options: Any):
        super().__init__(pattern, **options)


class ArrayMinSize(RuleSpec):
    rule_type = "ArrayMinSize"

    def __init__(self, minimum: int, **options: Any):
        super().__init__(minimum, **options)


class ArrayMaxSize(RuleSpec):
    rule_type = "ArrayMaxSize"

    def __init__(self, maximum: int, **options: Any):
        super().__init__(maximum, **options)


class Custom(RuleSpec):
    """Rule passing when ``validator(value)`` is truthy.

    A validator that raises is recorded as a failure of this rule.
    """

    rule_type = "Custom"

    def __init__(self, validator: Callable[[Any], bool], **options: Any):
        super().__init__(validator, **options)


class IsOptional(RuleSpec):
    """Skip every rule of the property when its value is None or missing."""

    rule_type = IS_OPTIONAL


class ValidateNested(RuleSpec):
    """Validate the property's value (or each element) with its own type's rules."""

    rule_type = VALIDATE_NESTED


def declare(
    owner: type,
    key: Hashable,
    *specs: RuleSpec,
    registry: RuleRegistry | None = None,
) -> None:
    """Register rules for one property of an owner type.

    Args:
        owner: Class owning the property
        key: Property key, any hashable
        *specs: Rules to attach, in order
        registry: Target registry (shared registry by default)

    Raises:
        ConfigurationError: If owner is not a class
    """
    if not isinstance(owner, type):
        raise ConfigurationError(
            f"Rules can only be declared on classes, got {type(owner).__name__}",
            context={"property": str(key)},
        )
    target = registry if registry is not None else rule_registry
    for spec in specs:
        target.add_rule(spec.declaration(owner, key))


def validated(cls: C | None = None, *, registry: RuleRegistry | None = None) -> Any:
    """Class decorator registering the rules found in ``Annotated`` hints.

    Only the class's own annotations are read; rules are not inherited.
    Usable bare (``@validated``) or with a registry (``@validated(registry=r)``).
    """

    caller_locals = _caller_locals()

    def register(target: C) -> C:
        if not isinstance(target, type):
            raise ConfigurationError(f"@validated expects a class, got {type(target).__name__}")
        for name, hint in _own_annotations(target, caller_locals).items():
            if get_origin(hint) is not Annotated:
                continue
            specs = [item for item in hint.__metadata__ if isinstance(item, RuleSpec)]
            declare(target, name, *specs, registry=registry)
        return target

    if cls is None:
        return register
    return register(cls)


def _caller_locals() -> dict[str, Any]:
    frame = inspect.currentframe()
    try:
        while frame is not None and frame.f_globals.get("__name__") == __name__:
            frame = frame.f_back
        return dict(frame.f_locals) if frame is not None else {}
    finally:
        del frame


def _own_annotations(cls: type, caller_locals: dict[str, Any]) -> dict[str, Any]:
    """Evaluate the class's own annotations one field at a time.

    String annotations (postponed with ``from __future__ import annotations``)
    are resolved against the defining module, the scope the decorator was
    applied in, and the class namespace. The class can name itself.

    Raises:
        ConfigurationError: If an annotation cannot be evaluated
    """
    try:
        raw = inspect.get_annotations(cls)
    except Exception as e:
        raise ConfigurationError(
            f"Could not read annotations of {cls.__qualname__}: {e}",
            context={"owner": cls.__qualname__},
        ) from e

    module = sys.modules.get(cls.__module__)
    globalns = vars(module) if module is not None else {}
    localns = {**caller_locals, **vars(cls)}
    localns.setdefault(cls.__name__, cls)

    hints = {}
    for name, hint in raw.items():
        if isinstance(hint, str):
            try:
                hint = eval(hint, globalns, localns)  # noqa: S307
            except Exception as e:
                raise ConfigurationError(
                    f"Could not evaluate annotation of {cls.__qualname__}.{name}: {e}",
                    context={"owner": cls.__qualname__, "field": name},
                ) from e
        hints[name] = hint
    return hints
