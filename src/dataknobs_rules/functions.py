"""Convenience layer over the engine: shape raw data, validate, and raise.

Unlike ``Validator.validate``, these functions treat non-mapping input as an
error of its own instead of "nothing to check".
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from .exceptions import ValidationException
from .result import ValidationError, ValidatorOptions
from .shaping import InstanceShaper
from .validator import Validator

T = TypeVar("T")


def validate(
    instance: Any,
    options: ValidatorOptions | Mapping[str, Any] | None = None,
    validator: Validator | None = None,
) -> list[ValidationError]:
    """Validate an instance with the default engine (or the given one)."""
    engine = validator if validator is not None else Validator.default()
    return engine.validate(instance, options)


def check(cls: type, data: Any, validator: Validator | None = None) -> bool:
    """Tell whether raw data would shape into a valid ``cls`` instance.

    Stops at the first failure.

    Args:
        cls: Target type
        data: Raw data, expected to be a mapping
        validator: Engine to use (default engine otherwise)

    Returns:
        True when the data is a mapping and no rule failed

    Raises:
        ConfigurationError: If a key cannot be set on a ``cls`` instance
    """
    if not isinstance(data, Mapping):
        return False
    engine = validator if validator is not None else Validator.default()
    instance = InstanceShaper(engine.rules).shape(cls, data)
    return not engine.validate(instance, ValidatorOptions(abort_early=True))


def assert_valid(
    cls: type[T],
    data: Any,
    options: ValidatorOptions | Mapping[str, Any] | None = None,
    validator: Validator | None = None,
) -> T:
    """Shape raw data into a ``cls`` instance and validate it.

    Args:
        cls: Target type
        data: Raw data, expected to be a mapping
        options: Validation options; ``strip_unknown`` drops undeclared keys
        validator: Engine to use (default engine otherwise)

    Returns:
        The shaped, valid instance

    Raises:
        ValidationException: If data is not a mapping or any rule failed
        ConfigurationError: If a key cannot be set on a ``cls`` instance
    """
    if not isinstance(data, Mapping):
        raise ValidationException([
            ValidationError(property="root", failed_rules={"Type": ["Input must be an object"]})
        ])

    resolved = ValidatorOptions.resolve(options)
    engine = validator if validator is not None else Validator.default()
    instance = InstanceShaper(engine.rules).shape(cls, data, strip_unknown=resolved.strip_unknown)

    errors = engine.validate(instance, resolved)
    if errors:
        raise ValidationException(errors)
    return instance
