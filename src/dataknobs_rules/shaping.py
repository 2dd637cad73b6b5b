"""Shaping raw data into typed instances ahead of validation.

Shaping never validates. It creates an instance of the target type without
calling its constructor and copies the raw keys onto it, either all of them
or only the properties that have declared rules.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from typing import Any, TypeVar

from .exceptions import ConfigurationError
from .rules import RuleRegistry, rule_registry
from .values import display_key

T = TypeVar("T")


class InstanceShaper:
    """Builds instances of declared types from untyped mappings.

    Args:
        registry: Registry consulted for the known property keys
    """

    def __init__(self, registry: RuleRegistry | None = None):
        self.registry = registry if registry is not None else rule_registry

    def allowed_keys(self, cls: type) -> set[Hashable]:
        """Property keys that have at least one declaration on ``cls``."""
        return set(self.registry.property_keys(cls))

    def shape(self, cls: type[T], data: Mapping[Any, Any], strip_unknown: bool = False) -> T:
        """Create an instance of ``cls`` carrying the given data.

        Args:
            cls: Target type
            data: Raw key/value data
            strip_unknown: If True, keys without declared rules are dropped

        Returns:
            Instance of ``cls`` (its ``__init__`` is not called)

        Raises:
            ConfigurationError: If a key cannot be set on the instance
        """
        instance = cls.__new__(cls)

        if strip_unknown:
            items = [(key, data[key]) for key in self.registry.property_keys(cls) if key in data]
        else:
            items = list(data.items())

        for key, value in items:
            _assign(instance, key, value)
        return instance


def _assign(instance: Any, key: Hashable, value: Any) -> None:
    try:
        if isinstance(key, str):
            object.__setattr__(instance, key, value)
        else:
            vars(instance)[key] = value
    except (TypeError, AttributeError) as e:
        owner = type(instance).__qualname__
        raise ConfigurationError(
            f"Cannot assign {display_key(key)!r} on {owner}: {e}",
            context={"owner": owner, "property": display_key(key)},
        ) from e


def to_instance(
    cls: type[T],
    data: Mapping[Any, Any],
    strip_unknown: bool = False,
    registry: RuleRegistry | None = None,
) -> T:
    """Shape raw data into an instance of ``cls``.

    Args:
        cls: Target type
        data: Raw key/value data
        strip_unknown: If True, keys without declared rules are dropped
        registry: Registry to consult (shared registry by default)

    Returns:
        Instance of ``cls``
    """
    return InstanceShaper(registry).shape(cls, data, strip_unknown)
