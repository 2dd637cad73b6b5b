"""Value-shape helpers shared by the strategies and the executor.
"""

from __future__ import annotations

import inspect
import logging
import math
from collections.abc import Hashable, Mapping, Sequence
from numbers import Number, Real
from typing import Any

logger = logging.getLogger(__name__)


class _Missing:
    """Sentinel for a property that is not present on an instance."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()

_PRIMITIVES = (str, bytes, bytearray, bool, Number)
_TEXT = (str, bytes, bytearray)


def is_absent(value: Any) -> bool:
    """True for a missing property or an explicit None."""
    return value is MISSING or value is None


def is_composite(value: Any) -> bool:
    """True for values that can carry their own rules (objects, containers).

    Primitives, classes and functions are not composite.
    """
    if is_absent(value) or isinstance(value, _PRIMITIVES):
        return False
    if isinstance(value, type) or inspect.isroutine(value):
        return False
    return True


def is_sequence(value: Any) -> bool:
    """True for ordered sequences other than text."""
    return isinstance(value, Sequence) and not isinstance(value, _TEXT)


def is_real_number(value: Any) -> bool:
    """True for real numbers, excluding booleans."""
    return isinstance(value, Real) and not isinstance(value, bool)


def is_finite_number(value: Any) -> bool:
    """True for real numbers that are neither NaN nor infinite."""
    if not is_real_number(value):
        return False
    try:
        return math.isfinite(value)
    except (TypeError, ValueError, OverflowError):
        return False


def display_key(key: Hashable) -> str:
    """Render a property key for error reports."""
    return key if isinstance(key, str) else str(key)


def resolve_value(instance: Any, key: Hashable) -> Any:
    """Read a property from an instance, returning MISSING when it is absent.

    String keys are read as attributes; any other hashable key is looked up
    in the instance ``__dict__``. Mappings are read by key.
    """
    try:
        if isinstance(instance, Mapping):
            return instance.get(key, MISSING)
        if isinstance(key, str):
            return getattr(instance, key, MISSING)
        namespace = getattr(instance, "__dict__", None)
        if namespace is None:
            return MISSING
        return namespace.get(key, MISSING)
    except Exception as e:
        logger.warning(f"Reading property {display_key(key)!r} from {type(instance).__name__} failed: {e!s}")
        return MISSING
