"""Validation output records and caller options.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any


@dataclass
class ValidationError:
    """Failures recorded for one property of a validated instance.

    A property yields an entry only when it has at least one failed rule or
    at least one nested child error. ``failed_rules`` and ``children`` are
    independently optional.

    Attributes:
        property: Display name of the property (``"tags[1]"`` for an element
            of an ``each`` nested sequence)
        at: Declaration location of the property's rules, when known
        failed_rules: Rule type name to the ordered failure messages
        children: Errors found inside the nested value
        index: Element index when the error comes from an ``each`` sequence
    """

    property: str
    at: str | None = None
    failed_rules: dict[str, list[str]] | None = None
    children: list[ValidationError] | None = None
    index: int | None = None

    def messages(self) -> list[str]:
        """Flatten all failure messages of this error and its children, depth-first."""
        collected: list[str] = []
        for messages in (self.failed_rules or {}).values():
            collected.extend(messages)
        for child in self.children or []:
            collected.extend(child.messages())
        return collected

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire shape, omitting absent optional keys.

        Returns:
            Dictionary with ``property`` and any of ``index``, ``at``,
            ``failedRules`` and ``children``
        """
        data: dict[str, Any] = {"property": self.property}
        if self.index is not None:
            data["index"] = self.index
        if self.at is not None:
            data["at"] = self.at
        if self.failed_rules:
            data["failedRules"] = {name: list(msgs) for name, msgs in self.failed_rules.items()}
        if self.children:
            data["children"] = [child.to_dict() for child in self.children]
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValidationError:
        """Create an error from its wire shape.

        Args:
            data: Dictionary as produced by ``to_dict``

        Returns:
            ValidationError instance
        """
        failed_rules = data.get("failedRules")
        children = data.get("children")
        return cls(
            property=data["property"],
            at=data.get("at"),
            failed_rules={name: list(msgs) for name, msgs in failed_rules.items()} if failed_rules else None,
            children=[cls.from_dict(child) for child in children] if children else None,
            index=data.get("index"),
        )


@dataclass(frozen=True)
class ValidatorOptions:
    """Options a caller passes to ``validate``.

    Attributes:
        abort_early: Stop at the first recorded failure, both within a
            property and between properties
        strip_unknown: Drop keys without declared rules when shaping raw
            data (used by the convenience layer only)
    """

    abort_early: bool = False
    strip_unknown: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ValidatorOptions:
        """Create options from a mapping, accepting snake or camel case keys."""
        return cls(
            abort_early=bool(data.get("abort_early", data.get("abortEarly", False))),
            strip_unknown=bool(data.get("strip_unknown", data.get("stripUnknown", False))),
        )

    @classmethod
    def resolve(cls, options: ValidatorOptions | Mapping[str, Any] | None) -> ValidatorOptions:
        """Normalize the accepted option forms into an instance."""
        if options is None:
            return DEFAULT_OPTIONS
        if isinstance(options, ValidatorOptions):
            return options
        return cls.from_dict(options)


DEFAULT_OPTIONS = ValidatorOptions()
