"""Exception hierarchy for the rules engine.

The engine itself never raises for data-driven outcomes: failed rules are
reported as ``ValidationError`` records. The exceptions defined here belong
to the layers around it:

- ``ValidationException`` is raised by the convenience layer
  (``assert_valid``) when a shaped instance has findings.
- ``ConfigurationError`` is raised when rules cannot be built from
  configuration or declarations are attached to something that is not a
  class.

Example:
    ```python
    from dataknobs_rules import assert_valid, ValidationException

    try:
        user = assert_valid(User, payload)
    except ValidationException as e:
        logger.error(f"Rejected payload: {e}")
        for error in e.errors:
            logger.error(error.to_dict())
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .result import ValidationError


class RulesError(Exception):
    """Base exception for the rules package.

    Attributes:
        context: Dictionary containing contextual information about the error
        details: Alias for context

    Example:
        ```python
        error = RulesError("Bad rule", context={"rule_type": "Min"})
        error.context
        # {'rule_type': 'Min'}
        ```
    """

    def __init__(
        self,
        message: str,
        context: Dict[str, Any] | None = None,
        details: Dict[str, Any] | None = None,
    ):
        """Initialize the exception with optional context.

        Args:
            message: Error message
            context: Optional context dictionary
            details: Optional details dictionary (takes precedence over context)
        """
        super().__init__(message)
        self.context = details or context or {}
        self.details = self.context


class ValidationException(RulesError):
    """Raised by the convenience layer when validation produced findings.

    Attributes:
        errors: The full list of validation errors
    """

    def __init__(self, errors: list[ValidationError]):
        self.errors = errors
        super().__init__(
            self.format_message(errors),
            context={"error_count": len(errors)},
        )

    @staticmethod
    def format_message(errors: list[ValidationError]) -> str:
        """Summarize an error list into a single line."""
        if not errors:
            return "Validation Failed"
        first = errors[0]
        rule_msg = "Unknown error"
        if first.failed_rules:
            for messages in first.failed_rules.values():
                if messages:
                    rule_msg = messages[0]
                    break
        return f"Validation Failed: {rule_msg} (and {len(errors) - 1} more errors)"


class ConfigurationError(RulesError):
    """Raised when rule configuration is invalid or cannot be resolved.

    Example:
        ```python
        raise ConfigurationError(
            "Cannot resolve owner type",
            context={"owner": "myapp.models.Missing"}
        )
        ```
    """

    pass


__all__ = [
    "RulesError",
    "ValidationException",
    "ConfigurationError",
]
