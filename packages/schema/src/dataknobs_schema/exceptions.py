"""Exception hierarchy for the dataknobs_schema package.

All errors raised by this package derive from ``DataknobsSchemaError``, which
carries an optional context dictionary with structured details about the
failure.

Example:
    ```python
    from dataknobs_schema import z, ValidationError

    try:
        z.string().min(3).validate("ab")
    except ValidationError as e:
        print(e.get_message())
        for issue in e.get_errors():
            print(issue.location, issue.code.value)
    ```
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .issues import Issue


class DataknobsSchemaError(Exception):
    """Base exception for the schema package.

    Attributes:
        message: Human-readable error message
        context: Dictionary containing contextual information about the error
        details: Alias for context
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
        self.message = message
        self.context = details or context or {}
        self.details = self.context


class ValidationError(DataknobsSchemaError):
    """Raised by the strict entry points when a value fails validation.

    Carries every issue collected during the validation call, in the order
    they were found.
    """

    def __init__(self, issues: list[Issue], message: str | None = None):
        self.issues = list(issues)
        if message is None:
            message = self.issues[0].message if self.issues else "Validation failed"
        super().__init__(message, context={"issue_count": len(self.issues)})

    @property
    def errors(self) -> list[Issue]:
        """The ordered list of issues."""
        return list(self.issues)

    def get_message(self) -> str:
        """Return the message of the first issue."""
        return self.message

    def get_errors(self) -> list[Issue]:
        """Return the ordered list of issues."""
        return self.errors

    def flatten(self) -> dict[str, list[str]]:
        """Group issue messages by rendered location.

        Returns:
            Mapping of location (e.g. ``items[2].quantity``) to messages
        """
        grouped: dict[str, list[str]] = {}
        for issue in self.issues:
            grouped.setdefault(issue.location, []).append(issue.message)
        return grouped


class SchemaDefinitionError(DataknobsSchemaError):
    """Raised when a schema is built with invalid parameters.

    Builders and modifiers check their arguments eagerly, so a malformed
    pattern or contradictory bounds fail when the schema is declared rather
    than when it is first used.
    """

    pass


class CoercionError(DataknobsSchemaError):
    """Raised when a raw value cannot be converted to a schema's kind."""

    def __init__(self, message: str, target: str, value: Any = None):
        self.target = target
        self.value = value
        super().__init__(message, context={"target": target})


class ConfigurationError(DataknobsSchemaError):
    """Raised when settings or schema configuration are invalid."""

    pass


__all__ = [
    "DataknobsSchemaError",
    "ValidationError",
    "SchemaDefinitionError",
    "CoercionError",
    "ConfigurationError",
]
