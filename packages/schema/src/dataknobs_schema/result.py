"""Validation result types with consistent, predictable behavior.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import ValidationError
from .issues import Issue, IssueCode, Path, PathSegment


@dataclass
class ValidationResult:
    """Outcome of one validation call.

    Either a success carrying the accepted (possibly coerced or defaulted)
    data, or a failure carrying the ordered list of issues.
    """

    success: bool
    data: Any
    errors: list[Issue] = field(default_factory=list)

    def __bool__(self) -> bool:
        """Allow 'if result:' usage to check validity."""
        return self.success

    @property
    def messages(self) -> list[str]:
        return [issue.message for issue in self.errors]

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Combine two results.

        Args:
            other: Another ValidationResult to merge with this one

        Returns:
            New ValidationResult that succeeds only if both succeeded
        """
        return ValidationResult(
            success=self.success and other.success,
            data=other.data if other.success else self.data,
            errors=self.errors + other.errors,
        )

    def raise_for_errors(self) -> Any:
        """Return the accepted data, or raise if this result is a failure.

        Returns:
            The accepted data

        Raises:
            ValidationError: With every collected issue, if validation failed
        """
        if not self.success:
            raise ValidationError(self.errors)
        return self.data

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a plain dictionary."""
        if self.success:
            return {"success": True, "data": self.data}
        return {
            "success": False,
            "errors": [issue.to_dict() for issue in self.errors],
        }

    @classmethod
    def ok(cls, data: Any) -> ValidationResult:
        """Create a successful validation result.

        Args:
            data: The accepted value

        Returns:
            Successful ValidationResult
        """
        return cls(success=True, data=data, errors=[])

    @classmethod
    def fail(cls, errors: list[Issue], data: Any = None) -> ValidationResult:
        """Create a failed validation result.

        Args:
            errors: Issues found, in order
            data: Optional partial value

        Returns:
            Failed ValidationResult
        """
        return cls(success=False, data=data, errors=list(errors))


class ValidationContext:
    """Per-call state tracking the current path and the collected issues.

    Child contexts extend the path but share the issue list of their parent,
    so the issues of one call accumulate in discovery order. Every top-level
    validation call creates a fresh context.
    """

    __slots__ = ("path", "issues")

    def __init__(self, path: Path = (), issues: list[Issue] | None = None):
        self.path = path
        self.issues = issues if issues is not None else []

    def child(self, segment: PathSegment) -> ValidationContext:
        """Return a context for a nested value.

        Args:
            segment: Field name or index of the nested value

        Returns:
            Context with the extended path and the shared issue list
        """
        return ValidationContext(self.path + (segment,), self.issues)

    def add_issue(self, code: IssueCode, message: str, value: Any) -> Issue:
        """Record an issue at the current path.

        Args:
            code: Failure kind
            message: Human-readable message
            value: The offending value

        Returns:
            The recorded issue
        """
        issue = Issue(message=message, path=self.path, value=value, code=code)
        self.issues.append(issue)
        return issue

    def mark(self) -> int:
        """Return a marker for the current number of issues."""
        return len(self.issues)

    def clean_since(self, mark: int) -> bool:
        """Check whether no issues were added since ``mark``."""
        return len(self.issues) == mark
