"""Issue model: the atomic unit of validation failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

PathSegment = str | int
Path = tuple[PathSegment, ...]


class IssueCode(str, Enum):
    """Symbolic identifiers for every kind of validation failure."""

    TYPE_MISMATCH = "TypeMismatch"
    NULL_NOT_ALLOWED = "NullNotAllowed"
    COERCION_FAILED = "CoercionFailed"
    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    MIN_LENGTH = "MinLength"
    MAX_LENGTH = "MaxLength"
    LENGTH = "Length"
    PATTERN_MISMATCH = "PatternMismatch"
    INVALID_FORMAT = "InvalidFormat"
    RANGE = "Range"
    NOT_INTEGER = "NotInteger"
    NOT_FINITE = "NotFinite"
    NOT_MULTIPLE_OF = "NotMultipleOf"
    NOT_ONE_OF = "NotOneOf"
    CUSTOM_PREDICATE = "CustomPredicate"
    UNRECOGNIZED_KEYS = "UnrecognizedKeys"
    TUPLE_ARITY_MISMATCH = "TupleArityMismatch"
    REFINEMENT_FAILED = "RefinementFailed"


def format_path(path: Path) -> str:
    """Render a path as a readable location string.

    Args:
        path: Ordered field names and indices

    Returns:
        Location such as ``items[2].quantity``, or ``<root>`` for the empty path
    """
    if not path:
        return "<root>"
    parts: list[str] = []
    for segment in path:
        if isinstance(segment, int):
            parts.append(f"[{segment}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(str(segment))
    return "".join(parts)


@dataclass(frozen=True)
class Issue:
    """One recorded validation failure.

    Attributes:
        message: Human-readable description of the failure
        path: Location of the offending value within the validated input
        value: The offending value at that path
        code: Symbolic failure kind for programmatic matching
    """

    message: str
    path: Path
    value: Any
    code: IssueCode

    @property
    def location(self) -> str:
        return format_path(self.path)

    def to_dict(self) -> dict[str, Any]:
        """Convert the issue to a plain dictionary."""
        return {
            "message": self.message,
            "path": list(self.path),
            "value": self.value,
            "code": self.code.value,
        }

    def __str__(self) -> str:
        return f"{self.location}: {self.message}"
