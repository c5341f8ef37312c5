"""Constraint implementations forming a schema node's check pipeline.

Every constraint is an immutable record with a symbolic code, its parameters
and an optional message override. Constraints only ever see values that
already passed their node's base type check, so they do not re-check types.
"""

from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field, fields
from datetime import date, datetime, time
from decimal import Decimal
from fractions import Fraction
from re import Pattern as RegexPattern
from typing import Any, ClassVar
from urllib.parse import urlparse

from .exceptions import SchemaDefinitionError
from .issues import IssueCode

logger = logging.getLogger(__name__)

EMAIL_REGEX = re.compile(
    r"^(?!\.)(?!.*\.\.)[A-Za-z0-9_'+\-.]*[A-Za-z0-9_+\-]@"
    r"(?:[A-Za-z0-9](?:[A-Za-z0-9\-]*[A-Za-z0-9])?\.)+[A-Za-z]{2,}$"
)
UUID_REGEX = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


class Constraint(ABC):
    """Base class for all constraints.

    Subclasses are frozen dataclasses whose last field is ``message``.
    """

    code: ClassVar[IssueCode]
    template: ClassVar[str] = "Invalid value"
    message: str | None

    @abstractmethod
    def check(self, value: Any) -> bool:
        """Return True if the value satisfies this constraint."""

    def params(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}  # type: ignore[arg-type]

    def render(self, value: Any) -> str:
        """Return the message for a value that failed this constraint."""
        if self.message:
            return self.message
        return self.template.format(value=value, **self.params())


def is_finite(value: Any) -> bool:
    """Check finiteness without converting exact numbers to float."""
    if isinstance(value, int):
        return True
    if isinstance(value, Decimal):
        return value.is_finite()
    return math.isfinite(value)


def _exact(number: Any) -> Fraction:
    if isinstance(number, float):
        return Fraction(repr(number))
    return Fraction(number)


def comparable(value: Any, limit: Any) -> tuple[Any, Any]:
    """Align dates and datetimes so they can be ordered against each other."""
    if isinstance(value, datetime) and not isinstance(limit, datetime) and isinstance(limit, date):
        return value.date(), limit
    if isinstance(limit, datetime) and not isinstance(value, datetime) and isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=limit.tzinfo), limit
    return value, limit


# ----------------------------------------------------------------------------
# Length constraints (strings and arrays)
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class MinLength(Constraint):
    """String or array length must be at least ``limit``."""

    code: ClassVar[IssueCode] = IssueCode.MIN_LENGTH

    limit: int
    unit: str = "characters"
    message: str | None = None

    def check(self, value: Any) -> bool:
        return len(value) >= self.limit

    def render(self, value: Any) -> str:
        if self.message:
            return self.message
        if self.unit == "items":
            return f"The value must contain at least {self.limit} items"
        return f"The value must be at least {self.limit} characters long"


@dataclass(frozen=True)
class MaxLength(Constraint):
    """String or array length must be at most ``limit``."""

    code: ClassVar[IssueCode] = IssueCode.MAX_LENGTH

    limit: int
    unit: str = "characters"
    message: str | None = None

    def check(self, value: Any) -> bool:
        return len(value) <= self.limit

    def render(self, value: Any) -> str:
        if self.message:
            return self.message
        if self.unit == "items":
            return f"The value must contain at most {self.limit} items"
        return f"The value must be at most {self.limit} characters long"


@dataclass(frozen=True)
class ExactLength(Constraint):
    """String or array length must be exactly ``limit``."""

    code: ClassVar[IssueCode] = IssueCode.LENGTH
    template: ClassVar[str] = "The value must have exactly {limit} {unit}"

    limit: int
    unit: str = "characters"
    message: str | None = None

    def check(self, value: Any) -> bool:
        return len(value) == self.limit


# ----------------------------------------------------------------------------
# String format constraints
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class Pattern(Constraint):
    """String must contain a match for a regular expression.

    Matching uses search semantics; anchor the expression with ``^`` and
    ``$`` to require a full match. The expression is compiled when the
    constraint is created, so a malformed pattern fails immediately.
    """

    code: ClassVar[IssueCode] = IssueCode.PATTERN_MISMATCH
    template: ClassVar[str] = "The value does not match the pattern {pattern}"

    pattern: str | RegexPattern
    message: str | None = None
    regex: RegexPattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.pattern, RegexPattern):
            if not isinstance(self.pattern.pattern, str):
                raise SchemaDefinitionError(
                    "Pattern must match text, got a bytes regex",
                    context={"pattern": repr(self.pattern.pattern)},
                )
            object.__setattr__(self, "regex", self.pattern)
            object.__setattr__(self, "pattern", self.pattern.pattern)
            return
        if not isinstance(self.pattern, str):
            raise SchemaDefinitionError(
                f"Pattern must be a string or compiled regex, got {type(self.pattern).__name__}",
                context={"pattern": repr(self.pattern)},
            )
        try:
            object.__setattr__(self, "regex", re.compile(self.pattern))
        except re.error as e:
            raise SchemaDefinitionError(
                f"Invalid pattern '{self.pattern}': {e}",
                context={"pattern": self.pattern},
            ) from e

    def check(self, value: Any) -> bool:
        return self.regex.search(value) is not None


@dataclass(frozen=True)
class Email(Constraint):
    code: ClassVar[IssueCode] = IssueCode.INVALID_FORMAT
    template: ClassVar[str] = "The value must be a valid email address"

    message: str | None = None

    def check(self, value: Any) -> bool:
        return EMAIL_REGEX.match(value) is not None


@dataclass(frozen=True)
class Uuid(Constraint):
    code: ClassVar[IssueCode] = IssueCode.INVALID_FORMAT
    template: ClassVar[str] = "The value must be a valid UUID"

    message: str | None = None

    def check(self, value: Any) -> bool:
        return UUID_REGEX.match(value) is not None


@dataclass(frozen=True)
class Url(Constraint):
    code: ClassVar[IssueCode] = IssueCode.INVALID_FORMAT
    template: ClassVar[str] = "The value must be a valid URL"

    message: str | None = None

    def check(self, value: Any) -> bool:
        try:
            parsed = urlparse(value)
        except ValueError:
            return False
        return bool(parsed.scheme) and bool(parsed.netloc)


@dataclass(frozen=True)
class Uppercase(Constraint):
    code: ClassVar[IssueCode] = IssueCode.INVALID_FORMAT
    template: ClassVar[str] = "The value must be uppercase"

    message: str | None = None

    def check(self, value: Any) -> bool:
        return value == value.upper()


@dataclass(frozen=True)
class Lowercase(Constraint):
    code: ClassVar[IssueCode] = IssueCode.INVALID_FORMAT
    template: ClassVar[str] = "The value must be lowercase"

    message: str | None = None

    def check(self, value: Any) -> bool:
        return value == value.lower()


@dataclass(frozen=True)
class StartsWith(Constraint):
    code: ClassVar[IssueCode] = IssueCode.INVALID_FORMAT
    template: ClassVar[str] = "The value must start with '{prefix}'"

    prefix: str
    message: str | None = None

    def check(self, value: Any) -> bool:
        return value.startswith(self.prefix)


@dataclass(frozen=True)
class EndsWith(Constraint):
    code: ClassVar[IssueCode] = IssueCode.INVALID_FORMAT
    template: ClassVar[str] = "The value must end with '{suffix}'"

    suffix: str
    message: str | None = None

    def check(self, value: Any) -> bool:
        return value.endswith(self.suffix)


@dataclass(frozen=True)
class DateFormat(Constraint):
    """String must parse as a date using a ``strptime`` format."""

    code: ClassVar[IssueCode] = IssueCode.INVALID_FORMAT
    template: ClassVar[str] = "The value must be a date in the format {fmt}"

    fmt: str
    message: str | None = None

    def check(self, value: Any) -> bool:
        try:
            datetime.strptime(value, self.fmt)
        except ValueError:
            return False
        return True


# ----------------------------------------------------------------------------
# Ordering constraints (numbers and dates)
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class Minimum(Constraint):
    """Value must be greater than (or equal to) ``limit``."""

    code: ClassVar[IssueCode] = IssueCode.RANGE

    limit: Any
    exclusive: bool = False
    message: str | None = None

    def check(self, value: Any) -> bool:
        left, right = comparable(value, self.limit)
        try:
            return left > right if self.exclusive else left >= right
        except TypeError:
            return False

    def render(self, value: Any) -> str:
        if self.message:
            return self.message
        if isinstance(self.limit, date):
            return f"The date must be on or after {self.limit.isoformat()}"
        if self.exclusive:
            return f"The value must be greater than {self.limit}"
        return f"The value must be greater than or equal to {self.limit}"


@dataclass(frozen=True)
class Maximum(Constraint):
    """Value must be less than (or equal to) ``limit``."""

    code: ClassVar[IssueCode] = IssueCode.RANGE

    limit: Any
    exclusive: bool = False
    message: str | None = None

    def check(self, value: Any) -> bool:
        left, right = comparable(value, self.limit)
        try:
            return left < right if self.exclusive else left <= right
        except TypeError:
            return False

    def render(self, value: Any) -> str:
        if self.message:
            return self.message
        if isinstance(self.limit, date):
            return f"The date must be on or before {self.limit.isoformat()}"
        if self.exclusive:
            return f"The value must be less than {self.limit}"
        return f"The value must be less than or equal to {self.limit}"


# ----------------------------------------------------------------------------
# Number constraints
# ----------------------------------------------------------------------------

@dataclass(frozen=True)
class Integer(Constraint):
    code: ClassVar[IssueCode] = IssueCode.NOT_INTEGER
    template: ClassVar[str] = "The value must be an integer"

    message: str | None = None

    def check(self, value: Any) -> bool:
        if isinstance(value, int):
            return True
        if isinstance(value, float):
            return value.is_integer()
        if isinstance(value, Decimal):
            return value.is_finite() and value == value.to_integral_value()
        return False


@dataclass(frozen=True)
class Finite(Constraint):
    code: ClassVar[IssueCode] = IssueCode.NOT_FINITE
    template: ClassVar[str] = "The value must be a finite number"

    message: str | None = None

    def check(self, value: Any) -> bool:
        return is_finite(value)


@dataclass(frozen=True)
class MultipleOf(Constraint):
    code: ClassVar[IssueCode] = IssueCode.NOT_MULTIPLE_OF
    template: ClassVar[str] = "The value must be a multiple of {step}"

    step: int | float | Decimal
    message: str | None = None

    def check(self, value: Any) -> bool:
        if not is_finite(value):
            return False
        if isinstance(value, int) and isinstance(self.step, int):
            return value % self.step == 0
        if isinstance(value, float):
            # float input keeps a tolerance for binary rounding such as 0.1 * 3
            try:
                step = float(self.step)
            except OverflowError:
                step = math.inf
            return math.isclose(math.remainder(value, step), 0.0, abs_tol=1e-9)
        return _exact(value) % _exact(self.step) == 0


# ----------------------------------------------------------------------------
# Membership and custom constraints
# ----------------------------------------------------------------------------

def same_literal(left: Any, right: Any) -> bool:
    """Compare literals by value and exact type, so True never equals 1."""
    return type(left) is type(right) and left == right


@dataclass(frozen=True)
class OneOf(Constraint):
    """Value must be one of a closed set of literals."""

    code: ClassVar[IssueCode] = IssueCode.NOT_ONE_OF

    values: tuple[Any, ...]
    message: str | None = None

    def check(self, value: Any) -> bool:
        return any(same_literal(value, allowed) for allowed in self.values)

    def render(self, value: Any) -> str:
        if self.message:
            return self.message
        allowed = ", ".join(repr(v) for v in self.values)
        return f"The value must be one of: {allowed}"


@dataclass(frozen=True)
class CustomPredicate(Constraint):
    """Check using a caller-supplied predicate.

    The predicate is expected to be pure. If it raises, the exception is
    logged and the value is treated as failing the check.
    """

    code: ClassVar[IssueCode] = IssueCode.CUSTOM_PREDICATE
    template: ClassVar[str] = "The value is invalid"

    predicate: Callable[[Any], bool]
    message: str | None = None

    def check(self, value: Any) -> bool:
        try:
            return bool(self.predicate(value))
        except Exception as e:
            logger.warning(f"Custom predicate raised {type(e).__name__}: {e!s}")
            return False
