"""Immutable schema nodes with a fluent modifier API.

A Schema describes one validation unit. Its ``kind`` is one of a closed set
of variants and kind-specific payload (object fields, array item, tuple
items, record key/value, enum values) lives on the same node. Every modifier
returns a new Schema that shares all unchanged substructure with the
original, so a schema can be extended at one call site without affecting
any other holder.

Example:
    ```python
    from dataknobs_schema import z

    username = z.string().min(3, "Too short").max(20)
    user = z.object({"name": username, "age": z.number().integer().optional()})

    result = user.safe_validate({"name": "Jo"})
    result.success            # False
    result.errors[0].path     # ('name',)
    ```
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .constraints import (
    Constraint,
    CustomPredicate,
    DateFormat,
    Email,
    EndsWith,
    ExactLength,
    Finite,
    Integer,
    Lowercase,
    Maximum,
    MaxLength,
    Minimum,
    MinLength,
    MultipleOf,
    OneOf,
    Pattern,
    StartsWith,
    Uppercase,
    Url,
    Uuid,
    comparable,
    is_finite,
)
from .exceptions import SchemaDefinitionError

if TYPE_CHECKING:
    from .refinement import RefinementRule
    from .result import ValidationResult


class SchemaKind(str, Enum):
    """The closed set of schema variants."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    OBJECT = "object"
    ARRAY = "array"
    TUPLE = "tuple"
    RECORD = "record"
    ENUM = "enum"


class UnknownKeys(str, Enum):
    """Policy for input keys an object schema does not declare."""

    PASSTHROUGH = "passthrough"
    STRIP = "strip"
    STRICT = "strict"


class _Missing:
    """Marker for an absent value, distinct from None."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _Missing:
        return self

    def __deepcopy__(self, memo: dict) -> _Missing:
        return self


MISSING: Any = _Missing()

PRIMITIVE_KINDS = (SchemaKind.STRING, SchemaKind.NUMBER, SchemaKind.BOOLEAN, SchemaKind.DATE)
SIZED_KINDS = (SchemaKind.STRING, SchemaKind.ARRAY)
ORDERED_KINDS = (SchemaKind.NUMBER, SchemaKind.DATE)


def normalize_fields(fields: Mapping[str, Schema]) -> Mapping[str, Schema]:
    """Check an object field mapping and freeze it, keeping declaration order.

    Raises:
        SchemaDefinitionError: If the mapping, a name, or a field schema is invalid
    """
    if not isinstance(fields, Mapping):
        raise SchemaDefinitionError(
            f"Object fields must be a mapping, got {type(fields).__name__}"
        )
    for name, child in fields.items():
        if not isinstance(name, str):
            raise SchemaDefinitionError(
                f"Object field names must be strings, got {type(name).__name__}",
                context={"field": repr(name)},
            )
        if not isinstance(child, Schema):
            raise SchemaDefinitionError(
                f"Field '{name}' must be a Schema, got {type(child).__name__}",
                context={"field": name},
            )
    return MappingProxyType(dict(fields))


def _length_param(operation: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SchemaDefinitionError(
            f"{operation}() requires a non-negative integer, got {value!r}",
            context={"operation": operation},
        )
    return value


def _number_param(operation: str, value: Any) -> int | float | Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise SchemaDefinitionError(
            f"{operation}() requires a number, got {value!r}",
            context={"operation": operation},
        )
    if isinstance(value, float) and math.isnan(value):
        raise SchemaDefinitionError(f"{operation}() does not accept NaN")
    return value


def _text_param(operation: str, value: Any) -> str:
    if not isinstance(value, str):
        raise SchemaDefinitionError(
            f"{operation}() requires a string, got {type(value).__name__}",
            context={"operation": operation},
        )
    return value


def _callable_param(operation: str, value: Any) -> Callable[[Any], Any]:
    if not callable(value):
        raise SchemaDefinitionError(
            f"{operation}() requires a callable, got {type(value).__name__}",
            context={"operation": operation},
        )
    return value


@dataclass(frozen=True, eq=False, repr=False)
class Schema:
    """Immutable description of one validation unit.

    Schemas compare and hash by identity, so any schema can key a dict or
    sit in a set regardless of its kind.

    Attributes:
        kind: Schema variant
        constraints: Checks run in declaration order after the type check
        is_optional: An absent object key is accepted and left out of the output
        is_nullable: None is accepted as-is
        default_value: Substituted for an absent object key (MISSING if unset)
        coerces: Run type coercion before the type check
        type_message: Overrides the type mismatch message
        coerce_message: Overrides the coercion failure message
        description: Free-text description
        fields: Object field schemas in declaration order
        unknown_keys: Object policy for undeclared keys
        item: Array element schema
        items: Tuple element schemas
        key_schema: Record key schema (None leaves keys unchecked)
        value_schema: Record value schema
        values: Enum literals
        date_formats: ``strptime`` formats used to coerce dates
        refinements: Predicates run on the accepted value
    """

    kind: SchemaKind
    constraints: tuple[Constraint, ...] = ()
    is_optional: bool = False
    is_nullable: bool = False
    default_value: Any = MISSING
    coerces: bool = False
    type_message: str | None = None
    coerce_message: str | None = None
    description: str | None = None
    fields: Mapping[str, Schema] | None = None
    unknown_keys: UnknownKeys = UnknownKeys.PASSTHROUGH
    item: Schema | None = None
    items: tuple[Schema, ...] | None = None
    key_schema: Schema | None = None
    value_schema: Schema | None = None
    values: tuple[Any, ...] | None = None
    date_formats: tuple[str, ...] = ()
    refinements: tuple[RefinementRule, ...] = ()

    def __repr__(self) -> str:
        parts = [self.kind.value]
        parts.extend(type(c).__name__ for c in self.constraints)
        if self.is_optional:
            parts.append("optional")
        if self.is_nullable:
            parts.append("nullable")
        if self.coerces:
            parts.append("coerce")
        if self.fields is not None:
            parts.append(f"fields={list(self.fields)}")
        return f"Schema({', '.join(parts)})"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require(self, operation: str, *kinds: SchemaKind) -> None:
        if self.kind not in kinds:
            raise SchemaDefinitionError(
                f"{operation}() is not supported for {self.kind.value} schemas",
                context={"operation": operation, "kind": self.kind.value},
            )

    def _with_constraint(self, constraint: Constraint) -> Schema:
        return replace(self, constraints=self.constraints + (constraint,))

    def _unit(self) -> str:
        return "items" if self.kind is SchemaKind.ARRAY else "characters"

    def _check_length_order(self, minimum: int | None = None, maximum: int | None = None) -> None:
        for existing in self.constraints:
            if minimum is not None and isinstance(existing, MaxLength) and minimum > existing.limit:
                raise SchemaDefinitionError(
                    f"min length ({minimum}) cannot be greater than max ({existing.limit})"
                )
            if maximum is not None and isinstance(existing, MinLength) and existing.limit > maximum:
                raise SchemaDefinitionError(
                    f"min length ({existing.limit}) cannot be greater than max ({maximum})"
                )

    def _check_bound_order(self, minimum: Any = None, maximum: Any = None) -> None:
        for existing in self.constraints:
            if minimum is not None and isinstance(existing, Maximum):
                low, high = comparable(minimum, existing.limit)
                if low > high:
                    raise SchemaDefinitionError(
                        f"min ({minimum}) cannot be greater than max ({existing.limit})"
                    )
            if maximum is not None and isinstance(existing, Minimum):
                low, high = comparable(existing.limit, maximum)
                if low > high:
                    raise SchemaDefinitionError(
                        f"min ({existing.limit}) cannot be greater than max ({maximum})"
                    )

    def _bound_param(self, operation: str, value: Any) -> Any:
        if self.kind is SchemaKind.DATE:
            if not isinstance(value, date):
                raise SchemaDefinitionError(
                    f"{operation}() on a date schema requires a date, got {value!r}",
                    context={"operation": operation},
                )
            return value
        return _number_param(operation, value)

    # ------------------------------------------------------------------
    # Modifiers available on every kind
    # ------------------------------------------------------------------

    def optional(self) -> Schema:
        """Accept an absent object key."""
        return replace(self, is_optional=True)

    def nullable(self) -> Schema:
        """Accept None."""
        return replace(self, is_nullable=True)

    def default(self, value: Any) -> Schema:
        """Substitute ``value`` when the object key is absent.

        The default is deep-copied for each use and then validated like any
        other input.
        """
        if value is MISSING:
            raise SchemaDefinitionError("default() requires a value")
        return replace(self, default_value=value)

    def describe(self, text: str) -> Schema:
        return replace(self, description=_text_param("describe", text))

    def custom(self, predicate: Callable[[Any], bool], message: str | None = None) -> Schema:
        """Append a predicate check to the constraint pipeline."""
        return self._with_constraint(
            CustomPredicate(_callable_param("custom", predicate), message)
        )

    def refine(self, predicate: Callable[[Any], Any], message: str | None = None) -> Schema:
        """Attach a refinement run on the accepted value.

        Args:
            predicate: Returns True to accept, False to reject with ``message``,
                or a string to reject with that string
            message: Default rejection message

        Returns:
            New Schema carrying the refinement after any existing ones
        """
        from .refinement import make_rule

        rule = make_rule(_callable_param("refine", predicate), message)
        return replace(self, refinements=self.refinements + (rule,))

    # ------------------------------------------------------------------
    # Primitive modifiers
    # ------------------------------------------------------------------

    def coerce(self, message: str | None = None) -> Schema:
        """Convert compatible raw values to this schema's kind before checking."""
        self._require("coerce", *PRIMITIVE_KINDS)
        return replace(self, coerces=True, coerce_message=message or self.coerce_message)

    def one_of(self, values: Iterable[Any], message: str | None = None) -> Schema:
        self._require("one_of", *PRIMITIVE_KINDS)
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise SchemaDefinitionError("one_of() requires a collection of values")
        allowed = tuple(values)
        if not allowed:
            raise SchemaDefinitionError("one_of() requires at least one allowed value")
        return self._with_constraint(OneOf(allowed, message))

    def min(self, limit: Any, message: str | None = None) -> Schema:
        """Require a minimum length (string, array) or lower bound (number, date)."""
        self._require("min", *SIZED_KINDS, *ORDERED_KINDS)
        if self.kind in SIZED_KINDS:
            limit = _length_param("min", limit)
            self._check_length_order(minimum=limit)
            return self._with_constraint(MinLength(limit, self._unit(), message))
        limit = self._bound_param("min", limit)
        self._check_bound_order(minimum=limit)
        return self._with_constraint(Minimum(limit, message=message))

    def max(self, limit: Any, message: str | None = None) -> Schema:
        """Require a maximum length (string, array) or upper bound (number, date)."""
        self._require("max", *SIZED_KINDS, *ORDERED_KINDS)
        if self.kind in SIZED_KINDS:
            limit = _length_param("max", limit)
            self._check_length_order(maximum=limit)
            return self._with_constraint(MaxLength(limit, self._unit(), message))
        limit = self._bound_param("max", limit)
        self._check_bound_order(maximum=limit)
        return self._with_constraint(Maximum(limit, message=message))

    def length(self, size: int, message: str | None = None) -> Schema:
        self._require("length", *SIZED_KINDS)
        return self._with_constraint(
            ExactLength(_length_param("length", size), self._unit(), message)
        )

    def nonempty(self, message: str | None = None) -> Schema:
        return self.min(1, message)

    # ------------------------------------------------------------------
    # String modifiers
    # ------------------------------------------------------------------

    def pattern(self, regex: Any, message: str | None = None) -> Schema:
        """Require a match for ``regex`` (compiled now; search semantics)."""
        self._require("pattern", SchemaKind.STRING)
        return self._with_constraint(Pattern(regex, message))

    def email(self, message: str | None = None) -> Schema:
        self._require("email", SchemaKind.STRING)
        return self._with_constraint(Email(message))

    def uuid(self, message: str | None = None) -> Schema:
        self._require("uuid", SchemaKind.STRING)
        return self._with_constraint(Uuid(message))

    def url(self, message: str | None = None) -> Schema:
        self._require("url", SchemaKind.STRING)
        return self._with_constraint(Url(message))

    def uppercase(self, message: str | None = None) -> Schema:
        self._require("uppercase", SchemaKind.STRING)
        return self._with_constraint(Uppercase(message))

    def lowercase(self, message: str | None = None) -> Schema:
        self._require("lowercase", SchemaKind.STRING)
        return self._with_constraint(Lowercase(message))

    def starts_with(self, prefix: str, message: str | None = None) -> Schema:
        self._require("starts_with", SchemaKind.STRING)
        return self._with_constraint(StartsWith(_text_param("starts_with", prefix), message))

    def ends_with(self, suffix: str, message: str | None = None) -> Schema:
        self._require("ends_with", SchemaKind.STRING)
        return self._with_constraint(EndsWith(_text_param("ends_with", suffix), message))

    def format(self, fmt: str, message: str | None = None) -> Schema:
        """Set a date format.

        On a string schema this appends a check that the text parses with
        ``fmt``. On a date schema it replaces the formats used to coerce
        strings, and ``message`` overrides the coercion failure message.
        """
        self._require("format", SchemaKind.STRING, SchemaKind.DATE)
        fmt = _text_param("format", fmt)
        if "%" not in fmt:
            raise SchemaDefinitionError(
                f"format() requires a strptime format with directives, got '{fmt}'"
            )
        if self.kind is SchemaKind.STRING:
            return self._with_constraint(DateFormat(fmt, message))
        return replace(
            self,
            date_formats=(fmt,),
            coerce_message=message or self.coerce_message,
        )

    # ------------------------------------------------------------------
    # Number modifiers
    # ------------------------------------------------------------------

    def integer(self, message: str | None = None) -> Schema:
        self._require("integer", SchemaKind.NUMBER)
        return self._with_constraint(Integer(message))

    def positive(self, message: str | None = None) -> Schema:
        self._require("positive", SchemaKind.NUMBER)
        return self._with_constraint(Minimum(0, exclusive=True, message=message))

    def negative(self, message: str | None = None) -> Schema:
        self._require("negative", SchemaKind.NUMBER)
        return self._with_constraint(Maximum(0, exclusive=True, message=message))

    def nonnegative(self, message: str | None = None) -> Schema:
        self._require("nonnegative", SchemaKind.NUMBER)
        return self._with_constraint(Minimum(0, message=message))

    def nonpositive(self, message: str | None = None) -> Schema:
        self._require("nonpositive", SchemaKind.NUMBER)
        return self._with_constraint(Maximum(0, message=message))

    def finite(self, message: str | None = None) -> Schema:
        self._require("finite", SchemaKind.NUMBER)
        return self._with_constraint(Finite(message))

    def multiple_of(self, step: int | float | Decimal, message: str | None = None) -> Schema:
        self._require("multiple_of", SchemaKind.NUMBER)
        step = _number_param("multiple_of", step)
        if step <= 0 or not is_finite(step):
            raise SchemaDefinitionError(
                f"multiple_of() requires a positive finite step, got {step}"
            )
        return self._with_constraint(MultipleOf(step, message))

    # ------------------------------------------------------------------
    # Object modifiers
    # ------------------------------------------------------------------

    @property
    def shape(self) -> Mapping[str, Schema]:
        """Declared object fields."""
        self._require("shape", SchemaKind.OBJECT)
        return self.fields or MappingProxyType({})

    def unknown(self, policy: UnknownKeys) -> Schema:
        self._require("unknown", SchemaKind.OBJECT)
        if not isinstance(policy, UnknownKeys):
            raise SchemaDefinitionError(f"Invalid unknown key policy: {policy!r}")
        return replace(self, unknown_keys=policy)

    def strict(self) -> Schema:
        """Report undeclared keys as an issue."""
        return self.unknown(UnknownKeys.STRICT)

    def strip(self) -> Schema:
        """Drop undeclared keys from the output."""
        return self.unknown(UnknownKeys.STRIP)

    def passthrough(self) -> Schema:
        """Copy undeclared keys to the output unchanged."""
        return self.unknown(UnknownKeys.PASSTHROUGH)

    def extend(self, fields: Mapping[str, Schema]) -> Schema:
        """Add fields, replacing any existing field of the same name in place."""
        self._require("extend", SchemaKind.OBJECT)
        added = normalize_fields(fields)
        return replace(self, fields=MappingProxyType({**self.shape, **added}))

    def pick(self, *names: str) -> Schema:
        """Keep only the named fields, in declaration order."""
        self._require("pick", SchemaKind.OBJECT)
        self._check_field_names("pick", names)
        kept = {name: child for name, child in self.shape.items() if name in names}
        return replace(self, fields=MappingProxyType(kept))

    def omit(self, *names: str) -> Schema:
        """Drop the named fields."""
        self._require("omit", SchemaKind.OBJECT)
        self._check_field_names("omit", names)
        kept = {name: child for name, child in self.shape.items() if name not in names}
        return replace(self, fields=MappingProxyType(kept))

    def partial(self) -> Schema:
        """Make every field optional."""
        self._require("partial", SchemaKind.OBJECT)
        relaxed = {name: child.optional() for name, child in self.shape.items()}
        return replace(self, fields=MappingProxyType(relaxed))

    def _check_field_names(self, operation: str, names: tuple[str, ...]) -> None:
        missing = [name for name in names if name not in self.shape]
        if missing:
            raise SchemaDefinitionError(
                f"{operation}() refers to unknown fields: {', '.join(missing)}",
                context={"fields": missing},
            )

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def safe_validate(self, value: Any) -> ValidationResult:
        """Validate without raising; inspect the returned result."""
        from .engine import safe_validate

        return safe_validate(self, value)

    def validate(self, value: Any) -> Any:
        """Validate and return the accepted value.

        Raises:
            ValidationError: With every collected issue, if validation fails
        """
        from .engine import validate

        return validate(self, value)

    def validate_many(self, values: Iterable[Any]) -> list[ValidationResult]:
        """Validate independent values, returning one result per value."""
        from .engine import safe_validate

        return [safe_validate(self, value) for value in values]
