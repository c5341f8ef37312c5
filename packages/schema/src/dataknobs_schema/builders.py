"""Factory operations returning base schemas.

This module is exported as the namespace ``z``. Some factories share their
names with builtins (``object``, ``tuple``), so use them qualified:

    ```python
    from dataknobs_schema import z

    line_item = z.object({
        "sku": z.string().pattern(r"^[A-Z]{3}-\\d{4}$"),
        "quantity": z.number().integer().positive(),
    })
    order = z.object({
        "items": z.array(line_item).min(1, "Order must have at least one item"),
        "status": z.enum(["pending", "paid", "shipped"]).default("pending"),
    })
    ```
"""

from __future__ import annotations

import builtins
from collections.abc import Iterable, Mapping
from typing import Any

from .exceptions import SchemaDefinitionError
from .refinement import Refinement
from .schema import Schema, SchemaKind, UnknownKeys, normalize_fields
from .settings import get_settings, parse_unknown_keys


def _child(role: str, value: Any) -> Schema:
    if not isinstance(value, Schema):
        raise SchemaDefinitionError(
            f"{role} must be a Schema, got {type(value).__name__}",
            context={"role": role},
        )
    return value


def string(message: str | None = None) -> Schema:
    return Schema(SchemaKind.STRING, type_message=message)


def number(message: str | None = None) -> Schema:
    return Schema(SchemaKind.NUMBER, type_message=message)


def boolean(message: str | None = None) -> Schema:
    return Schema(SchemaKind.BOOLEAN, type_message=message)


def date(formats: Iterable[str] | None = None, message: str | None = None) -> Schema:
    """Create a date schema.

    Args:
        formats: ``strptime`` formats used when coercing strings; defaults to
            the configured date formats (ISO-8601 when none are configured)
        message: Overrides the type mismatch message
    """
    if formats is None:
        date_formats = get_settings().date_formats
    else:
        if isinstance(formats, str):
            formats = [formats]
        date_formats = builtins.tuple(formats)
        for fmt in date_formats:
            if not isinstance(fmt, str) or "%" not in fmt:
                raise SchemaDefinitionError(f"Invalid date format: {fmt!r}")
    return Schema(SchemaKind.DATE, type_message=message, date_formats=date_formats)


def object(
    fields: Mapping[str, Schema],
    unknown_keys: UnknownKeys | str | None = None,
    message: str | None = None,
) -> Schema:
    """Create an object schema.

    Args:
        fields: Field schemas; validation and output follow this order
        unknown_keys: Policy for undeclared keys; defaults to the configured
            policy (pass-through unless configured otherwise)
        message: Overrides the type mismatch message
    """
    policy = (
        get_settings().unknown_keys
        if unknown_keys is None
        else parse_unknown_keys(unknown_keys)
    )
    return Schema(
        SchemaKind.OBJECT,
        fields=normalize_fields(fields),
        unknown_keys=policy,
        type_message=message,
    )


def array(item: Schema, message: str | None = None) -> Schema:
    return Schema(SchemaKind.ARRAY, item=_child("Array item", item), type_message=message)


def tuple(items: Iterable[Schema], message: str | None = None) -> Schema:
    if isinstance(items, Schema) or not isinstance(items, Iterable):
        raise SchemaDefinitionError("tuple() requires a sequence of schemas")
    children = builtins.tuple(
        _child(f"Tuple item {index}", child) for index, child in enumerate(items)
    )
    return Schema(SchemaKind.TUPLE, items=children, type_message=message)


def record(
    key_or_value: Schema,
    value: Schema | None = None,
    message: str | None = None,
) -> Schema:
    """Create a record schema (a mapping with arbitrary keys).

    Called with one schema, it checks every value and leaves keys unchecked.
    Called with two, the first checks keys (as strings) and the second values.
    """
    if value is None:
        return Schema(
            SchemaKind.RECORD,
            value_schema=_child("Record value", key_or_value),
            type_message=message,
        )
    key_schema = _child("Record key", key_or_value)
    if key_schema.kind not in (SchemaKind.STRING, SchemaKind.ENUM):
        raise SchemaDefinitionError(
            f"Record keys must use a string or enum schema, got {key_schema.kind.value}"
        )
    return Schema(
        SchemaKind.RECORD,
        key_schema=key_schema,
        value_schema=_child("Record value", value),
        type_message=message,
    )


def enum(values: Iterable[Any], message: str | None = None) -> Schema:
    """Create a schema accepting exactly one of a closed set of literals.

    Raises:
        SchemaDefinitionError: If values are empty, repeated, or not scalars
    """
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        raise SchemaDefinitionError("enum() requires a collection of literal values")
    literals = builtins.tuple(values)
    if not literals:
        raise SchemaDefinitionError("enum() requires at least one value")
    seen: list[Any] = []
    for literal in literals:
        if not isinstance(literal, (str, int, float)):
            raise SchemaDefinitionError(
                f"enum() values must be literals, got {type(literal).__name__}"
            )
        if any(type(literal) is type(prior) and literal == prior for prior in seen):
            raise SchemaDefinitionError(f"enum() value {literal!r} is repeated")
        seen.append(literal)
    return Schema(SchemaKind.ENUM, values=literals, type_message=message)


def refinement() -> Refinement:
    """Start a standalone refinement; continue with ``.input()`` and ``.predicate()``."""
    return Refinement()
