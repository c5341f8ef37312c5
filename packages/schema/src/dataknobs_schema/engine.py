"""Recursive validation engine and the two entry points.

Per node, in order:

1. An absent value takes the default, is skipped if optional, or is reported
   as a missing required field.
2. None is accepted if the node is nullable, otherwise reported.
3. Coercion runs if enabled; a failure stops the node.
4. The base type check runs; a mismatch stops the node.
5. Every constraint runs in declaration order and each failure is recorded.
6. Composite nodes recurse into their children, collecting every issue.
7. Refinements run on the accepted value if the node's subtree is clean.

The safe entry point returns a ValidationResult and never raises for invalid
data; the strict entry point is a thin wrapper that raises ValidationError.
"""

from __future__ import annotations

import copy
import logging
import math
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from typing import Any

from .coercion import Coercer
from .constraints import same_literal
from .exceptions import CoercionError, DataknobsSchemaError, SchemaDefinitionError
from .issues import IssueCode, Path
from .refinement import apply_refinements
from .result import ValidationContext, ValidationResult
from .schema import MISSING, Schema, SchemaKind, UnknownKeys

logger = logging.getLogger(__name__)

TYPE_NAMES: dict[SchemaKind, str] = {
    SchemaKind.STRING: "a string",
    SchemaKind.NUMBER: "a number",
    SchemaKind.BOOLEAN: "a boolean",
    SchemaKind.DATE: "a date",
    SchemaKind.OBJECT: "an object",
    SchemaKind.ARRAY: "an array",
    SchemaKind.TUPLE: "a tuple",
    SchemaKind.RECORD: "a record",
    SchemaKind.ENUM: "an enum value",
}


def is_number(value: Any) -> bool:
    """Real numbers only: bool and NaN are rejected."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        return False
    if isinstance(value, float):
        return not math.isnan(value)
    if isinstance(value, Decimal):
        return not value.is_nan()
    return True


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


TYPE_CHECKS: dict[SchemaKind, Callable[[Schema, Any], bool]] = {
    SchemaKind.STRING: lambda schema, value: isinstance(value, str),
    SchemaKind.NUMBER: lambda schema, value: is_number(value),
    SchemaKind.BOOLEAN: lambda schema, value: isinstance(value, bool),
    SchemaKind.DATE: lambda schema, value: isinstance(value, date),
    SchemaKind.OBJECT: lambda schema, value: isinstance(value, Mapping),
    SchemaKind.ARRAY: lambda schema, value: _is_sequence(value),
    SchemaKind.TUPLE: lambda schema, value: _is_sequence(value),
    SchemaKind.RECORD: lambda schema, value: isinstance(value, Mapping),
    SchemaKind.ENUM: lambda schema, value: any(
        same_literal(value, allowed) for allowed in schema.values or ()
    ),
}


def _required_message(path: Path) -> str:
    if path:
        return f"Field '{path[-1]}' is required"
    return "A value is required"


def _path_segment(key: Any) -> str | int:
    if isinstance(key, (str, int)) and not isinstance(key, bool):
        return key
    return str(key)


class SchemaValidator:
    """Walks a schema against a value.

    The validator holds no per-call state; every call to ``run`` builds its
    own ValidationContext, so one instance can serve concurrent callers.
    """

    def __init__(self, coercer: Coercer | None = None):
        """Initialize the validator.

        Args:
            coercer: Coercer used by nodes with coercion enabled
        """
        self.coercer = coercer or Coercer()
        self._descend: dict[SchemaKind, Callable[[Schema, Any, ValidationContext], Any]] = {
            SchemaKind.OBJECT: self._walk_object,
            SchemaKind.ARRAY: self._walk_array,
            SchemaKind.TUPLE: self._walk_tuple,
            SchemaKind.RECORD: self._walk_record,
        }

    def run(self, schema: Schema, value: Any) -> ValidationResult:
        """Validate a value against a schema.

        Args:
            schema: Schema to validate against
            value: Raw input (MISSING stands for an absent value)

        Returns:
            ValidationResult with the accepted value or every issue found
        """
        context = ValidationContext()
        output = self.walk(schema, value, context)
        if context.issues:
            logger.debug(
                f"Validation against {schema.kind.value} schema failed "
                f"with {len(context.issues)} issue(s)"
            )
            return ValidationResult.fail(context.issues)
        return ValidationResult.ok(None if output is MISSING else output)

    def accepts(self, schema: Schema, value: Any) -> bool:
        """Run the base type check for the schema's kind."""
        check = TYPE_CHECKS.get(schema.kind)
        if check is None:
            raise DataknobsSchemaError(
                f"Unsupported schema kind: {schema.kind!r}",
                context={"kind": str(schema.kind)},
            )
        return check(schema, value)

    def walk(self, schema: Schema, value: Any, context: ValidationContext) -> Any:
        """Validate one node and its subtree.

        Returns:
            The node's output value, or MISSING for a skipped optional field
        """
        if value is MISSING:
            if schema.default_value is not MISSING:
                value = copy.deepcopy(schema.default_value)
            elif schema.is_optional:
                return MISSING
            else:
                context.add_issue(
                    IssueCode.MISSING_REQUIRED_FIELD, _required_message(context.path), None
                )
                return MISSING

        if value is None:
            if not schema.is_nullable:
                context.add_issue(IssueCode.NULL_NOT_ALLOWED, "The value must not be null", None)
            return None

        if schema.coerces:
            try:
                value = self.coercer.coerce(value, schema.kind, schema.date_formats)
            except CoercionError as e:
                context.add_issue(
                    IssueCode.COERCION_FAILED, schema.coerce_message or e.message, value
                )
                return value

        if not self.accepts(schema, value):
            self._report_type_mismatch(schema, value, context)
            return value

        mark = context.mark()
        for constraint in schema.constraints:
            if not constraint.check(value):
                context.add_issue(constraint.code, constraint.render(value), value)

        descend = self._descend.get(schema.kind)
        output = descend(schema, value, context) if descend is not None else value

        if schema.refinements and context.clean_since(mark):
            apply_refinements(schema.refinements, output, context)
        return output

    def _report_type_mismatch(
        self, schema: Schema, value: Any, context: ValidationContext
    ) -> None:
        if schema.kind is SchemaKind.ENUM:
            allowed = ", ".join(repr(v) for v in schema.values or ())
            message = schema.type_message or f"The value must be one of: {allowed}"
            context.add_issue(IssueCode.NOT_ONE_OF, message, value)
            return
        message = schema.type_message or f"The value must be {TYPE_NAMES[schema.kind]}"
        context.add_issue(IssueCode.TYPE_MISMATCH, message, value)

    def _walk_object(
        self, schema: Schema, value: Mapping[Any, Any], context: ValidationContext
    ) -> dict[Any, Any]:
        declared = schema.fields or {}

        if schema.unknown_keys is UnknownKeys.STRICT:
            unknown = [key for key in value if key not in declared]
            if unknown:
                context.add_issue(
                    IssueCode.UNRECOGNIZED_KEYS,
                    f"Unrecognized keys: {', '.join(str(key) for key in unknown)}",
                    unknown,
                )

        output: dict[Any, Any] = {}
        for name, child in declared.items():
            raw = value[name] if name in value else MISSING
            accepted = self.walk(child, raw, context.child(name))
            if accepted is not MISSING:
                output[name] = accepted

        if schema.unknown_keys is UnknownKeys.PASSTHROUGH:
            for key, extra in value.items():
                if key not in declared:
                    output[key] = extra
        return output

    def _walk_array(
        self, schema: Schema, value: list[Any] | tuple[Any, ...], context: ValidationContext
    ) -> list[Any]:
        item_schema = schema.item
        if item_schema is None:
            return list(value)
        return [
            self.walk(item_schema, element, context.child(index))
            for index, element in enumerate(value)
        ]

    def _walk_tuple(
        self, schema: Schema, value: list[Any] | tuple[Any, ...], context: ValidationContext
    ) -> list[Any]:
        items = schema.items or ()
        if len(value) != len(items):
            context.add_issue(
                IssueCode.TUPLE_ARITY_MISMATCH,
                f"The value must have exactly {len(items)} items, got {len(value)}",
                value,
            )
            return list(value)
        return [
            self.walk(item_schema, element, context.child(index))
            for index, (item_schema, element) in enumerate(zip(items, value))
        ]

    def _walk_record(
        self, schema: Schema, value: Mapping[Any, Any], context: ValidationContext
    ) -> dict[Any, Any]:
        output: dict[Any, Any] = {}
        for key, entry in value.items():
            entry_context = context.child(_path_segment(key))
            accepted_key = key
            if schema.key_schema is not None:
                accepted_key = self.walk(schema.key_schema, key, entry_context)
            if schema.value_schema is not None:
                entry = self.walk(schema.value_schema, entry, entry_context)
            if accepted_key is not MISSING and entry is not MISSING:
                output[accepted_key] = entry
        return output


_validator = SchemaValidator()


def safe_validate(schema: Schema, value: Any) -> ValidationResult:
    """Validate without raising for invalid data.

    Args:
        schema: Schema to validate against
        value: Raw input

    Returns:
        ValidationResult; inspect ``success`` before using ``data``
    """
    if not isinstance(schema, Schema):
        raise SchemaDefinitionError(
            f"Expected a Schema, got {type(schema).__name__}"
        )
    return _validator.run(schema, value)


def validate(schema: Schema, value: Any) -> Any:
    """Validate and return the accepted value.

    Raises:
        ValidationError: With every collected issue, if validation fails
    """
    return safe_validate(schema, value).raise_for_errors()
