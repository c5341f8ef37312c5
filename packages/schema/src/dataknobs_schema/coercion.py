"""Type coercion applied before a node's base type check.

Conversions are deliberately narrow. A value that already has the target
kind, or whose type has no defined conversion, is returned unchanged and left
for the type check to judge. Only a string that looks convertible but cannot
be converted is a coercion failure.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from .exceptions import CoercionError
from .schema import SchemaKind

_INTEGER_LITERAL = re.compile(r"^[+-]?\d+$")
_NUMBER_LITERAL = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
_TIME_DIRECTIVE = re.compile(r"%[HIMSfpzZXc]")


def has_time_directives(fmt: str) -> bool:
    """Check whether a ``strptime`` format carries time-of-day fields."""
    return _TIME_DIRECTIVE.search(fmt) is not None


class Coercer:
    """Convert raw values to a schema kind.

    Coercer holds no state, so one instance can be shared by any number of
    concurrent validation calls.
    """

    TRUE_LITERALS = frozenset({"true", "1", "yes", "y", "on"})
    FALSE_LITERALS = frozenset({"false", "0", "no", "n", "off"})

    def __init__(self) -> None:
        self._coercions: dict[SchemaKind, Callable[[Any, Sequence[str]], Any]] = {
            SchemaKind.STRING: self._to_string,
            SchemaKind.NUMBER: self._to_number,
            SchemaKind.BOOLEAN: self._to_boolean,
            SchemaKind.DATE: self._to_date,
        }

    def supports(self, kind: SchemaKind) -> bool:
        return kind in self._coercions

    def coerce(self, value: Any, kind: SchemaKind, date_formats: Sequence[str] = ()) -> Any:
        """Coerce a value to the target kind.

        Args:
            value: Raw value
            kind: Target schema kind
            date_formats: ``strptime`` formats tried in order for DATE; empty
                means ISO-8601

        Returns:
            The converted value, or the original value when no conversion applies

        Raises:
            CoercionError: If the value cannot be converted
        """
        coercion = self._coercions.get(kind)
        if coercion is None:
            return value
        return coercion(value, date_formats)

    def _to_string(self, value: Any, date_formats: Sequence[str]) -> Any:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float, Decimal)):
            return str(value)
        return value

    def _to_number(self, value: Any, date_formats: Sequence[str]) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()
        try:
            if _INTEGER_LITERAL.match(text):
                return int(text)
            if _NUMBER_LITERAL.match(text):
                number = float(text)
                if math.isfinite(number):
                    return number
        except ValueError as e:
            # int() refuses literals past the interpreter's digit limit
            raise CoercionError(
                f"Cannot convert '{value}' to a number", target="number", value=value
            ) from e
        raise CoercionError(f"Cannot convert '{value}' to a number", target="number", value=value)

    def _to_boolean(self, value: Any, date_formats: Sequence[str]) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip().lower()
        if text in self.TRUE_LITERALS:
            return True
        if text in self.FALSE_LITERALS:
            return False
        raise CoercionError(f"Cannot convert '{value}' to a boolean", target="boolean", value=value)

    def _to_date(self, value: Any, date_formats: Sequence[str]) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()

        if not date_formats:
            try:
                if len(text) == 10:
                    return date.fromisoformat(text)
                return datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError as e:
                raise CoercionError(
                    f"Cannot convert '{value}' to a date: expected ISO-8601",
                    target="date",
                    value=value,
                ) from e

        for fmt in date_formats:
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            return parsed if has_time_directives(fmt) else parsed.date()

        raise CoercionError(
            f"Cannot convert '{value}' to a date using format {', '.join(date_formats)}",
            target="date",
            value=value,
        )
