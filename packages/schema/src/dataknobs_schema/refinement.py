"""Refinements: predicate checks over structurally valid output.

A refinement runs only after the schema it is attached to has accepted a
value without any issue anywhere in its subtree. It receives the accepted
(coerced and defaulted) value, which makes it the place for cross-field and
cross-entity rules.

Example:
    ```python
    from dataknobs_schema import z

    product = z.object({"id": z.number(), "categoryId": z.number()})
    categories = z.array(z.object({"id": z.number()}))

    rule = (
        z.refinement()
        .input(z.tuple([product, categories]))
        .predicate(
            lambda values: any(c["id"] == values[0]["categoryId"] for c in values[1]),
            "Product must reference an existing category",
        )
    )
    rule.validate([{"id": 1, "categoryId": 7}, [{"id": 7}]])
    ```
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

from .exceptions import SchemaDefinitionError
from .issues import IssueCode

if TYPE_CHECKING:
    from .result import ValidationContext, ValidationResult
    from .schema import Schema

logger = logging.getLogger(__name__)

DEFAULT_REFINEMENT_MESSAGE = "Invalid value"

Predicate = Callable[[Any], Any]


@dataclass(frozen=True)
class RefinementRule:
    """A predicate with the message used when it rejects a value.

    The predicate returns True to accept, False to reject with ``message``,
    or a non-empty string to reject with that string instead.
    """

    predicate: Predicate
    message: str = DEFAULT_REFINEMENT_MESSAGE

    def __post_init__(self) -> None:
        if not callable(self.predicate):
            raise SchemaDefinitionError(
                f"Refinement predicate must be callable, got {type(self.predicate).__name__}"
            )
        if not isinstance(self.message, str):
            raise SchemaDefinitionError(
                f"Refinement message must be a string, got {type(self.message).__name__}"
            )

    def evaluate(self, value: Any) -> str | None:
        """Run the predicate.

        Args:
            value: Accepted value to check

        Returns:
            None if the value is accepted, otherwise the rejection message
        """
        try:
            outcome = self.predicate(value)
        except Exception as e:
            logger.warning(f"Refinement predicate raised {type(e).__name__}: {e!s}")
            return self.message

        if isinstance(outcome, bool):
            return None if outcome else self.message
        if isinstance(outcome, str):
            return outcome or self.message
        return f"Refinement returned unexpected type: {type(outcome).__name__}"


def apply_refinements(
    rules: Iterable[RefinementRule],
    value: Any,
    context: ValidationContext,
) -> None:
    """Run every rule in order, recording each rejection at the context path."""
    for rule in rules:
        message = rule.evaluate(value)
        if message is not None:
            context.add_issue(IssueCode.REFINEMENT_FAILED, message, value)


def make_rule(predicate: Predicate, message: str | None = None) -> RefinementRule:
    if message is None:
        return RefinementRule(predicate)
    return RefinementRule(predicate, message)


@dataclass(frozen=True)
class Refinement:
    """Standalone refinement over one schema, usually a tuple of schemas.

    Built fluently; each call returns a new Refinement.
    """

    source: Schema | None = None
    rules: tuple[RefinementRule, ...] = ()

    def input(self, schema: Schema) -> Refinement:
        """Set the schema whose accepted output the predicates receive."""
        from .schema import Schema

        if not isinstance(schema, Schema):
            raise SchemaDefinitionError(
                f"Refinement input must be a Schema, got {type(schema).__name__}"
            )
        return replace(self, source=schema)

    def predicate(self, fn: Predicate, message: str | None = None) -> Refinement:
        """Append a predicate.

        For a tuple input the predicate receives the accepted values as one
        ordered list.
        """
        return replace(self, rules=self.rules + (make_rule(fn, message),))

    @property
    def schema(self) -> Schema:
        """The input schema with every predicate attached as a refinement."""
        if self.source is None:
            raise SchemaDefinitionError("Refinement has no input schema; call input() first")
        return replace(self.source, refinements=self.source.refinements + self.rules)

    def safe_validate(self, values: Any) -> ValidationResult:
        return self.schema.safe_validate(values)

    def validate(self, values: Any) -> Any:
        """Validate values and run the predicates.

        Returns:
            The accepted values

        Raises:
            ValidationError: If structural validation or any predicate fails
        """
        return self.schema.validate(values)
