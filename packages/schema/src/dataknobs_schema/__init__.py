"""Declarative schema validation for dataknobs.

This package provides composable, immutable schemas that check loosely typed
input and report either the accepted value or every violation found:

- **Schemas**: String, number, boolean, date, object, array, tuple, record and
  enum nodes built with a fluent API where each modifier returns a new schema
- **Issues**: Every failure carries its message, exact path, offending value
  and a symbolic code
- **Coercion**: Optional narrow conversion of raw strings before checking
- **Refinements**: Predicates over structurally valid output, for cross-field
  and cross-entity rules
- **Factories**: Schemas built from configuration mappings or YAML

Example:
    ```python
    from dataknobs_schema import z, ValidationError

    user = z.object({
        "id": z.number(),
        "name": z.string().min(3).max(50),
        "email": z.string().email("Invalid email address"),
        "age": z.number().integer("Age must be an integer"),
    }).refine(
        lambda data: data["age"] >= 18 or "User must be at least 18 years old"
    )

    result = user.safe_validate({"id": "x", "name": "Jo"})
    for issue in result.errors:
        print(issue.location, issue.code.value, issue.message)
    ```
"""

from . import builders as z
from .coercion import Coercer
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
)
from .engine import SchemaValidator, safe_validate, validate
from .exceptions import (
    CoercionError,
    ConfigurationError,
    DataknobsSchemaError,
    SchemaDefinitionError,
    ValidationError,
)
from .factory import SchemaFactory, load_schema, schema_factory
from .issues import Issue, IssueCode, format_path
from .refinement import Refinement, RefinementRule
from .result import ValidationContext, ValidationResult
from .schema import MISSING, Schema, SchemaKind, UnknownKeys
from .settings import SchemaSettings, configure, get_settings, reset_settings

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Builders
    "z",
    # Schema
    "Schema",
    "SchemaKind",
    "UnknownKeys",
    "MISSING",
    # Entry points
    "validate",
    "safe_validate",
    "SchemaValidator",
    # Results and issues
    "ValidationResult",
    "ValidationContext",
    "Issue",
    "IssueCode",
    "format_path",
    # Refinements
    "Refinement",
    "RefinementRule",
    # Constraints
    "Constraint",
    "MinLength",
    "MaxLength",
    "ExactLength",
    "Pattern",
    "Email",
    "Uuid",
    "Url",
    "Uppercase",
    "Lowercase",
    "StartsWith",
    "EndsWith",
    "DateFormat",
    "Minimum",
    "Maximum",
    "Integer",
    "Finite",
    "MultipleOf",
    "OneOf",
    "CustomPredicate",
    # Coercion
    "Coercer",
    # Exceptions
    "DataknobsSchemaError",
    "ValidationError",
    "SchemaDefinitionError",
    "CoercionError",
    "ConfigurationError",
    # Settings
    "SchemaSettings",
    "get_settings",
    "configure",
    "reset_settings",
    # Factories
    "SchemaFactory",
    "schema_factory",
    "load_schema",
]
