"""Factory for building schemas from configuration."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

import yaml  # type: ignore[import-untyped]

from . import builders
from .exceptions import ConfigurationError, DataknobsSchemaError
from .schema import Schema

logger = logging.getLogger(__name__)

# Constraint name -> whether it takes a value argument
CONSTRAINT_ARITY: dict[str, bool] = {
    "min": True,
    "max": True,
    "length": True,
    "pattern": True,
    "one_of": True,
    "format": True,
    "starts_with": True,
    "ends_with": True,
    "multiple_of": True,
    "nonempty": False,
    "email": False,
    "uuid": False,
    "url": False,
    "uppercase": False,
    "lowercase": False,
    "integer": False,
    "positive": False,
    "negative": False,
    "nonnegative": False,
    "nonpositive": False,
    "finite": False,
}


class SchemaFactory:
    """Factory for creating validation schemas from configuration.

    Configuration Options:
        type (str): string, number, boolean, date, object, array, tuple, record, enum
        optional (bool): Accept an absent key (default: False)
        nullable (bool): Accept None (default: False)
        default (any): Value used when the key is absent
        coerce (bool): Convert compatible raw values before checking
        message (str): Type mismatch message
        description (str): Free-text description
        constraints (list): Constraint definitions, applied in order

    Kind-specific Options:
        fields (dict): object field configurations, in declaration order
        unknown_keys (str): object policy: passthrough, strip or strict
        item (dict): array element configuration
        items (list): tuple element configurations
        key (dict) / value (dict): record key and value configurations
        values (list): enum literals
        formats (list): date formats for coercion

    Constraint Definition Options:
        type (str): Modifier name (min, max, length, pattern, email, ...)
        value (any): Modifier argument, for modifiers that take one
        message (str): Message used when the constraint fails

    Example Configuration:
        name: user_schema
        type: object
        unknown_keys: strict
        fields:
          username:
            type: string
            constraints:
              - type: min
                value: 3
              - type: pattern
                value: "^[a-zA-Z0-9_]+$"
          age:
            type: number
            optional: true
            constraints:
              - type: integer
              - type: min
                value: 13
    """

    def __init__(self) -> None:
        self._kinds: dict[str, Callable[[Mapping[str, Any], str], Schema]] = {
            "string": lambda config, where: builders.string(config.get("message")),
            "number": lambda config, where: builders.number(config.get("message")),
            "boolean": lambda config, where: builders.boolean(config.get("message")),
            "date": lambda config, where: builders.date(
                config.get("formats"), config.get("message")
            ),
            "object": self._build_object,
            "array": self._build_array,
            "tuple": self._build_tuple,
            "record": self._build_record,
            "enum": lambda config, where: builders.enum(
                self._require(config, "values", where), config.get("message")
            ),
        }

    def create(self, **config: Any) -> Schema:
        """Create a Schema from configuration.

        Args:
            **config: Schema configuration

        Returns:
            Schema instance

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        name = config.get("name", "unnamed_schema")
        logger.info(f"Creating schema: {name}")
        return self.build(config)

    def build(self, config: Mapping[str, Any], where: str = "<root>") -> Schema:
        """Build a schema node and its children from a configuration mapping."""
        if not isinstance(config, Mapping):
            raise ConfigurationError(
                f"Schema configuration at {where} must be a mapping, got {type(config).__name__}",
                context={"location": where},
            )
        kind = str(config.get("type", "")).lower()
        builder = self._kinds.get(kind)
        if builder is None:
            raise ConfigurationError(
                f"Unknown schema type '{config.get('type')}' at {where}",
                context={"location": where, "known_types": sorted(self._kinds)},
            )

        try:
            schema = builder(config, where)
            schema = self._apply_constraints(schema, config.get("constraints") or [], where)
            schema = self._apply_modifiers(schema, config)
        except ConfigurationError:
            raise
        except DataknobsSchemaError as e:
            raise ConfigurationError(
                f"Invalid schema configuration at {where}: {e.message}",
                context={"location": where, **e.context},
            ) from e
        return schema

    def _require(self, config: Mapping[str, Any], key: str, where: str) -> Any:
        if key not in config:
            raise ConfigurationError(
                f"Schema configuration at {where} is missing '{key}'",
                context={"location": where},
            )
        return config[key]

    def _build_object(self, config: Mapping[str, Any], where: str) -> Schema:
        fields = self._require(config, "fields", where)
        if not isinstance(fields, Mapping):
            raise ConfigurationError(f"Object fields at {where} must be a mapping")
        children = {
            name: self.build(child, f"{where}.{name}") for name, child in fields.items()
        }
        return builders.object(children, config.get("unknown_keys"), config.get("message"))

    def _build_array(self, config: Mapping[str, Any], where: str) -> Schema:
        item = self.build(self._require(config, "item", where), f"{where}[]")
        return builders.array(item, config.get("message"))

    def _build_tuple(self, config: Mapping[str, Any], where: str) -> Schema:
        items = self._require(config, "items", where)
        if not isinstance(items, list):
            raise ConfigurationError(f"Tuple items at {where} must be a list")
        children = [self.build(child, f"{where}[{index}]") for index, child in enumerate(items)]
        return builders.tuple(children, config.get("message"))

    def _build_record(self, config: Mapping[str, Any], where: str) -> Schema:
        value = self.build(self._require(config, "value", where), f"{where}{{}}")
        if "key" in config:
            key = self.build(config["key"], f"{where}{{key}}")
            return builders.record(key, value, config.get("message"))
        return builders.record(value, message=config.get("message"))

    def _apply_constraints(
        self, schema: Schema, constraints: list[Mapping[str, Any]], where: str
    ) -> Schema:
        for definition in constraints:
            if not isinstance(definition, Mapping):
                raise ConfigurationError(f"Constraint definition at {where} must be a mapping")
            name = str(definition.get("type", "")).lower()
            if name not in CONSTRAINT_ARITY:
                raise ConfigurationError(
                    f"Unknown constraint type '{definition.get('type')}' at {where}",
                    context={"location": where, "known_constraints": sorted(CONSTRAINT_ARITY)},
                )
            modifier = getattr(schema, name)
            message = definition.get("message")
            if CONSTRAINT_ARITY[name]:
                schema = modifier(self._require(definition, "value", f"{where} ({name})"), message)
            else:
                schema = modifier(message)
        return schema

    def _apply_modifiers(self, schema: Schema, config: Mapping[str, Any]) -> Schema:
        if config.get("coerce"):
            schema = schema.coerce()
        if config.get("optional"):
            schema = schema.optional()
        if config.get("nullable"):
            schema = schema.nullable()
        if "default" in config:
            schema = schema.default(config["default"])
        if config.get("description"):
            schema = schema.describe(config["description"])
        return schema


def load_schema(text: str, factory: SchemaFactory | None = None) -> Schema:
    """Build a schema from a YAML document.

    Args:
        text: YAML text describing one schema
        factory: Factory to use (defaults to ``schema_factory``)

    Returns:
        Schema instance

    Raises:
        ConfigurationError: If the YAML is malformed or describes an invalid schema
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid schema YAML: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError("Schema YAML must describe a mapping")
    return (factory or schema_factory).create(**{str(key): value for key, value in data.items()})


# Singleton instance for registration
schema_factory = SchemaFactory()
