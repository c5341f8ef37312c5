"""Tests for building schemas from configuration."""

import logging
from datetime import date

import pytest

from dataknobs_schema import (
    ConfigurationError,
    IssueCode,
    SchemaFactory,
    SchemaKind,
    UnknownKeys,
    load_schema,
    schema_factory,
    z,
)

USER_YAML = """
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
        message: Only letters, digits and underscores
  email:
    type: string
    constraints:
      - type: email
  age:
    type: number
    optional: true
    coerce: true
    constraints:
      - type: integer
      - type: min
        value: 13
  role:
    type: enum
    values: [admin, member]
    default: member
"""


def _user_builders():
    return z.object({
        "username": z.string().min(3).pattern(
            "^[a-zA-Z0-9_]+$", "Only letters, digits and underscores"
        ),
        "email": z.string().email(),
        "age": z.number().integer().min(13).coerce().optional(),
        "role": z.enum(["admin", "member"]).default("member"),
    }).strict()


class TestSchemaFactory:
    """Test SchemaFactory.create with configuration mappings."""

    def test_create_primitive(self):
        schema = schema_factory.create(type="string", constraints=[{"type": "max", "value": 5}])
        assert schema.kind is SchemaKind.STRING
        assert not schema.safe_validate("toolong").success

    def test_modifiers(self):
        schema = schema_factory.create(
            type="number", nullable=True, coerce=True, description="Quantity"
        )
        assert schema.is_nullable
        assert schema.coerces
        assert schema.description == "Quantity"

    def test_composites(self):
        schema = schema_factory.create(
            type="object",
            fields={
                "tags": {"type": "array", "item": {"type": "string"}},
                "point": {"type": "tuple", "items": [{"type": "number"}, {"type": "number"}]},
                "scores": {
                    "type": "record",
                    "key": {"type": "string"},
                    "value": {"type": "number"},
                },
                "counts": {"type": "record", "value": {"type": "number"}},
            },
        )
        data = {"tags": ["a"], "point": [1, 2], "scores": {"x": 1.5}, "counts": {"y": 2}}
        assert schema.validate(data) == data
        assert schema.shape["scores"].key_schema.kind is SchemaKind.STRING
        assert schema.shape["counts"].key_schema is None

    def test_matches_builders(self):
        """Test that configuration and builders give the same outcomes."""
        from_config = load_schema(USER_YAML)
        from_builders = _user_builders()
        inputs = [
            {"username": "jo", "email": "bad", "age": "12.5", "extra": 1},
            {"username": "joe_99", "email": "joe@example.com"},
            {"username": "joe 99", "email": "joe@example.com", "age": "30", "role": "owner"},
            {"username": "joe_99", "email": "joe@example.com", "age": "14", "role": "admin"},
        ]
        for value in inputs:
            assert from_config.safe_validate(value) == from_builders.safe_validate(value)

    def test_yaml_outcome(self):
        schema = load_schema(USER_YAML)
        assert schema.unknown_keys is UnknownKeys.STRICT
        assert schema.validate({"username": "joe", "email": "joe@example.com", "age": "20"}) == {
            "username": "joe",
            "email": "joe@example.com",
            "age": 20,
            "role": "member",
        }
        result = schema.safe_validate({"username": "j!", "email": "joe@example.com"})
        assert [(i.path, i.code) for i in result.errors] == [
            (("username",), IssueCode.MIN_LENGTH),
            (("username",), IssueCode.PATTERN_MISMATCH),
        ]
        assert result.errors[1].message == "Only letters, digits and underscores"

    def test_yaml_dates(self):
        schema = load_schema("""
type: date
coerce: true
formats: ["%d/%m/%Y"]
constraints:
  - type: min
    value: 2024-01-01
""")
        assert schema.validate("02/01/2024") == date(2024, 1, 2)
        assert not schema.safe_validate("31/12/2023").success

    def test_create_logs(self, caplog):
        with caplog.at_level(logging.INFO, logger="dataknobs_schema.factory"):
            SchemaFactory().create(name="flag", type="boolean")
        assert "Creating schema: flag" in caplog.text


class TestFactoryErrors:
    """Test that invalid configuration raises ConfigurationError."""

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="Unknown schema type 'blob'"):
            schema_factory.create(type="blob")

    def test_missing_type(self):
        with pytest.raises(ConfigurationError):
            schema_factory.create(optional=True)

    def test_unknown_constraint(self):
        with pytest.raises(ConfigurationError, match="Unknown constraint type 'shout'"):
            schema_factory.create(type="string", constraints=[{"type": "shout"}])

    def test_missing_constraint_value(self):
        with pytest.raises(ConfigurationError, match="missing 'value'"):
            schema_factory.create(type="string", constraints=[{"type": "min"}])

    def test_missing_kind_payload(self):
        with pytest.raises(ConfigurationError, match="missing 'fields'"):
            schema_factory.create(type="object")
        with pytest.raises(ConfigurationError, match="missing 'values'"):
            schema_factory.create(type="enum")

    def test_nested_error_location(self):
        with pytest.raises(ConfigurationError, match=r"<root>\.items\[\]"):
            schema_factory.create(
                type="object",
                fields={"items": {"type": "array", "item": {"type": "nope"}}},
            )

    def test_definition_errors_wrapped(self):
        """Test that invalid modifier arguments surface as configuration errors."""
        with pytest.raises(ConfigurationError, match="Invalid pattern") as exc_info:
            schema_factory.create(
                type="string", constraints=[{"type": "pattern", "value": "("}]
            )
        assert exc_info.value.context["location"] == "<root>"

    def test_unsupported_constraint_for_kind(self):
        with pytest.raises(ConfigurationError, match="not supported for number"):
            schema_factory.create(type="number", constraints=[{"type": "email"}])

    def test_invalid_yaml(self):
        with pytest.raises(ConfigurationError, match="Invalid schema YAML"):
            load_schema("type: [string")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_schema("- string")
