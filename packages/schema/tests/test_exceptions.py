"""Tests for the exception hierarchy."""

import pytest

from dataknobs_schema import (
    CoercionError,
    ConfigurationError,
    DataknobsSchemaError,
    Issue,
    IssueCode,
    SchemaDefinitionError,
    ValidationError,
)


class TestDataknobsSchemaError:
    """Test the base exception class."""

    def test_basic_exception(self):
        """Test basic exception without context."""
        error = DataknobsSchemaError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.context == {}
        assert error.details == {}

    def test_exception_with_context(self):
        """Test exception with context dictionary."""
        error = DataknobsSchemaError("Failed", context={"field": "name"})
        assert error.context == {"field": "name"}
        assert error.details == {"field": "name"}

    def test_details_takes_precedence(self):
        """Test that details parameter takes precedence over context."""
        error = DataknobsSchemaError("Error", context={"k": "c"}, details={"k": "d"})
        assert error.context == {"k": "d"}

    @pytest.mark.parametrize(
        "error_class",
        [ValidationError, SchemaDefinitionError, CoercionError, ConfigurationError],
    )
    def test_subclasses_share_base(self, error_class):
        """Test that every package error can be caught as the base class."""
        assert issubclass(error_class, DataknobsSchemaError)


class TestValidationError:
    """Test ValidationError issue access."""

    def _issues(self):
        return [
            Issue("The value must be a number", ("id",), "x", IssueCode.TYPE_MISMATCH),
            Issue("The value must be at least 3 characters long", ("name",), "Jo",
                  IssueCode.MIN_LENGTH),
            Issue("Another name problem", ("name",), "Jo", IssueCode.PATTERN_MISMATCH),
        ]

    def test_message_is_first_issue(self):
        """Test that the error message is the first issue's message."""
        error = ValidationError(self._issues())
        assert error.get_message() == "The value must be a number"
        assert str(error) == "The value must be a number"

    def test_errors_are_ordered(self):
        """Test that all issues are available in order."""
        issues = self._issues()
        error = ValidationError(issues)
        assert error.get_errors() == issues
        assert error.errors == issues
        assert error.context == {"issue_count": 3}

    def test_errors_returns_copy(self):
        """Test that callers cannot mutate the error's issue list."""
        error = ValidationError(self._issues())
        error.get_errors().clear()
        assert len(error.get_errors()) == 3

    def test_flatten_groups_by_location(self):
        """Test grouping messages by location."""
        flat = ValidationError(self._issues()).flatten()
        assert flat == {
            "id": ["The value must be a number"],
            "name": ["The value must be at least 3 characters long", "Another name problem"],
        }

    def test_empty_issue_list(self):
        error = ValidationError([])
        assert error.get_message() == "Validation failed"


class TestCoercionError:
    def test_carries_target(self):
        error = CoercionError("Cannot convert 'x' to a number", target="number", value="x")
        assert error.target == "number"
        assert error.value == "x"
        assert error.context == {"target": "number"}
