"""Tests for constraint implementations."""

import dataclasses
import math
import re
from datetime import date, datetime
from decimal import Decimal

import pytest

from dataknobs_schema import (
    CustomPredicate,
    DateFormat,
    Email,
    EndsWith,
    ExactLength,
    Finite,
    Integer,
    IssueCode,
    Lowercase,
    Maximum,
    MaxLength,
    Minimum,
    MinLength,
    MultipleOf,
    OneOf,
    Pattern,
    SchemaDefinitionError,
    StartsWith,
    Uppercase,
    Url,
    Uuid,
)


class TestLengthConstraints:
    """Test MinLength, MaxLength and ExactLength."""

    def test_min_length(self):
        constraint = MinLength(3)
        assert constraint.check("abc")
        assert not constraint.check("ab")
        assert constraint.code is IssueCode.MIN_LENGTH
        assert constraint.render("ab") == "The value must be at least 3 characters long"

    def test_min_length_items(self):
        """Test the item wording used for arrays."""
        constraint = MinLength(1, unit="items")
        assert not constraint.check([])
        assert constraint.render([]) == "The value must contain at least 1 items"

    def test_max_length(self):
        constraint = MaxLength(5)
        assert constraint.check("abcde")
        assert not constraint.check("abcdef")
        assert constraint.code is IssueCode.MAX_LENGTH
        assert "at most 5" in constraint.render("abcdef")

    def test_exact_length(self):
        constraint = ExactLength(2, unit="items")
        assert constraint.check([1, 2])
        assert not constraint.check([1])
        assert constraint.code is IssueCode.LENGTH
        assert constraint.render([1]) == "The value must have exactly 2 items"

    def test_message_override(self):
        """Test that an explicit message replaces the template."""
        constraint = MinLength(3, message="Username too short")
        assert constraint.render("ab") == "Username too short"

    def test_constraints_are_immutable(self):
        constraint = MinLength(3)
        with pytest.raises(dataclasses.FrozenInstanceError):
            constraint.limit = 4  # type: ignore[misc]


class TestPattern:
    """Test Pattern constraint."""

    def test_search_semantics(self):
        """Test that unanchored patterns match anywhere."""
        constraint = Pattern(r"\d+")
        assert constraint.check("abc123")
        assert not constraint.check("abc")

    def test_anchored_pattern(self):
        constraint = Pattern(r"^[A-Z][a-z]+$")
        assert constraint.check("Hello")
        assert not constraint.check("hello")
        assert not constraint.check("Hello world")

    def test_compiled_pattern(self):
        """Test that a precompiled regex is accepted."""
        constraint = Pattern(re.compile(r"^x", re.IGNORECASE))
        assert constraint.check("Xylophone")
        assert constraint.pattern == "^x"

    def test_malformed_pattern_fails_eagerly(self):
        """Test that an invalid regex fails at construction."""
        with pytest.raises(SchemaDefinitionError, match="Invalid pattern"):
            Pattern(r"[unclosed")

    def test_non_string_pattern(self):
        with pytest.raises(SchemaDefinitionError):
            Pattern(42)  # type: ignore[arg-type]

    def test_bytes_pattern_rejected(self):
        """Test that a compiled bytes regex fails at construction."""
        with pytest.raises(SchemaDefinitionError, match="bytes"):
            Pattern(re.compile(rb"a"))
        with pytest.raises(SchemaDefinitionError):
            Pattern(b"a")  # type: ignore[arg-type]

    def test_default_message(self):
        constraint = Pattern(r"^\d+$")
        assert constraint.code is IssueCode.PATTERN_MISMATCH
        assert constraint.render("abc") == r"The value does not match the pattern ^\d+$"


class TestFormatConstraints:
    """Test string format constraints."""

    @pytest.mark.parametrize("value", [
        "john.doe@example.com",
        "a+tag@sub.example.org",
        "x_y@domain.io",
    ])
    def test_valid_emails(self, value):
        assert Email().check(value)

    @pytest.mark.parametrize("value", [
        "plainaddress",
        "@example.com",
        "john@",
        "john..doe@example.com",
        "john@example",
        ".john@example.com",
    ])
    def test_invalid_emails(self, value):
        assert not Email().check(value)

    def test_uuid(self):
        assert Uuid().check("123e4567-e89b-12d3-a456-426614174000")
        assert not Uuid().check("123e4567e89b12d3a456426614174000")
        assert not Uuid().check("not-a-uuid")

    def test_url(self):
        assert Url().check("https://example.com/path?q=1")
        assert Url().check("ftp://files.example.com")
        assert not Url().check("example.com")
        assert not Url().check("http://[invalid")

    def test_case(self):
        assert Uppercase().check("ABC-123")
        assert not Uppercase().check("AbC")
        assert Lowercase().check("abc")
        assert not Lowercase().check("aBc")

    def test_prefix_suffix(self):
        assert StartsWith("SKU-").check("SKU-1")
        assert not StartsWith("SKU-").check("sku-1")
        assert EndsWith(".csv").check("data.csv")
        assert EndsWith(".csv").render("data.txt") == "The value must end with '.csv'"

    def test_date_format(self):
        constraint = DateFormat("%Y-%m-%d")
        assert constraint.check("2024-01-15")
        assert not constraint.check("15/01/2024")
        assert constraint.render("x") == "The value must be a date in the format %Y-%m-%d"

    def test_format_codes(self):
        """Test that format checks share the InvalidFormat code."""
        for constraint in (Email(), Uuid(), Url(), Uppercase(), Lowercase(), DateFormat("%Y")):
            assert constraint.code is IssueCode.INVALID_FORMAT


class TestOrderingConstraints:
    """Test Minimum and Maximum for numbers and dates."""

    def test_inclusive_bounds(self):
        assert Minimum(0).check(0)
        assert not Minimum(0).check(-1)
        assert Maximum(10).check(10)
        assert not Maximum(10).check(11)

    def test_exclusive_bounds(self):
        assert not Minimum(0, exclusive=True).check(0)
        assert Minimum(0, exclusive=True).check(0.1)
        assert not Maximum(0, exclusive=True).check(0)

    def test_messages(self):
        assert Minimum(5).render(1) == "The value must be greater than or equal to 5"
        assert Minimum(0, exclusive=True).render(0) == "The value must be greater than 0"
        assert Maximum(5).render(9) == "The value must be less than or equal to 5"
        assert Maximum(0, exclusive=True).render(0) == "The value must be less than 0"

    def test_date_bounds(self):
        """Test date limits, including datetime values against date limits."""
        constraint = Minimum(date(2024, 1, 1))
        assert constraint.check(date(2024, 1, 1))
        assert not constraint.check(date(2023, 12, 31))
        assert constraint.check(datetime(2024, 1, 1, 12, 30))
        assert constraint.render(date(2023, 1, 1)) == "The date must be on or after 2024-01-01"

        latest = Maximum(datetime(2024, 6, 1, 0, 0))
        assert latest.check(date(2024, 6, 1))
        assert not latest.check(date(2024, 6, 2))
        assert "on or before" in latest.render(date(2024, 6, 2))

    def test_range_code(self):
        assert Minimum(1).code is IssueCode.RANGE
        assert Maximum(1).code is IssueCode.RANGE


class TestNumberConstraints:
    """Test integer, finite and multiple-of checks."""

    def test_integer(self):
        assert Integer().check(3)
        assert Integer().check(3.0)
        assert Integer().check(Decimal("4"))
        assert not Integer().check(3.5)
        assert not Integer().check(Decimal("4.2"))
        assert Integer().render(3.5) == "The value must be an integer"

    def test_finite(self):
        assert Finite().check(1e308)
        assert not Finite().check(math.inf)
        assert not Finite().check(-math.inf)
        assert Finite().check(10**400)
        assert Finite().check(Decimal("1E+400"))
        assert not Finite().check(Decimal("Infinity"))

    def test_multiple_of(self):
        assert MultipleOf(5).check(15)
        assert not MultipleOf(5).check(16)
        assert MultipleOf(0.1).check(0.3)
        assert not MultipleOf(0.25).check(0.3)
        assert MultipleOf(Decimal("0.01")).check(Decimal("1.23"))
        assert not MultipleOf(2).check(math.inf)

    def test_multiple_of_exact_operands(self):
        """Test huge and non-finite operands against every step type."""
        assert MultipleOf(0.5).check(10**400)
        assert not MultipleOf(0.3).check(10**400 + 1)
        assert MultipleOf(Decimal("0.5")).check(10**400)
        assert MultipleOf(0.01).check(3)
        assert not MultipleOf(Decimal("0.5")).check(math.inf)
        assert not MultipleOf(0.5).check(Decimal("Infinity"))
        assert not MultipleOf(10**400).check(1.5)
        assert MultipleOf(10**400).check(0.0)


class TestMembershipConstraints:
    """Test OneOf and CustomPredicate."""

    def test_one_of(self):
        constraint = OneOf(("red", "green"))
        assert constraint.check("red")
        assert not constraint.check("blue")
        assert constraint.code is IssueCode.NOT_ONE_OF
        assert constraint.render("blue") == "The value must be one of: 'red', 'green'"

    def test_one_of_is_type_exact(self):
        """Test that True does not match 1."""
        constraint = OneOf((1, 2))
        assert constraint.check(1)
        assert not constraint.check(True)
        assert not constraint.check(1.0)

    def test_custom_predicate(self):
        constraint = CustomPredicate(lambda v: v % 2 == 0, "Value must be even")
        assert constraint.check(4)
        assert not constraint.check(3)
        assert constraint.render(3) == "Value must be even"
        assert constraint.code is IssueCode.CUSTOM_PREDICATE

    def test_custom_predicate_exception_fails_check(self):
        """Test that a raising predicate is treated as a failed check."""
        constraint = CustomPredicate(lambda v: v["missing"])
        assert not constraint.check({})
        assert constraint.render({}) == "The value is invalid"
