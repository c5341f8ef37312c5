"""Pytest configuration for dataknobs_schema tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Keep environment overrides and configure() calls from leaking between tests."""
    from dataknobs_schema.settings import reset_settings

    monkeypatch.delenv("DATAKNOBS_SCHEMA_UNKNOWN_KEYS", raising=False)
    monkeypatch.delenv("DATAKNOBS_SCHEMA_DATE_FORMATS", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def line_item_schema():
    """Order line item used across engine and refinement tests."""
    from dataknobs_schema import z

    return z.object({
        "sku": z.string().pattern(r"^[A-Z]{3}-\d{4}$"),
        "quantity": z.number().integer().positive(),
        "price": z.number().nonnegative(),
    })


@pytest.fixture
def order_schema(line_item_schema):
    """Order with a non-empty list of line items."""
    from dataknobs_schema import z

    return z.object({
        "id": z.string().uuid(),
        "items": z.array(line_item_schema).min(1, "Order must have at least one item"),
        "status": z.enum(["pending", "paid", "shipped"]).default("pending"),
        "note": z.string().max(200).optional(),
    })
