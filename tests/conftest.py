"""Pytest fixtures for billing tests."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from grocery_pos.config import Config
from grocery_pos.database.memory import InMemoryDatabase
from grocery_pos.services.billing import BillingServices

RICE = 1
MILK = 2
SUGAR = 3

ISSUED_AT = datetime(2025, 3, 14, 10, 30, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def secret_key(monkeypatch):
    monkeypatch.setattr(Config, "SECRET_KEY", "test-secret")


@pytest.fixture
def db():
    """In-memory store seeded with three catalog items."""
    database = InMemoryDatabase()
    database.add_item(RICE, "Basmati Rice 1kg", Decimal("50.00"), Decimal("10"))
    database.add_item(MILK, "Milk 1L", Decimal("30.00"), Decimal("5"))
    database.add_item(SUGAR, "Sugar 1kg", Decimal("42.50"), Decimal("0"))
    return database


@pytest.fixture
def services(db):
    return BillingServices(db, clock=lambda: ISSUED_AT)


@pytest.fixture
async def order_id(services):
    """DRAFT order: 2 x rice @ 50, 1 x milk @ 30, discount 10, tax 5% -> total 126.00."""
    receipt = await services.orders.create_order(
        cashier_id=7,
        items=[{"item_id": RICE, "qty": 2}, {"item_id": MILK, "qty": 1}],
        discount_amount="10.00",
        tax_percent=5,
    )
    return receipt.order_id
