"""Tests for order cancellation and stock reversal."""

import asyncio
from decimal import Decimal

import pytest

from grocery_pos.errors import NotFound, OrderCancelled, PersistenceFailure
from grocery_pos.models.order import OrderStatus

from .conftest import MILK, RICE


async def _status(services, order_id):
    return (await services.orders.get_order(order_id)).order.status


class TestCancelOrder:
    async def test_cancel_draft_leaves_stock_alone(self, services, db, order_id):
        result = await services.cancellations.cancel_order(order_id)

        assert result.previous_status == OrderStatus.DRAFT
        assert result.stock_restored is False
        assert await _status(services, order_id) == OrderStatus.CANCELLED
        assert db.stock_of(RICE) == Decimal("10")
        assert db.stock_of(MILK) == Decimal("5")

    async def test_cancel_paid_restores_stock(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "126.00")
        assert db.stock_of(RICE) == Decimal("8")

        result = await services.cancellations.cancel_order(order_id)

        assert result.previous_status == OrderStatus.PAID
        assert result.stock_restored is True
        assert db.stock_of(RICE) == Decimal("10")
        assert db.stock_of(MILK) == Decimal("5")

    async def test_recancel_is_a_noop(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "126.00")
        await services.cancellations.cancel_order(order_id)

        again = await services.cancellations.cancel_order(order_id)

        assert again.previous_status == OrderStatus.CANCELLED
        assert again.stock_restored is False
        assert db.stock_of(RICE) == Decimal("10")
        assert db.stock_of(MILK) == Decimal("5")

    async def test_partial_payments_are_kept_after_cancel(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "50.00")
        await services.cancellations.cancel_order(order_id)

        details = await services.orders.get_order(order_id)
        assert details.order.status == OrderStatus.CANCELLED
        assert [p.amount for p in details.payments] == [Decimal("50.00")]
        assert db.stock_of(RICE) == Decimal("10")

    async def test_missing_order(self, services):
        with pytest.raises(NotFound):
            await services.cancellations.cancel_order(321)

    async def test_failure_keeps_order_paid_and_stock_out(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "126.00")
        db.fail_next("set_order_status")

        with pytest.raises(PersistenceFailure):
            await services.cancellations.cancel_order(order_id)

        assert await _status(services, order_id) == OrderStatus.PAID
        assert db.stock_of(RICE) == Decimal("8")
        assert db.stock_of(MILK) == Decimal("4")


class TestCancelRacingPayment:
    async def test_stock_nets_to_original_whichever_wins(self, services, db, order_id):
        results = await asyncio.gather(
            services.payments.add_payment(order_id, "CASH", "126.00"),
            services.cancellations.cancel_order(order_id),
            return_exceptions=True,
        )

        assert not [r for r in results if isinstance(r, Exception) and not isinstance(r, OrderCancelled)]
        assert await _status(services, order_id) == OrderStatus.CANCELLED
        assert db.stock_of(RICE) == Decimal("10")
        assert db.stock_of(MILK) == Decimal("5")
