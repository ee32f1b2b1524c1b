"""Tests for invoice issuance."""

import asyncio
from datetime import date, datetime, timezone

import pytest

from grocery_pos.errors import NotFound, OrderNotSettled
from grocery_pos.services.invoice_service import InvoiceService, invoice_number_for


def test_invoice_number_format():
    assert invoice_number_for(42, date(2024, 1, 5)) == "INV-20240105-42"


class TestIssueInvoice:
    async def test_issue_for_paid_order(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "126.00")

        number = await services.invoices.issue_invoice(order_id)
        assert number == f"INV-20250314-{order_id}"
        assert db.invoices[order_id]["invoice_number"] == number

    async def test_second_request_returns_same_number(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "126.00")

        first = await services.invoices.issue_invoice(order_id)
        second = await services.invoices.issue_invoice(order_id)
        assert first == second
        assert len(db.invoices) == 1

    async def test_existing_invoice_kept_on_a_later_day(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "126.00", generate_invoice=True)

        later = InvoiceService(db, clock=lambda: datetime(2025, 4, 1, tzinfo=timezone.utc))
        assert await later.issue_invoice(order_id) == f"INV-20250314-{order_id}"

    async def test_concurrent_requests_create_one_invoice(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "126.00")

        numbers = await asyncio.gather(
            services.invoices.issue_invoice(order_id),
            services.invoices.issue_invoice(order_id),
            services.invoices.issue_invoice(order_id),
        )
        assert len(set(numbers)) == 1
        assert len(db.invoices) == 1

    async def test_draft_order_not_invoiced(self, services, db, order_id):
        await services.payments.add_payment(order_id, "CASH", "20.00")

        with pytest.raises(OrderNotSettled):
            await services.invoices.issue_invoice(order_id)
        assert db.invoices == {}

    async def test_cancelled_order_not_invoiced(self, services, order_id):
        await services.cancellations.cancel_order(order_id)

        with pytest.raises(OrderNotSettled):
            await services.invoices.issue_invoice(order_id)

    async def test_missing_order(self, services):
        with pytest.raises(NotFound):
            await services.invoices.issue_invoice(12345)
