# grocery_pos/services/invoice_service.py
import logging
from datetime import date, datetime, timezone
from typing import Callable, Optional
from ..errors import NotFound, OrderNotSettled
from ..models.order import OrderStatus


def invoice_number_for(order_id: int, issued_on: date) -> str:
    return f"INV-{issued_on:%Y%m%d}-{order_id}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InvoiceService:
    """Issues at most one invoice per PAID order"""

    def __init__(self, db, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.clock = clock or _utc_now
        self.logger = logging.getLogger(__name__)

    async def issue_invoice(self, order_id: int) -> str:
        """Return the order's invoice number, creating it on first request"""
        async with self.db.transaction() as session:
            order = await session.get_order(order_id)
            if not order:
                raise NotFound(order_id)
            if order['status'] != OrderStatus.PAID.value:
                raise OrderNotSettled(order_id, order['status'])

            return await self.issue_for_settled(session, order_id)

    async def issue_for_settled(self, session, order_id: int) -> str:
        """Issue inside an open transaction; the caller has checked the order is PAID"""
        existing = await session.get_invoice(order_id)
        if existing:
            return existing['invoice_number']

        invoice_number = invoice_number_for(order_id, self.clock().date())
        if not await session.insert_invoice(order_id, invoice_number):
            # a concurrent issuer inserted first
            existing = await session.get_invoice(order_id)
            return existing['invoice_number']

        self.logger.info(f"Invoice {invoice_number} issued for order {order_id}")
        return invoice_number
