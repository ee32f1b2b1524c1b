# grocery_pos/services/payment_service.py
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union
from ..errors import (
    InvalidAmount, InvalidRequest, NotFound, OrderAlreadySettled, OrderCancelled
)
from ..models.order import OrderLine, OrderStatus, PaymentMethod, PaymentResult
from ..utils.formatters import round2
from .invoice_service import InvoiceService
from .stock_service import StockLedger


class PaymentService:
    def __init__(self, database, invoice_service: Optional[InvoiceService] = None):
        self.db = database
        self.stock = StockLedger()
        self.invoices = invoice_service or InvoiceService(database)
        self.logger = logging.getLogger(__name__)

    async def add_payment(self, order_id: int, method: Union[PaymentMethod, str],
                          amount: Any, txn_ref: Optional[str] = None,
                          generate_invoice: bool = False) -> PaymentResult:
        """Record a payment and settle the order once it is fully paid.

        The order row stays locked from the status check until commit, so
        two payments racing on one order settle it, and move stock, once.
        Overpayment is accepted and reported as a negative due.
        """
        method = self._parse_method(method)
        amount = self._parse_amount(amount)

        async with self.db.transaction() as session:
            order = await session.get_order(order_id, lock=True)
            if not order:
                raise NotFound(order_id)

            status = OrderStatus(order['status'])
            if status == OrderStatus.PAID:
                self.logger.warning(f"Payment rejected, order {order_id} already PAID")
                raise OrderAlreadySettled(order_id)
            if status == OrderStatus.CANCELLED:
                self.logger.warning(f"Payment rejected, order {order_id} is CANCELLED")
                raise OrderCancelled(order_id)

            await session.insert_payment(order_id, method.value, amount, txn_ref or None)
            paid = round2(await session.sum_payments(order_id))
            due = round2(order['total_amount'] - paid)

            invoice_number = None
            if due <= 0:
                await session.set_order_status(order_id, OrderStatus.PAID.value)
                status = OrderStatus.PAID

                lines = [OrderLine.model_validate(l) for l in await session.get_order_lines(order_id)]
                await self.stock.decrement_for(session, order_id, lines)

                if generate_invoice:
                    invoice_number = await self.invoices.issue_for_settled(session, order_id)

        if status == OrderStatus.PAID:
            self.logger.info(f"Order {order_id} paid in full ({paid}), due {due}")
        else:
            self.logger.info(f"Partial payment on order {order_id}: paid {paid}, due {due}")

        return PaymentResult(
            order_id=order_id,
            paid=paid,
            due=due,
            status=status,
            invoice_number=invoice_number,
        )

    @staticmethod
    def _parse_method(method: Union[PaymentMethod, str]) -> PaymentMethod:
        if isinstance(method, PaymentMethod):
            return method
        try:
            return PaymentMethod(str(method).strip().upper())
        except ValueError:
            allowed = ", ".join(m.value for m in PaymentMethod)
            raise InvalidRequest(f"method must be one of {allowed}.")

    @staticmethod
    def _parse_amount(amount: Any) -> Decimal:
        if amount is None or isinstance(amount, bool):
            raise InvalidAmount(amount)
        try:
            value = round2(amount)
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmount(amount)
        if not value.is_finite() or value <= 0:
            raise InvalidAmount(amount)
        return value
