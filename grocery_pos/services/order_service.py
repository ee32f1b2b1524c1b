# grocery_pos/services/order_service.py
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Union
from pydantic import ValidationError
from ..errors import EmptyOrder, InvalidRequest, NotFound
from ..models.item import CatalogItem
from ..models.order import (
    Invoice, LineRequest, Order, OrderDetails, OrderLine, OrderReceipt,
    OrderStatus, OrderTotals, Payment
)
from ..utils.formatters import round2, to_decimal
from .catalog_service import CatalogService

ZERO = Decimal("0.00")
QTY_PLACES = 3


def _decimal(value: Any, field: str) -> Decimal:
    try:
        number = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidRequest(f"{field} must be a number.")
    if not number.is_finite():
        raise InvalidRequest(f"{field} must be a number.")
    return number


def calculate_totals(lines: Iterable[OrderLine], discount_amount: Any = 0,
                     tax_percent: Any = 0) -> OrderTotals:
    """Price an order: discount first, then tax on what is left.

    Line totals are summed at full precision; only the header amounts
    are rounded to 2 decimal places.
    """
    subtotal = sum((line.line_total for line in lines), ZERO)
    discount = max(ZERO, _decimal(discount_amount or 0, "discount_amount"))
    tax_rate = _decimal(tax_percent or 0, "tax_percent")
    if tax_rate < 0:
        raise InvalidRequest("tax_percent must not be negative.")

    taxable = max(ZERO, subtotal - discount)
    tax_amount = round2(taxable * tax_rate / 100)
    return OrderTotals(
        subtotal=round2(subtotal),
        discount_amount=round2(discount),
        tax_amount=tax_amount,
        total_amount=round2(taxable + tax_amount),
    )


def build_lines(requests: List[LineRequest], catalog: Dict[int, CatalogItem]) -> List[OrderLine]:
    """Snapshot name and price for every requested line"""
    lines = []
    for request in requests:
        item = catalog[request.item_id]
        unit_price = request.unit_price if request.unit_price is not None else item.cost
        lines.append(OrderLine(
            item_id=item.item_id,
            item_name_snapshot=item.name,
            qty=request.qty,
            unit_price=unit_price,
            line_total=unit_price * request.qty,
        ))
    return lines


class OrderService:
    def __init__(self, db):
        self.db = db
        self.catalog = CatalogService(db)
        self.logger = logging.getLogger(__name__)

    async def create_order(self, cashier_id: int,
                           items: List[Union[LineRequest, Dict[str, Any]]],
                           customer_id: Optional[int] = None,
                           discount_amount: Any = 0,
                           tax_percent: Any = 0,
                           notes: Optional[str] = None) -> OrderReceipt:
        """Create a DRAFT order with its lines in one transaction"""
        if not items:
            raise EmptyOrder()

        requests = [self._parse_line(index, item) for index, item in enumerate(items)]

        async with self.db.transaction() as session:
            catalog = await self.catalog.resolve(session, (r.item_id for r in requests))
            lines = build_lines(requests, catalog)
            totals = calculate_totals(lines, discount_amount, tax_percent)

            order = await session.insert_order({
                'customer_id': customer_id,
                'cashier_user_id': cashier_id,
                'status': OrderStatus.DRAFT.value,
                'notes': notes or None,
                **totals.model_dump(),
            })
            await session.insert_order_lines(
                order['order_id'],
                [line.model_dump() for line in lines]
            )

        self.logger.info(
            f"Order {order['order_id']} created by cashier {cashier_id}: "
            f"{len(lines)} line(s), total {totals.total_amount}"
        )
        return OrderReceipt(order_id=order['order_id'], total_amount=totals.total_amount)

    async def get_order(self, order_id: int) -> OrderDetails:
        """Order header with lines, payments and invoice number"""
        async with self.db.transaction() as session:
            order = await session.get_order(order_id)
            if not order:
                raise NotFound(order_id)
            lines = await session.get_order_lines(order_id)
            payments = await session.get_payments(order_id)
            invoice = await session.get_invoice(order_id)

        return OrderDetails(
            order=Order.model_validate(order),
            items=[OrderLine.model_validate(line) for line in lines],
            payments=[Payment.model_validate(p) for p in payments],
            invoice_number=Invoice.model_validate(invoice).invoice_number if invoice else None,
        )

    @staticmethod
    def _parse_line(index: int, item: Union[LineRequest, Dict[str, Any]]) -> LineRequest:
        if isinstance(item, LineRequest):
            request = item
        else:
            try:
                request = LineRequest.model_validate(item)
            except ValidationError:
                raise InvalidRequest(f"items[{index}] is malformed.")

        if request.qty <= 0:
            raise InvalidRequest(f"items[{index}].qty must be greater than zero.")
        if request.qty.normalize().as_tuple().exponent < -QTY_PLACES:
            raise InvalidRequest(f"items[{index}].qty allows at most {QTY_PLACES} decimal places.")
        if request.unit_price is not None and request.unit_price < 0:
            raise InvalidRequest(f"items[{index}].unit_price must not be negative.")
        return request
