# grocery_pos/models/order.py
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, ConfigDict
from enum import Enum
from typing import List, Optional
from .base import TimeStampedModel

class OrderStatus(str, Enum):
    DRAFT = "DRAFT"
    PAID = "PAID"
    CANCELLED = "CANCELLED"

class PaymentMethod(str, Enum):
    CASH = "CASH"
    CARD = "CARD"
    UPI = "UPI"
    WALLET = "WALLET"

class LineRequest(BaseModel):
    """One requested line of a new order"""
    item_id: int
    qty: Decimal
    unit_price: Optional[Decimal] = None

class OrderLine(BaseModel):
    """Individual item in an order, name and price frozen at creation"""
    item_id: int
    item_name_snapshot: str
    qty: Decimal
    unit_price: Decimal
    line_total: Decimal

    model_config = ConfigDict(from_attributes=True)

class OrderTotals(BaseModel):
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal

class Order(TimeStampedModel):
    """Order header for one customer transaction"""
    order_id: int
    customer_id: Optional[int] = None
    cashier_user_id: int
    status: OrderStatus
    subtotal: Decimal
    discount_amount: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    notes: Optional[str] = None

class Payment(BaseModel):
    """Payment event against an order, never updated or deleted"""
    payment_id: int
    order_id: int
    method: PaymentMethod
    amount: Decimal
    txn_ref: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class Invoice(BaseModel):
    order_id: int
    invoice_number: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

class OrderDetails(BaseModel):
    """Order header with its lines, payments and invoice number"""
    order: Order
    items: List[OrderLine]
    payments: List[Payment]
    invoice_number: Optional[str] = None

    @property
    def paid_total(self) -> Decimal:
        return sum((p.amount for p in self.payments), Decimal("0.00"))

class OrderReceipt(BaseModel):
    order_id: int
    total_amount: Decimal

class PaymentResult(BaseModel):
    order_id: int
    paid: Decimal
    due: Decimal
    status: OrderStatus
    invoice_number: Optional[str] = None

    @property
    def settled(self) -> bool:
        return self.status == OrderStatus.PAID

class CancellationResult(BaseModel):
    order_id: int
    previous_status: OrderStatus
    stock_restored: bool
