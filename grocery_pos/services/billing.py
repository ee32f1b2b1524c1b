# grocery_pos/services/billing.py
from datetime import datetime
from typing import Callable, Optional
from .cancellation_service import CancellationService
from .invoice_service import InvoiceService
from .order_service import OrderService
from .payment_service import PaymentService


class BillingServices:
    """The billing services wired against one database"""

    def __init__(self, db, clock: Optional[Callable[[], datetime]] = None):
        self.db = db
        self.invoices = InvoiceService(db, clock=clock)
        self.orders = OrderService(db)
        self.payments = PaymentService(db, invoice_service=self.invoices)
        self.cancellations = CancellationService(db)
