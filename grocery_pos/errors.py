# grocery_pos/errors.py
"""Billing errors surfaced to callers with a stable kind and a readable message."""

from typing import Iterable, Optional


class BillingError(Exception):
    """Base exception for all billing errors."""

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def message(self) -> str:
        return str(self)


class InvalidRequest(BillingError):
    """Raised when request fields are malformed."""


class InvalidReference(BillingError):
    """Raised when an order references items the catalog does not know."""

    def __init__(self, item_ids: Iterable[int]):
        self.item_ids = sorted(item_ids)
        ids = ", ".join(str(i) for i in self.item_ids)
        super().__init__(f"Some items not found: {ids}")


class NotFound(BillingError):
    """Raised when an order does not exist."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class EmptyOrder(BillingError):
    """Raised when an order is created without lines."""

    def __init__(self):
        super().__init__("Order must contain at least one item.")


class OrderAlreadySettled(BillingError):
    """Raised when a payment targets an order that is already PAID."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} already PAID.")


class OrderCancelled(BillingError):
    """Raised when a payment targets a CANCELLED order."""

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} is CANCELLED.")


class OrderNotSettled(BillingError):
    """Raised when an invoice is requested for an order that is not PAID."""

    def __init__(self, order_id: int, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(f"Order {order_id} is {status}; invoices are issued for PAID orders only.")


class InvalidAmount(BillingError):
    """Raised when a payment amount is not a positive number."""

    def __init__(self, amount: object):
        self.amount = amount
        super().__init__(f"Payment amount must be greater than zero, got {amount}.")


class PersistenceFailure(BillingError):
    """Raised when the store fails; the whole unit of work was rolled back."""


class AuthenticationRequired(BillingError):
    """Raised when a request carries no valid staff token."""

    def __init__(self, reason: Optional[str] = None):
        super().__init__(reason or "Authentication required.")


class AccessDenied(BillingError):
    """Raised when the caller's role is below the one an operation requires."""

    def __init__(self, role_label: str):
        self.role_label = role_label
        super().__init__(f"Access Denied: {role_label} cannot perform this action.")
