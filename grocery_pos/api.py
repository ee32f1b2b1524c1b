# grocery_pos/api.py
"""aiohttp REST API for orders, payments, invoices and cancellations."""

import json
import logging
from decimal import Decimal
from typing import List, Optional

from aiohttp import web
from pydantic import BaseModel, Field, ValidationError

from .errors import (
    AccessDenied,
    AuthenticationRequired,
    BillingError,
    EmptyOrder,
    InvalidAmount,
    InvalidReference,
    InvalidRequest,
    NotFound,
    OrderAlreadySettled,
    OrderCancelled,
    OrderNotSettled,
    PersistenceFailure,
)
from .models.order import LineRequest
from .models.user import Role, StaffIdentity
from .services.billing import BillingServices
from .utils.security import require_role, verify_staff_token

logger = logging.getLogger(__name__)

SERVICES = web.AppKey("services", BillingServices)


# --- Request schemas ---


class CreateOrderRequest(BaseModel):
    customer_id: Optional[int] = None
    items: List[LineRequest] = Field(default_factory=list)
    discount_amount: Decimal = Decimal(0)
    tax_percent: Decimal = Decimal(0)
    notes: Optional[str] = None


class PaymentRequest(BaseModel):
    method: str
    amount: Decimal
    txn_ref: Optional[str] = None
    generate_invoice: bool = False


# --- Error mapping ---


ERROR_STATUS = (
    (NotFound, 404),
    (AuthenticationRequired, 401),
    (AccessDenied, 403),
    (PersistenceFailure, 500),
    (InvalidRequest, 400),
    (InvalidReference, 400),
    (EmptyOrder, 400),
    (InvalidAmount, 400),
    (OrderAlreadySettled, 400),
    (OrderCancelled, 400),
    (OrderNotSettled, 400),
)


def status_for(err: BillingError) -> int:
    for error_type, status in ERROR_STATUS:
        if isinstance(err, error_type):
            return status
    return 500


def _error(message: str, kind: str, status: int, details=None) -> web.Response:
    body = {"error": message, "type": kind}
    if details is not None:
        body["details"] = details
    return web.json_response(body, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except BillingError as e:
        status = status_for(e)
        if status >= 500:
            logger.error(f"{request.method} {request.path} failed: {e}")
        return _error(e.message, e.kind, status)
    except ValidationError as e:
        return _error(
            "invalid request",
            "RequestValidationError",
            400,
            details=json.loads(e.json(include_url=False)),
        )
    except json.JSONDecodeError:
        return _error("Request body must be valid JSON.", "RequestValidationError", 400)
    except Exception as e:
        logger.error(f"Unhandled error on {request.method} {request.path}: {e}", exc_info=True)
        return _error("internal server error", type(e).__name__, 500)


# --- Helpers ---


def authorize(request: web.Request, required: Role) -> StaffIdentity:
    """Resolve the caller from the Authorization header and check their role"""
    header = request.headers.get("Authorization")
    if not header:
        raise AuthenticationRequired()

    # accept both "token" and "Bearer token"
    token = header[7:] if header.startswith("Bearer ") else header
    identity = verify_staff_token(token)
    if identity is None:
        raise AuthenticationRequired("Invalid or expired token.")

    return require_role(identity, required)


MAX_ORDER_ID = 2 ** 31 - 1


def _order_id(request: web.Request) -> int:
    order_id = int(request.match_info["order_id"])
    # order ids are int4 in the store
    if order_id > MAX_ORDER_ID:
        raise NotFound(order_id)
    return order_id


async def _read_json(request: web.Request) -> dict:
    if not request.can_read_body:
        return {}
    return await request.json()


# --- Routes ---


routes = web.RouteTableDef()


@routes.get("/api/health")
async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "ok"})


@routes.get("/api/db-health")
async def db_health(request: web.Request) -> web.Response:
    await request.app[SERVICES].db.ping()
    return web.json_response({"status": "ok"})


@routes.post("/api/orders")
async def create_order(request: web.Request) -> web.Response:
    identity = authorize(request, Role.GROCERY_KEEPER)
    body = CreateOrderRequest.model_validate(await _read_json(request))

    receipt = await request.app[SERVICES].orders.create_order(
        cashier_id=identity.user_id,
        items=body.items,
        customer_id=body.customer_id,
        discount_amount=body.discount_amount,
        tax_percent=body.tax_percent,
        notes=body.notes,
    )
    return web.json_response(
        {"message": "Order created (DRAFT).", **receipt.model_dump(mode="json")},
        status=201,
    )


@routes.get(r"/api/orders/{order_id:\d+}")
async def get_order(request: web.Request) -> web.Response:
    authorize(request, Role.GROCERY_KEEPER)
    details = await request.app[SERVICES].orders.get_order(_order_id(request))
    return web.json_response(details.model_dump(mode="json"))


@routes.post(r"/api/orders/{order_id:\d+}/pay")
async def add_payment(request: web.Request) -> web.Response:
    authorize(request, Role.GROCERY_KEEPER)
    body = PaymentRequest.model_validate(await _read_json(request))

    result = await request.app[SERVICES].payments.add_payment(
        _order_id(request),
        method=body.method,
        amount=body.amount,
        txn_ref=body.txn_ref,
        generate_invoice=body.generate_invoice,
    )
    message = "Paid in full." if result.settled else "Payment added (partial)."
    return web.json_response({"message": message, **result.model_dump(mode="json")})


@routes.post(r"/api/orders/{order_id:\d+}/invoice")
async def issue_invoice(request: web.Request) -> web.Response:
    authorize(request, Role.GROCERY_KEEPER)
    order_id = _order_id(request)
    invoice_number = await request.app[SERVICES].invoices.issue_invoice(order_id)
    return web.json_response({"order_id": order_id, "invoice_number": invoice_number})


@routes.post(r"/api/orders/{order_id:\d+}/cancel")
async def cancel_order(request: web.Request) -> web.Response:
    authorize(request, Role.ADMIN)
    result = await request.app[SERVICES].cancellations.cancel_order(_order_id(request))
    return web.json_response({"message": "Order cancelled.", **result.model_dump(mode="json")})


def create_app(db, services: Optional[BillingServices] = None) -> web.Application:
    app = web.Application(middlewares=[error_middleware])
    app[SERVICES] = services or BillingServices(db)
    app.add_routes(routes)
    return app
