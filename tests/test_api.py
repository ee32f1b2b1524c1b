"""Tests for the REST API."""

import pytest

from grocery_pos.api import create_app
from grocery_pos.models.user import Role
from grocery_pos.utils.security import generate_staff_token

from .conftest import MILK, RICE

ORDER_BODY = {
    "customer_id": 5,
    "items": [{"item_id": RICE, "qty": 2}, {"item_id": MILK, "qty": 1}],
    "discount_amount": 10,
    "tax_percent": 5,
    "notes": "counter 2",
}


def auth(role=Role.GROCERY_KEEPER, user_id=7):
    return {"Authorization": f"Bearer {generate_staff_token(user_id, role)}"}


@pytest.fixture
async def client(aiohttp_client, db, services):
    return await aiohttp_client(create_app(db, services))


async def _create(client, body=ORDER_BODY):
    response = await client.post("/api/orders", json=body, headers=auth())
    assert response.status == 201
    return (await response.json())["order_id"]


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/api/health")
        assert response.status == 200
        assert await response.json() == {"status": "ok"}

    async def test_db_health(self, client):
        response = await client.get("/api/db-health")
        assert response.status == 200

    async def test_db_health_failure(self, client, db):
        db.fail_next("ping")
        response = await client.get("/api/db-health")
        assert response.status == 500
        assert (await response.json())["type"] == "PersistenceFailure"


class TestAuth:
    async def test_missing_token(self, client):
        response = await client.post("/api/orders", json=ORDER_BODY)
        assert response.status == 401
        assert (await response.json())["error"] == "Authentication required."

    async def test_invalid_token(self, client):
        response = await client.post(
            "/api/orders", json=ORDER_BODY, headers={"Authorization": "Bearer nope"}
        )
        assert response.status == 401

    async def test_viewer_cannot_create(self, client):
        response = await client.post("/api/orders", json=ORDER_BODY, headers=auth(Role.VIEWER))
        assert response.status == 403
        assert (await response.json())["type"] == "AccessDenied"

    async def test_bare_token_accepted(self, client):
        token = generate_staff_token(7, Role.ADMIN)
        response = await client.post("/api/orders", json=ORDER_BODY, headers={"Authorization": token})
        assert response.status == 201

    async def test_keeper_cannot_cancel(self, client):
        order_id = await _create(client)
        response = await client.post(f"/api/orders/{order_id}/cancel", headers=auth())
        assert response.status == 403


class TestCreateOrder:
    async def test_create(self, client):
        response = await client.post("/api/orders", json=ORDER_BODY, headers=auth())
        assert response.status == 201
        data = await response.json()
        assert data["message"] == "Order created (DRAFT)."
        assert data["total_amount"] == "126.00"

    async def test_empty_items(self, client):
        response = await client.post("/api/orders", json={"items": []}, headers=auth())
        assert response.status == 400
        assert (await response.json())["type"] == "EmptyOrder"

    async def test_unknown_item(self, client, db):
        body = {"items": [{"item_id": 77, "qty": 1}]}
        response = await client.post("/api/orders", json=body, headers=auth())
        assert response.status == 400
        assert (await response.json())["type"] == "InvalidReference"
        assert db.orders == {}

    async def test_malformed_line(self, client):
        body = {"items": [{"item_id": RICE, "qty": "lots"}]}
        response = await client.post("/api/orders", json=body, headers=auth())
        assert response.status == 400
        data = await response.json()
        assert data["type"] == "RequestValidationError"
        assert data["details"]

    async def test_zero_quantity(self, client):
        body = {"items": [{"item_id": RICE, "qty": 0}]}
        response = await client.post("/api/orders", json=body, headers=auth())
        assert response.status == 400
        assert (await response.json())["type"] == "InvalidRequest"

    async def test_invalid_json(self, client):
        response = await client.post(
            "/api/orders",
            data="{not json",
            headers={**auth(), "Content-Type": "application/json"},
        )
        assert response.status == 400


class TestFetchOrder:
    async def test_fetch(self, client):
        order_id = await _create(client)

        response = await client.get(f"/api/orders/{order_id}", headers=auth())
        assert response.status == 200
        data = await response.json()
        assert data["order"]["status"] == "DRAFT"
        assert data["order"]["cashier_user_id"] == 7
        assert data["order"]["customer_id"] == 5
        assert data["order"]["tax_amount"] == "6.00"
        assert [line["item_name_snapshot"] for line in data["items"]] == ["Basmati Rice 1kg", "Milk 1L"]
        assert data["payments"] == []
        assert data["invoice_number"] is None

    async def test_not_found(self, client):
        response = await client.get("/api/orders/999", headers=auth())
        assert response.status == 404
        assert (await response.json())["error"] == "Order not found: 999"

    @pytest.mark.parametrize("path", ["", "/pay", "/invoice"])
    async def test_id_beyond_int4_is_not_found_without_store_access(self, client, db, path):
        db.fail_next("get_order")
        method = client.get if not path else client.post
        body = {"json": {"method": "CASH", "amount": 1}} if path == "/pay" else {}

        response = await method(f"/api/orders/99999999999{path}", headers=auth(), **body)
        assert response.status == 404
        assert (await response.json())["type"] == "NotFound"


class TestPayments:
    async def test_partial_then_full_with_invoice(self, client, db):
        order_id = await _create(client)

        response = await client.post(
            f"/api/orders/{order_id}/pay", json={"method": "CASH", "amount": 100}, headers=auth()
        )
        assert response.status == 200
        data = await response.json()
        assert data["message"] == "Payment added (partial)."
        assert data["paid"] == "100.00"
        assert data["due"] == "26.00"
        assert data["status"] == "DRAFT"

        response = await client.post(
            f"/api/orders/{order_id}/pay",
            json={"method": "UPI", "amount": "26.00", "txn_ref": "upi-42", "generate_invoice": True},
            headers=auth(),
        )
        data = await response.json()
        assert data["message"] == "Paid in full."
        assert data["due"] == "0.00"
        assert data["status"] == "PAID"
        assert data["invoice_number"] == f"INV-20250314-{order_id}"
        assert db.stock_of(RICE) == 8

    async def test_pay_settled_order(self, client):
        order_id = await _create(client)
        await client.post(f"/api/orders/{order_id}/pay", json={"method": "CASH", "amount": 126}, headers=auth())

        response = await client.post(
            f"/api/orders/{order_id}/pay", json={"method": "CASH", "amount": 1}, headers=auth()
        )
        assert response.status == 400
        assert (await response.json())["type"] == "OrderAlreadySettled"

    async def test_pay_missing_order(self, client):
        response = await client.post("/api/orders/404/pay", json={"method": "CASH", "amount": 1}, headers=auth())
        assert response.status == 404

    async def test_zero_amount(self, client):
        order_id = await _create(client)
        response = await client.post(
            f"/api/orders/{order_id}/pay", json={"method": "CASH", "amount": 0}, headers=auth()
        )
        assert response.status == 400
        assert (await response.json())["type"] == "InvalidAmount"

    async def test_missing_fields(self, client):
        order_id = await _create(client)
        response = await client.post(f"/api/orders/{order_id}/pay", json={"method": "CASH"}, headers=auth())
        assert response.status == 400


class TestInvoiceAndCancel:
    async def test_invoice_requires_paid_order(self, client):
        order_id = await _create(client)

        response = await client.post(f"/api/orders/{order_id}/invoice", headers=auth())
        assert response.status == 400
        assert (await response.json())["type"] == "OrderNotSettled"

        await client.post(f"/api/orders/{order_id}/pay", json={"method": "CARD", "amount": 126}, headers=auth())
        response = await client.post(f"/api/orders/{order_id}/invoice", headers=auth())
        assert response.status == 200
        assert (await response.json())["invoice_number"] == f"INV-20250314-{order_id}"

    async def test_admin_cancels_paid_order(self, client, db):
        order_id = await _create(client)
        await client.post(f"/api/orders/{order_id}/pay", json={"method": "CASH", "amount": 126}, headers=auth())

        response = await client.post(f"/api/orders/{order_id}/cancel", headers=auth(Role.ADMIN))
        assert response.status == 200
        data = await response.json()
        assert data["message"] == "Order cancelled."
        assert data["previous_status"] == "PAID"
        assert data["stock_restored"] is True
        assert db.stock_of(RICE) == 10

    async def test_cancel_missing_order(self, client):
        response = await client.post("/api/orders/999/cancel", headers=auth(Role.ADMIN))
        assert response.status == 404
