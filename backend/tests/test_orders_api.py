"""
Checkout and order management API tests.
"""

import pytest

from carwash.models import Order, PaymentStatus, ShippingStatus
from carwash.permissions import CUSTOMER_ROLE
from carwash.services.auth_service import register_user


CUSTOMER_DATA = {
    "first_name": "Carla",
    "last_name": "Test",
    "email": "cliente@lavadero.test",
    "phone": "1155550000",
    "address": "Av. Siempreviva 742",
}


def _checkout(client, headers, products, **overrides):
    shampoo, cera = products[0], products[1]
    body = {
        "items": [
            {"product_id": shampoo.id, "quantity": 2},
            {"product_id": cera.id, "quantity": 1},
        ],
        "customer_data": CUSTOMER_DATA,
        **overrides,
    }
    return client.post("/api/orders", json=body, headers=headers)


class TestCheckout:

    def test_creates_order_with_frozen_prices(self, client, products, customer_headers):
        resp = _checkout(client, customer_headers, products)
        assert resp.status_code == 201
        assert resp.json["total"] == "6201,00"
        assert resp.json["payment_status"] == PaymentStatus.PENDING
        assert resp.json["shipping_status"] == ShippingStatus.PENDING
        assert [line["unit_price"] for line in resp.json["lines"]] == ["1500,50", "3200,00"]
        assert resp.json["customer_data"]["address"] == "Av. Siempreviva 742"

    def test_repeated_product_is_merged(self, client, products, customer_headers):
        shampoo = products[0]
        items = [{"product_id": shampoo.id, "quantity": 1}, {"product_id": shampoo.id, "quantity": 1}]
        resp = _checkout(client, customer_headers, products, items=items)
        assert len(resp.json["lines"]) == 1
        assert resp.json["lines"][0]["quantity"] == 2
        assert resp.json["total"] == "3001,00"

    def test_hidden_product_is_rejected(self, client, db_session, products, customer_headers):
        hidden = products[2]
        resp = _checkout(client, customer_headers, products, items=[{"product_id": hidden.id, "quantity": 1}])
        assert resp.status_code == 404
        assert db_session.query(Order).count() == 0

    @pytest.mark.parametrize(
        "overrides",
        [
            {"items": []},
            {"items": [{"quantity": 1}]},
            {"customer_data": None},
            {"customer_data": {**CUSTOMER_DATA, "address": ""}},
        ],
    )
    def test_rejects_invalid_checkout(self, client, products, customer_headers, overrides):
        assert _checkout(client, customer_headers, products, **overrides).status_code == 400

    def test_rejects_bad_quantity(self, client, products, customer_headers):
        items = [{"product_id": products[0].id, "quantity": 0}]
        assert _checkout(client, customer_headers, products, items=items).status_code == 400


class TestOrderVisibility:

    def test_mine(self, client, products, customer_headers, employee_headers):
        _checkout(client, customer_headers, products)
        assert client.get("/api/orders/mine", headers=customer_headers).json["count"] == 1
        assert client.get("/api/orders/mine", headers=employee_headers).json["count"] == 0

    def test_owner_reads_own_order(self, client, products, customer_headers):
        order = _checkout(client, customer_headers, products).json
        resp = client.get(f"/api/orders/{order['id']}", headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json["id"] == order["id"]

    def test_staff_reads_any_order(self, client, products, customer_headers, employee_headers):
        order = _checkout(client, customer_headers, products).json
        assert client.get(f"/api/orders/{order['id']}", headers=employee_headers).status_code == 200

    def test_foreign_order_looks_missing(self, client, db_session, products, customer_headers):
        register_user(email="otro@lavadero.test", password="Password123!", first_name="Otro",
                      last_name="Cliente", national_id=30444555, phone="1155551111", role_name=CUSTOMER_ROLE)
        login = client.post("/api/auth/login", json={"email": "otro@lavadero.test", "password": "Password123!"})
        other_headers = {"Authorization": f"Bearer {login.json['token']}"}

        order = _checkout(client, customer_headers, products).json
        resp = client.get(f"/api/orders/{order['id']}", headers=other_headers)
        assert resp.status_code == 404

    def test_admin_listing_search(self, client, products, customer_headers, admin_headers):
        _checkout(client, customer_headers, products)
        assert client.get("/api/orders?q=cliente@lavadero", headers=admin_headers).json["count"] == 1
        assert client.get("/api/orders?q=nadie", headers=admin_headers).json["count"] == 0

    def test_customer_cannot_list_all(self, client, customer_headers):
        assert client.get("/api/orders", headers=customer_headers).status_code == 403


class TestOrderEdits:

    def test_mark_paid_and_delivered(self, client, products, customer_headers, employee_headers):
        order = _checkout(client, customer_headers, products).json
        resp = client.patch(f"/api/orders/{order['id']}/status",
                            json={"payment_status": "Pagado", "shipping_status": "Entregado"},
                            headers=employee_headers)
        assert resp.status_code == 200
        assert resp.json["payment_status"] == PaymentStatus.PAID
        assert resp.json["shipping_status"] == ShippingStatus.DELIVERED

    @pytest.mark.parametrize("body", [{}, {"payment_status": "Regalado"}, {"shipping_status": "Perdido"}])
    def test_rejects_bad_statuses(self, client, products, customer_headers, employee_headers, body):
        order = _checkout(client, customer_headers, products).json
        resp = client.patch(f"/api/orders/{order['id']}/status", json=body, headers=employee_headers)
        assert resp.status_code == 400

    def test_change_quantity_recomputes_total(self, client, products, customer_headers, admin_headers):
        order = _checkout(client, customer_headers, products).json
        shampoo_line = order["lines"][0]["id"]

        resp = client.patch(f"/api/orders/{order['id']}/lines",
                            json={"quantities": {str(shampoo_line): 1}}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["total"] == "4700,50"

    def test_zero_quantity_removes_line(self, client, products, customer_headers, admin_headers):
        order = _checkout(client, customer_headers, products).json
        cera_line = order["lines"][1]["id"]

        resp = client.patch(f"/api/orders/{order['id']}/lines",
                            json={"quantities": {str(cera_line): 0}}, headers=admin_headers)
        assert len(resp.json["lines"]) == 1
        assert resp.json["total"] == "3001,00"

    def test_cannot_remove_every_line(self, client, products, customer_headers, admin_headers):
        order = _checkout(client, customer_headers, products).json
        quantities = {str(line["id"]): 0 for line in order["lines"]}
        resp = client.patch(f"/api/orders/{order['id']}/lines", json={"quantities": quantities},
                            headers=admin_headers)
        assert resp.status_code == 400

    def test_unknown_line(self, client, products, customer_headers, admin_headers):
        order = _checkout(client, customer_headers, products).json
        resp = client.patch(f"/api/orders/{order['id']}/lines", json={"quantities": {"999": 1}},
                            headers=admin_headers)
        assert resp.status_code == 404
