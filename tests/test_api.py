"""Tests for the HTTP API."""

import pytest


@pytest.fixture
def customer(make_headers):
    return make_headers("U1")


@pytest.fixture
def admin(make_headers):
    return make_headers("A1", admin=True)


@pytest.fixture
def placed(client, customer, users, products):
    resp = client.post("/api/v1/orders", headers=customer, json={
        "orderItems": [
            {"_id": "P1", "name": "Chicken Kibble 5kg", "price": 10, "quantity": 2},
            {"id": "P2", "name": "Rope Tug Toy", "price": 5},
        ],
        "shippingAddress1": "12 Bark St",
        "phone": "555-0101",
        "paymentMethod": "Cash on Delivery",
    })
    assert resp.status_code == 201
    return resp.json()


def set_status(client, admin, order_id, status):
    return client.put(f"/api/v1/orders/{order_id}", headers=admin, json={"status": status})


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}
        assert client.get("/api/v1/health").status_code == 200
        assert client.get("/v1/_info").json()["service"] == "orders"


class TestOrders:
    def test_create(self, placed, mail):
        assert placed["status"] == "Pending"
        assert placed["totalPrice"] == 25.0
        assert placed["customerId"] == "U1"
        assert placed["stockApplied"] is False
        assert [i["productId"] for i in placed["orderItems"]] == ["P1", "P2"]
        assert placed["orderItems"][1]["quantity"] == 1
        assert [to for to, _, _ in mail.sent] == ["maya@example.com"]

    def test_create_without_items(self, client, customer, users):
        resp = client.post("/api/v1/orders", headers=customer, json={"orderItems": []})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "No order items."

    def test_requires_token(self, client, users):
        assert client.post("/api/v1/orders", json={"orderItems": []}).status_code == 401
        bad = {"Authorization": "Bearer not-a-jwt"}
        assert client.get("/api/v1/orders/user/U1", headers=bad).status_code == 401

    def test_non_bearer_scheme_rejected(self, client, users):
        resp = client.get("/api/v1/orders/user/U1", headers={"Authorization": "Basic dTE6cGFzcw=="})
        assert resp.status_code == 401
        schemes = client.get("/openapi.json").json()["components"]["securitySchemes"]
        assert schemes["HTTPBearer"] == {"type": "http", "scheme": "bearer"}

    def test_customer_cannot_order_for_someone_else(self, client, customer, admin, users, products, mail):
        body = {"orderItems": [{"_id": "P1", "price": 10}], "user": "U2"}
        assert client.post("/api/v1/orders", headers=customer, json=body).status_code == 403
        assert mail.sent == []
        assert client.get("/api/v1/orders", headers=admin).json() == []

    def test_order_for_self_or_by_admin(self, client, customer, admin, users, products, mail):
        body = {"orderItems": [{"_id": "P1", "price": 10}], "user": "U1"}
        assert client.post("/api/v1/orders", headers=customer, json=body).json()["customerId"] == "U1"

        resp = client.post("/api/v1/orders", headers=admin, json={**body, "user": "U2"})
        assert resp.status_code == 201
        assert resp.json()["customerId"] == "U2"
        assert [to for to, _, _ in mail.sent] == ["maya@example.com", "leo@example.com"]

    def test_overlong_product_reference(self, client, customer, users):
        resp = client.post("/api/v1/orders", headers=customer, json={"orderItems": [{"_id": "x" * 40, "price": 1}]})
        assert resp.status_code == 400

    def test_get_order(self, client, customer, make_headers, placed):
        assert client.get(f"/api/v1/orders/{placed['id']}", headers=customer).json()["id"] == placed["id"]
        assert client.get(f"/api/v1/orders/{placed['id']}", headers=make_headers("U2")).status_code == 403

    def test_unknown_order(self, client, admin, users):
        resp = client.get("/api/v1/orders/nope", headers=admin)
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Order not found: nope"

    def test_listings(self, client, customer, admin, make_headers, placed):
        mine = client.get("/api/v1/orders/user/U1", headers=customer).json()
        assert [o["id"] for o in mine] == [placed["id"]]
        assert client.get("/api/v1/orders/user/U1", headers=make_headers("U2")).status_code == 403
        assert client.get("/api/v1/orders", headers=customer).status_code == 403
        assert len(client.get("/api/v1/orders", headers=admin).json()) == 1

    def test_admin_moves_order_to_delivered(self, client, admin, placed):
        for status in ("Processing", "Shipped", "Delivered"):
            resp = set_status(client, admin, placed["id"], status)
            assert resp.status_code == 200
            assert resp.json()["status"] == status
        assert resp.json()["stockApplied"] is True

        summary = client.get("/api/v1/inventory/summary", headers=admin).json()
        assert summary["totalStockCount"] == 65 - 3

    def test_invalid_transition(self, client, admin, placed):
        resp = set_status(client, admin, placed["id"], "Delivered")
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Cannot change order status from Pending to Delivered"

    def test_invalid_status_value(self, client, admin, placed):
        assert set_status(client, admin, placed["id"], "Lost").status_code == 400

    def test_only_admins_change_status(self, client, customer, placed):
        assert set_status(client, customer, placed["id"], "Processing").status_code == 403

    def test_owner_cancels(self, client, customer, placed, mail):
        resp = client.put(f"/api/v1/orders/{placed['id']}/cancel", headers=customer)
        assert resp.status_code == 200
        assert resp.json()["status"] == "Canceled"
        assert len(mail.sent) == 2

    def test_cancel_after_shipping(self, client, customer, admin, placed):
        set_status(client, admin, placed["id"], "Processing")
        set_status(client, admin, placed["id"], "Shipped")
        assert client.put(f"/api/v1/orders/{placed['id']}/cancel", headers=customer).status_code == 409

    def test_cannot_cancel_someone_elses_order(self, client, make_headers, placed):
        resp = client.put(f"/api/v1/orders/{placed['id']}/cancel", headers=make_headers("U2"))
        assert resp.status_code == 403

    def test_delete(self, client, customer, admin, placed):
        assert client.delete(f"/api/v1/orders/{placed['id']}", headers=customer).status_code == 403
        assert client.delete(f"/api/v1/orders/{placed['id']}", headers=admin).json() == {"message": "Order deleted."}
        assert client.get(f"/api/v1/orders/{placed['id']}", headers=admin).status_code == 404


class TestNotifications:
    def test_inbox(self, client, customer, placed):
        listed = client.get("/api/v1/notifications/user/U1", headers=customer).json()
        assert [n["kind"] for n in listed] == ["order_confirmed"]
        assert listed[0]["orderId"] == placed["id"]
        assert listed[0]["read"] is False

        count = client.get("/api/v1/notifications/user/U1/unread-count", headers=customer).json()
        assert count == {"count": 1}

        resp = client.put(f"/api/v1/notifications/{listed[0]['id']}/read", headers=customer)
        assert resp.json()["read"] is True
        assert client.get("/api/v1/notifications/user/U1/unread-count", headers=customer).json() == {"count": 0}

    def test_read_all(self, client, make_headers, placed):
        headers = make_headers("A2")
        assert client.get("/api/v1/notifications/user/A2/unread-count", headers=headers).json() == {"count": 1}
        resp = client.put("/api/v1/notifications/user/A2/read-all", headers=headers)
        assert resp.json()["updated"] == 1

    def test_other_users_inbox(self, client, customer, make_headers, placed):
        assert client.get("/api/v1/notifications/user/A1", headers=customer).status_code == 403
        listed = client.get("/api/v1/notifications/user/U1", headers=customer).json()
        resp = client.put(f"/api/v1/notifications/{listed[0]['id']}/read", headers=make_headers("U2"))
        assert resp.status_code == 403

    def test_unknown_notification(self, client, customer, users):
        assert client.put("/api/v1/notifications/nope/read", headers=customer).status_code == 404


class TestInventory:
    def test_admin_only(self, client, customer, products):
        assert client.get("/api/v1/inventory/summary", headers=customer).status_code == 403

    def test_read_outs(self, client, admin, products):
        low = client.get("/api/v1/inventory/low-stock", headers=admin).json()
        assert [(p["id"], p["countInStock"], p["lowStockThreshold"]) for p in low] == [("P3", 3, 5)]
        assert client.get("/api/v1/inventory/out-of-stock", headers=admin).json() == []

        summary = client.get("/api/v1/inventory/summary", headers=admin).json()
        assert summary["total"] == 3
        assert summary["lowStock"] == 1
        assert summary["totalInventoryValue"] == 1070.5
