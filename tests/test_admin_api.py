from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from conftest import create_user
from wlstore.services.admin_service import AdminService
from wlstore.services.activity_service import activity_feed


def place_order(client, headers, code="P001", quantity=1):
    client.post("/api/orders/cart/items", json={"product_code": code, "quantity": quantity}, headers=headers)
    return client.post("/api/orders/checkout", headers=headers).json()


def set_status(client, admin_headers, order_id, status):
    return client.put(f"/api/admin/orders/{order_id}/status", json={"status": status}, headers=admin_headers)


def test_admin_routes_require_admin(client, user_headers):
    assert client.get("/api/admin/stats").status_code == 401
    assert client.get("/api/admin/stats", headers=user_headers).status_code == 403


def test_stats(client, admin_headers, user_headers, products):
    first = place_order(client, user_headers, "P001", 2)
    place_order(client, user_headers, "P002", 1)
    # an open cart is not an order
    client.post("/api/orders/cart/items", json={"product_code": "P001"}, headers=user_headers)
    set_status(client, admin_headers, first["id"], "cancelled")

    resp = client.get("/api/admin/stats", headers=admin_headers)
    assert resp.status_code == 200
    stats = resp.json()
    assert stats["total_users"] == 2
    assert stats["total_products"] == 3
    assert stats["total_orders"] == 2
    # cancelled orders do not count as revenue
    assert Decimal(stats["total_revenue"]) == Decimal("25.50")


def test_status_walks_the_lifecycle(client, admin_headers, user_headers, products):
    order = place_order(client, user_headers)

    for status in ("processing", "shipped", "completed"):
        resp = set_status(client, admin_headers, order["id"], status)
        assert resp.status_code == 200
        assert resp.json()["status"] == status

    resp = set_status(client, admin_headers, order["id"], "cancelled")
    assert resp.status_code == 400
    assert "terminal" in resp.json()["detail"]


def test_non_adjacent_status_is_rejected(client, admin_headers, user_headers, products):
    order = place_order(client, user_headers)

    resp = set_status(client, admin_headers, order["id"], "completed")
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert "'pending'" in detail
    assert "cancelled, processing" in detail

    order_view = client.get(f"/api/orders/{order['id']}", headers=user_headers).json()
    assert order_view["status"] == "pending"


def test_status_update_missing_order(client, admin_headers):
    assert set_status(client, admin_headers, 9999, "processing").status_code == 404


def test_list_and_filter_orders(client, admin_headers, user_headers, products):
    first = place_order(client, user_headers)
    second = place_order(client, user_headers, "P002")
    set_status(client, admin_headers, second["id"], "processing")

    all_orders = client.get("/api/admin/orders", headers=admin_headers).json()
    assert {o["id"] for o in all_orders} == {first["id"], second["id"]}

    processing = client.get("/api/admin/orders", params={"status": "processing"}, headers=admin_headers).json()
    assert [o["id"] for o in processing] == [second["id"]]

    assert client.get("/api/admin/orders", params={"status": "lost"}, headers=admin_headers).status_code == 400


def test_order_stats(client, admin_headers, user_headers, products):
    place_order(client, user_headers, "P001", 1)
    place_order(client, user_headers, "P002", 2)

    stats = {s["status"]: s for s in client.get("/api/admin/orders/stats", headers=admin_headers).json()}
    assert set(stats) == {"pending", "processing", "shipped", "completed", "cancelled"}
    assert stats["pending"]["count"] == 2
    assert Decimal(stats["pending"]["revenue"]) == Decimal("151.00")
    assert stats["shipped"]["count"] == 0


def test_delete_order(client, admin_headers, user_headers, products):
    order = place_order(client, user_headers)

    assert client.delete(f"/api/admin/orders/{order['id']}", headers=admin_headers).status_code == 204
    assert client.get(f"/api/orders/{order['id']}", headers=user_headers).status_code == 404
    assert client.delete(f"/api/admin/orders/{order['id']}", headers=admin_headers).status_code == 404


def test_users_list_and_deactivation(client, admin, admin_headers, user, user_headers):
    users = client.get("/api/admin/users", headers=admin_headers).json()
    assert {u["username"] for u in users} == {"alice", "admin"}
    assert all("password" not in u for u in users)

    resp = client.put(f"/api/admin/users/{user.id}/status", json={"is_active": False}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["is_active"] is False

    # deactivated users can neither use old tokens nor sign in again
    assert client.get("/api/users/profile", headers=user_headers).status_code == 403
    assert client.post("/api/auth/signin", json={"username": "alice", "password": "secret123"}).status_code == 401

    resp = client.put(f"/api/admin/users/{user.id}/status", json={"is_active": True}, headers=admin_headers)
    assert resp.json()["is_active"] is True
    assert client.get("/api/users/profile", headers=user_headers).status_code == 200


def test_admin_cannot_deactivate_self(client, admin, admin_headers):
    resp = client.put(f"/api/admin/users/{admin.id}/status", json={"is_active": False}, headers=admin_headers)
    assert resp.status_code == 400


def test_activities_merge_memory_and_database(client, admin_headers, user_headers, products):
    order = place_order(client, user_headers)
    set_status(client, admin_headers, order["id"], "processing")
    activity_feed.record("system", "maintenance window scheduled")

    resp = client.get("/api/admin/activities", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["total_activities"] == len(body["data"]) <= 20

    types = {a["type"] for a in body["data"]}
    assert {"order", "product", "user", "system"} <= types
    assert body["data"][0]["text"] == "maintenance window scheduled"

    timestamps = [datetime.fromisoformat(a["timestamp"]) for a in body["data"]]
    assert timestamps == sorted(timestamps, reverse=True)


def test_order_activities_are_deduplicated(client, admin_headers, user_headers, products):
    order = place_order(client, user_headers)
    set_status(client, admin_headers, order["id"], "processing")

    body = client.get("/api/admin/order-activities", headers=admin_headers).json()
    keys = [(a["data"]["orderId"], a["data"]["actionType"]) for a in body["data"]]
    assert len(keys) == len(set(keys))
    assert (order["id"], "status_update") in keys
    assert body["memory_activities"] == 2


def test_system_status_and_dashboard(client, admin_headers):
    status = client.get("/api/admin/system-status", headers=admin_headers).json()
    assert status["data"]["database"]["status"] == "connected"
    assert status["data"]["redis"]["status"] == "connected"
    assert status["data"]["overall"]["status"] == "healthy"

    dashboard = client.get("/api/admin/dashboard", headers=admin_headers).json()
    assert dashboard["success"] is True
    assert set(dashboard["data"]) == {"stats", "activities", "system_status"}
    assert dashboard["data"]["stats"]["total_users"] == 1


def test_system_status_reports_redis_outage(client, admin_headers, fake_redis):
    fake_redis.fail = True
    status = client.get("/api/admin/system-status", headers=admin_headers).json()["data"]
    assert status["redis"]["status"] == "disconnected"
    assert status["overall"]["status"] == "warning"


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert resp.json()["services"]["database"] == "connected"


def test_new_user_shows_up_in_feed(client, admin_headers):
    bob = create_user(username="bob")
    activities = client.get("/api/admin/activities", headers=admin_headers).json()["data"]
    assert any(a["type"] == "user" and a["data"].get("userId") == bob.id for a in activities)

    # admins are left out of the database-derived user activities
    assert not any(a["type"] == "user" and a["data"].get("username") == "admin" for a in activities)


def test_checked_out_order_appears_once_as_new(client, admin_headers, user_headers, products):
    order = place_order(client, user_headers)

    body = client.get("/api/admin/order-activities", headers=admin_headers).json()
    entries = [a for a in body["data"] if a["data"]["orderId"] == order["id"]]
    assert len(entries) == 1
    assert entries[0]["data"]["actionType"] == "new_order"

    # the database-derived entry for a fresh order is a new order too
    activities = client.get("/api/admin/activities", headers=admin_headers).json()["data"]
    from_db = [a for a in activities if a["type"] == "order" and "customerName" in a["data"]]
    assert [a["data"]["actionType"] for a in from_db] == ["new_order"]
    assert from_db[0]["text"].startswith(f"New order #{order['id']}")


def test_admin_cannot_move_a_cart_past_checkout(client, admin_headers, user_headers, products):
    cart = client.post("/api/orders/cart/items", json={"product_code": "P001"}, headers=user_headers).json()
    client.delete("/api/orders/cart", headers=user_headers)

    resp = set_status(client, admin_headers, cart["id"], "pending")
    assert resp.status_code == 400
    assert "checkout" in resp.json()["detail"]

    assert client.get("/api/orders/cart", headers=user_headers).json()["status"] == "cart"
    assert client.get("/api/admin/stats", headers=admin_headers).json()["total_orders"] == 0


def test_database_activity_failure_rolls_back(client, admin_headers, monkeypatch):
    rollbacks = []
    original_rollback = Session.rollback

    def tracking_rollback(self):
        rollbacks.append(self)
        return original_rollback(self)

    def failing_activities(self, since, now):
        raise OperationalError("SELECT 1", {}, Exception("connection lost"))

    monkeypatch.setattr(Session, "rollback", tracking_rollback)
    monkeypatch.setattr(AdminService, "_db_activities", failing_activities)

    resp = client.get("/api/admin/dashboard", headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]

    assert rollbacks
    assert data["system_status"]["database"]["status"] == "connected"
    assert any(a["type"] == "system" and a["data"]["severity"] == "error" for a in data["activities"])
