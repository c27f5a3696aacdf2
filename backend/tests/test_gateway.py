"""
Gateway tests.

Verifies:
- Health endpoints for the gateway and each surface
- Unknown routes and methods render the error envelope
- Protected endpoints on every surface return 401 without a token
- A token issued for one surface is rejected by the others
- CORS headers are reflected only for configured origins
"""

import pytest


class TestHealth:
    def test_gateway_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "OK"
        assert set(resp.json["services"]) == {"/admin", "/customer", "/inventory", "/rider"}

    @pytest.mark.parametrize("surface", ["admin", "customer", "inventory", "rider"])
    def test_surface_health(self, client, surface):
        resp = client.get(f"/{surface}/health")
        assert resp.status_code == 200
        assert resp.json["service"] == surface

    def test_unknown_surface_health(self, client):
        resp = client.get("/billing/health")
        assert resp.status_code == 404
        assert resp.json["success"] is False


class TestErrorEnvelope:
    def test_unknown_route(self, client):
        resp = client.get("/customer/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.json == {"success": False, "message": "Route not found"}

    def test_method_not_allowed(self, client):
        resp = client.delete("/health")
        assert resp.status_code == 405
        assert resp.json["success"] is False

    def test_non_object_body_rejected(self, client, db_session):
        resp = client.post("/customer/api/auth/login", json=["not", "an", "object"])
        assert resp.status_code == 400
        assert resp.json["success"] is False


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/admin/api/auth/me"),
            ("GET", "/admin/api/admin/"),
            ("POST", "/admin/api/admin/add"),
            ("GET", "/admin/api/admin/analytics/dashboard"),
            ("GET", "/admin/api/admin/inventory-admins"),
            ("GET", "/admin/api/inventory"),
            ("GET", "/admin/api/riders"),
            ("GET", "/admin/api/orders"),
            ("GET", "/customer/api/auth/profile"),
            ("GET", "/customer/api/cart"),
            ("POST", "/customer/api/orders"),
            ("GET", "/customer/api/addresses"),
            ("GET", "/customer/api/notifications"),
            ("GET", "/inventory/api/inventory/items"),
            ("POST", "/inventory/api/orders/place-order"),
            ("GET", "/rider/api/orders/available"),
            ("GET", "/rider/api/order/available"),
            ("PUT", "/rider/api/delivery/1/progress"),
            ("GET", "/rider/api/delivery/history"),
            ("GET", "/rider/api/rider/profile"),
            ("GET", "/rider/api/notifications"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["message"] == "Access denied. No token provided."

    def test_garbage_token(self, client, db_session):
        resp = client.get("/customer/api/cart", headers={"Authorization": "Bearer not-a-real-token"})
        assert resp.status_code == 401
        assert resp.json["message"] == "Invalid or expired token"


class TestSurfaceIsolation:
    def test_customer_token_rejected_by_rider_surface(self, client, customer_headers):
        resp = client.get("/rider/api/orders/available", headers=customer_headers)
        assert resp.status_code == 401

    def test_rider_token_rejected_by_admin_surface(self, client, rider_headers):
        resp = client.get("/admin/api/auth/me", headers=rider_headers)
        assert resp.status_code == 401

    def test_inventory_token_rejected_by_customer_surface(self, client, inventory_admin_headers):
        resp = client.get("/customer/api/cart", headers=inventory_admin_headers)
        assert resp.status_code == 401


class TestRouterPaths:
    """Paths and methods the surface frontends call, next to their aliases."""

    @pytest.mark.parametrize("path", ["/rider/api/order/available", "/rider/api/orders/available"])
    def test_rider_order_queue(self, client, rider_headers, path):
        assert client.get(path, headers=rider_headers).status_code == 200

    @pytest.mark.parametrize("path", [
        "/inventory/api/inventory/stock/in-stock",
        "/inventory/api/inventory/stock/out-of-stock",
        "/inventory/api/inventory/stock/low-stock",
        "/inventory/api/inventory/dashboard/stats",
    ])
    def test_inventory_stock_views(self, client, inventory_clerk_headers, path):
        resp = client.get(path, headers=inventory_clerk_headers)
        assert resp.status_code == 200
        assert resp.json["success"] is True

    def test_clear_cart_on_collection(self, client, customer_headers, rice):
        client.post("/customer/api/cart/add", json={"item_id": rice.id, "quantity": 1}, headers=customer_headers)
        resp = client.delete("/customer/api/cart", headers=customer_headers)
        assert resp.status_code == 200
        assert client.get("/customer/api/cart", headers=customer_headers).json["data"]["items"] == []

    def test_validate_address_query_string(self, client, customer_headers):
        resp = client.get(
            "/customer/api/addresses/validate?latitude=12.97&longitude=77.59", headers=customer_headers
        )
        assert resp.status_code == 200
        assert resp.json["data"]["in_service_area"] is True

        missing = client.get("/customer/api/addresses/validate", headers=customer_headers)
        assert missing.status_code == 400
        assert missing.json["message"] == "Latitude and longitude are required"

    @pytest.mark.parametrize("method", ["patch", "put"])
    def test_toggle_inventory_admin(self, client, superadmin_headers, inventory_clerk, method):
        path = f"/admin/api/admin/inventory-admins/{inventory_clerk.id}/toggle-status"
        resp = getattr(client, method)(path, headers=superadmin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["is_active"] is False

    def test_progress_update_is_routed(self, client, rider_headers):
        resp = client.put("/rider/api/delivery/9999/progress", json={}, headers=rider_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == "Order not found or not out for delivery"


class TestCors:
    def test_allowed_origin_reflected(self, client):
        resp = client.get("/health", headers={"Origin": "http://localhost:3001"})
        assert resp.headers["Access-Control-Allow-Origin"] == "http://localhost:3001"
        assert resp.headers["Access-Control-Allow-Credentials"] == "true"

    def test_unknown_origin_ignored(self, client):
        resp = client.get("/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers
