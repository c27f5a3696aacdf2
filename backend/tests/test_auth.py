"""
Authentication tests for every surface.

Verifies:
- Customer registration validation and uniqueness (400/409)
- Login per surface (customer by phone, inventory by username or email,
  rider by username or phone, admin by username)
- Logout and password change revoke sessions
- Token refresh rotates the admin token
- Deactivated or suspended accounts cannot log in
"""

import pytest

from justoo.models import SessionToken

from conftest import PASSWORD, auth_headers, make_rider


class TestCustomerRegistration:
    def test_register_returns_token(self, client, db_session):
        resp = client.post("/customer/api/auth/register", json={
            "name": "Meera",
            "phone": "+91 98765 43210",
            "email": "Meera@Example.com",
            "password": "secret1",
        })
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["customer"]["email"] == "meera@example.com"
        assert "password_hash" not in data["customer"]
        assert data["token"]
        assert "justoo_token" in resp.headers.get("Set-Cookie", "")

        profile = client.get("/customer/api/auth/profile", headers=auth_headers(data["token"]))
        assert profile.status_code == 200
        assert profile.json["data"]["customer"]["name"] == "Meera"

    @pytest.mark.parametrize(
        "payload,message",
        [
            ({"phone": "9876543210", "password": "secret1"}, "Name, phone, and password are required"),
            ({"name": "A", "phone": "9876543210", "password": "secret1"}, "Name must be at least 2 characters long"),
            ({"name": "Meera", "phone": "12345", "password": "secret1"}, "Please provide a valid phone number"),
            ({"name": "Meera", "phone": "9876543210", "password": "123"}, "Password must be at least 6 characters long"),
            (
                {"name": "Meera", "phone": "9876543210", "password": "secret1", "email": "nope"},
                "Please provide a valid email address",
            ),
            ({"name": "Meera", "phone": 9876543210, "password": "secret1"}, "Please provide a valid phone number"),
            (
                {"name": "Meera", "phone": "9876543210", "password": "secret1", "email": 42},
                "Please provide a valid email address",
            ),
            ({"name": 12345, "phone": "9876543210", "password": "secret1"}, "name must be a string"),
            ({"name": "Meera", "phone": "9876543210", "password": 1234567}, "Password must be at least 6 characters long"),
        ],
    )
    def test_register_validation(self, client, db_session, payload, message):
        resp = client.post("/customer/api/auth/register", json=payload)
        assert resp.status_code == 400
        assert resp.json["message"] == message

    def test_duplicate_phone_conflict(self, client, customer):
        resp = client.post("/customer/api/auth/register", json={
            "name": "Someone Else",
            "phone": customer.phone,
            "password": "secret1",
        })
        assert resp.status_code == 409


class TestCustomerLogin:
    def test_login_success_updates_last_login(self, client, customer):
        resp = client.post("/customer/api/auth/login", json={"phone": customer.phone, "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json["data"]["customer"]["last_login"] is not None

    def test_wrong_password(self, client, customer):
        resp = client.post("/customer/api/auth/login", json={"phone": customer.phone, "password": "wrong-pass"})
        assert resp.status_code == 401

    def test_missing_fields(self, client, db_session):
        resp = client.post("/customer/api/auth/login", json={"phone": "9123456780"})
        assert resp.status_code == 400

    @pytest.mark.parametrize("status", ["inactive", "suspended", "banned"])
    def test_non_active_status_rejected(self, client, db_session, customer, status):
        customer.status = status
        db_session.commit()
        resp = client.post("/customer/api/auth/login", json={"phone": customer.phone, "password": PASSWORD})
        assert resp.status_code == 401

    def test_logout_revokes_token(self, client, customer_headers):
        resp = client.post("/customer/api/auth/logout", headers=customer_headers)
        assert resp.status_code == 200
        assert client.get("/customer/api/auth/profile", headers=customer_headers).status_code == 401

    def test_cookie_authenticates(self, client, customer):
        client.post("/customer/api/auth/login", json={"phone": customer.phone, "password": PASSWORD})
        resp = client.get("/customer/api/auth/profile")
        assert resp.status_code == 200

    def test_change_password_wrong_current(self, client, customer_headers):
        resp = client.put(
            "/customer/api/auth/change-password",
            json={"current_password": "not-it", "new_password": "brandnew1"},
            headers=customer_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Current password is incorrect"

    def test_change_password_revokes_other_sessions(self, client, customer, customer_headers):
        other = client.post("/customer/api/auth/login", json={"phone": customer.phone, "password": PASSWORD})
        other_headers = auth_headers(other.json["data"]["token"])

        resp = client.put(
            "/customer/api/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "brandnew1"},
            headers=customer_headers,
        )
        assert resp.status_code == 200
        assert client.get("/customer/api/auth/profile", headers=customer_headers).status_code == 200
        assert client.get("/customer/api/auth/profile", headers=other_headers).status_code == 401

    def test_profile_update_email_conflict(self, client, db_session, customer_headers):
        from conftest import make_customer
        other = make_customer(db_session, phone="9000011111", name="Other")
        other.email = "taken@example.com"
        db_session.commit()

        resp = client.put("/customer/api/auth/profile", json={"email": "taken@example.com"}, headers=customer_headers)
        assert resp.status_code == 409


class TestAdminAuth:
    def test_login_and_me(self, client, admin):
        resp = client.post("/admin/api/auth/login", json={"username": "ops", "password": PASSWORD})
        assert resp.status_code == 200
        token = resp.json["data"]["token"]

        me = client.get("/admin/api/auth/me", headers=auth_headers(token))
        assert me.status_code == 200
        assert me.json["data"]["admin"]["role"] == "admin"

    def test_invalid_credentials(self, client, admin):
        resp = client.post("/admin/api/auth/login", json={"username": "ops", "password": "nope-nope"})
        assert resp.status_code == 401

    def test_non_string_username(self, client, admin):
        resp = client.post("/admin/api/auth/login", json={"username": 1234, "password": "nope-nope"})
        assert resp.status_code == 400
        assert resp.json["message"] == "username must be a string"

    def test_inactive_admin_rejected(self, client, db_session, admin):
        admin.is_active = False
        db_session.commit()
        resp = client.post("/admin/api/auth/login", json={"username": "ops", "password": PASSWORD})
        assert resp.status_code == 401

    def test_refresh_rotates_token(self, client, admin_headers):
        resp = client.post("/admin/api/auth/refresh", headers=admin_headers)
        assert resp.status_code == 200
        new_headers = auth_headers(resp.json["data"]["token"])

        assert client.get("/admin/api/auth/me", headers=admin_headers).status_code == 401
        assert client.get("/admin/api/auth/me", headers=new_headers).status_code == 200

    def test_profile_update_validation(self, client, admin_headers):
        resp = client.put("/admin/api/auth/profile", json={"username": "ab"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_profile_update_conflict(self, client, superadmin, admin_headers):
        resp = client.put("/admin/api/auth/profile", json={"username": superadmin.username}, headers=admin_headers)
        assert resp.status_code == 409
        assert resp.json["message"] == "Username already exists"

    def test_password_change(self, client, admin_headers):
        resp = client.put(
            "/admin/api/auth/password",
            json={"current_password": PASSWORD, "new_password": "Another123"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        login = client.post("/admin/api/auth/login", json={"username": "ops", "password": "Another123"})
        assert login.status_code == 200

    def test_deactivated_admin_session_dies(self, client, db_session, admin, admin_headers):
        admin.is_active = False
        db_session.commit()
        assert client.get("/admin/api/auth/me", headers=admin_headers).status_code == 401
        revoked = db_session.query(SessionToken).filter_by(principal_id=admin.id, principal_type="admin").one()
        assert revoked.is_revoked is True


class TestInventoryAuth:
    @pytest.mark.parametrize("identifier_field,identifier", [
        ("username", "stockboss"),
        ("email", "stockboss@justoo.test"),
    ])
    def test_login_by_username_or_email(self, client, inventory_admin, identifier_field, identifier):
        resp = client.post("/inventory/api/auth/login", json={identifier_field: identifier, "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json["data"]["user"]["role"] == "admin"

    def test_profile(self, client, inventory_clerk_headers):
        resp = client.get("/inventory/api/auth/profile", headers=inventory_clerk_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["user"]["username"] == "clerk"


class TestRiderAuth:
    @pytest.mark.parametrize("identifier_field,identifier", [
        ("username", "ravi1234"),
        ("phone", "9876500001"),
    ])
    def test_login_by_username_or_phone(self, client, rider, identifier_field, identifier):
        resp = client.post("/rider/api/auth/login", json={identifier_field: identifier, "password": PASSWORD})
        assert resp.status_code == 200
        assert resp.json["data"]["rider"]["username"] == "ravi1234"

    def test_suspended_rider_rejected(self, client, db_session):
        make_rider(db_session, username="sus0001", phone="9876500009", status="suspended")
        resp = client.post("/rider/api/auth/login", json={"username": "sus0001", "password": PASSWORD})
        assert resp.status_code == 401

    def test_soft_deleted_rider_rejected(self, client, db_session, rider):
        rider.is_active = False
        db_session.commit()
        resp = client.post("/rider/api/auth/login", json={"username": rider.username, "password": PASSWORD})
        assert resp.status_code == 401

    def test_numeric_phone_rejected(self, client, rider):
        resp = client.post("/rider/api/auth/login", json={"phone": 9876500001, "password": PASSWORD})
        assert resp.status_code == 400
