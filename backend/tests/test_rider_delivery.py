"""
Rider surface tests.

Verifies:
- Available queue and single-winner order acceptance
- Delivery lifecycle: start -> busy rider, complete -> delivered, fail -> cancelled
- Progress, history and statistics
- Rider profile, availability status and notification inbox
"""

import pytest

from justoo.models import Order, Payment, RiderNotification

from conftest import PASSWORD, issue_headers, make_rider


ORDERS = "/rider/api/orders"
DELIVERY = "/rider/api/delivery"


@pytest.fixture
def accepted_order(client, rider_headers, place_order, rice):
    """An order placed by the customer and accepted by the rider."""
    order = place_order((rice, 2))
    resp = client.post(f"{ORDERS}/{order['id']}/accept", headers=rider_headers)
    assert resp.status_code == 200, resp.json
    return resp.json["data"]


class TestOrderQueues:
    def test_available_orders(self, client, rider_headers, place_order, rice):
        order = place_order((rice, 1))
        resp = client.get(f"{ORDERS}/available", headers=rider_headers)
        assert resp.status_code == 200
        assert [o["id"] for o in resp.json["data"]["orders"]] == [order["id"]]

    def test_accept_assigns_and_confirms(self, client, db_session, rider, accepted_order):
        assert accepted_order["status"] == "confirmed"
        assert accepted_order["rider"]["id"] == rider.id

    def test_accepted_order_leaves_queue(self, client, rider_headers, accepted_order):
        resp = client.get(f"{ORDERS}/available", headers=rider_headers)
        assert resp.json["data"]["orders"] == []

        current = client.get(f"{ORDERS}/current", headers=rider_headers).json["data"]
        assert [o["id"] for o in current] == [accepted_order["id"]]

    def test_second_rider_cannot_accept(self, client, db_session, accepted_order):
        other = make_rider(db_session, username="raj5678", phone="9876500002")
        resp = client.post(f"{ORDERS}/{accepted_order['id']}/accept", headers=issue_headers("rider", other))
        assert resp.status_code == 404
        assert resp.json["message"] == "Order not found or already assigned"

    def test_inactive_rider_cannot_accept(self, client, db_session, rider, rider_headers, place_order, rice):
        order = place_order((rice, 1))
        rider.status = "inactive"
        db_session.commit()
        resp = client.post(f"{ORDERS}/{order['id']}/accept", headers=rider_headers)
        assert resp.status_code == 400

    def test_other_riders_order_hidden(self, client, db_session, accepted_order):
        other = make_rider(db_session, username="raj5678", phone="9876500002")
        resp = client.get(f"{ORDERS}/{accepted_order['id']}", headers=issue_headers("rider", other))
        assert resp.status_code == 404

    def test_status_update_follows_transitions(self, client, rider_headers, accepted_order):
        resp = client.put(
            f"{ORDERS}/{accepted_order['id']}/status", json={"status": "preparing"}, headers=rider_headers
        )
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "preparing"

        resp = client.put(
            f"{ORDERS}/{accepted_order['id']}/status", json={"status": "placed"}, headers=rider_headers
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Cannot change order status from preparing to placed"


class TestDeliveryLifecycle:
    def test_start_marks_rider_busy(self, client, db_session, rider, rider_headers, accepted_order):
        resp = client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "out_for_delivery"
        db_session.refresh(rider)
        assert rider.status == "busy"

    def test_complete_delivery(self, client, db_session, rider, rider_headers, accepted_order):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        resp = client.post(
            f"{DELIVERY}/{accepted_order['id']}/complete", json={"notes": "Left with security"}, headers=rider_headers
        )
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["status"] == "delivered"
        assert data["delivered_at"] is not None
        assert data["payment"]["status"] == "completed"

        db_session.refresh(rider)
        assert rider.total_deliveries == 1
        assert rider.status == "active"

        completed = client.get(f"{ORDERS}/completed", headers=rider_headers).json["data"]["orders"]
        assert [o["id"] for o in completed] == [accepted_order["id"]]

    def test_complete_requires_out_for_delivery(self, client, rider_headers, accepted_order):
        resp = client.post(f"{DELIVERY}/{accepted_order['id']}/complete", headers=rider_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Order must be out for delivery to complete"

    def test_start_twice_rejected(self, client, rider_headers, accepted_order):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        resp = client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        assert resp.status_code == 400

    def test_fail_requires_reason(self, client, rider_headers, accepted_order):
        resp = client.post(f"{DELIVERY}/{accepted_order['id']}/fail", json={}, headers=rider_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Failure reason is required"

    def test_fail_cancels_and_restocks(self, client, db_session, rider, rider_headers, accepted_order, rice):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        resp = client.post(
            f"{DELIVERY}/{accepted_order['id']}/fail", json={"reason": "Customer unreachable"}, headers=rider_headers
        )
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "cancelled"
        assert resp.json["data"]["cancel_reason"] == "Delivery failed: Customer unreachable"

        db_session.refresh(rice)
        db_session.refresh(rider)
        assert rice.quantity == 50
        assert rider.status == "active"
        payment = db_session.query(Payment).filter_by(order_id=accepted_order["id"]).one()
        assert payment.status == "failed"

    def test_progress(self, client, rider_headers, accepted_order):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        progress = client.get(f"{DELIVERY}/{accepted_order['id']}/progress", headers=rider_headers).json["data"]
        assert progress["status"] == "out_for_delivery"
        assert progress["progress_percent"] == 80
        current = [step["status"] for step in progress["steps"] if step["current"]]
        assert current == ["out_for_delivery"]

    def test_progress_update(self, client, db_session, rider_headers, accepted_order):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        resp = client.put(f"{DELIVERY}/{accepted_order['id']}/progress", json={
            "progress_notes": "  Reached the gate  ",
            "latitude": 12.9716,
            "longitude": 77.5946,
        }, headers=rider_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["delivery_notes"] == "Reached the gate"

        order = db_session.get(Order, accepted_order["id"])
        db_session.refresh(order)
        assert (order.rider_latitude, order.rider_longitude) == (12.9716, 77.5946)

        view = client.get(f"{DELIVERY}/{accepted_order['id']}/progress", headers=rider_headers).json["data"]
        assert view["delivery_notes"] == "Reached the gate"

    def test_progress_update_requires_out_for_delivery(self, client, rider_headers, accepted_order):
        resp = client.put(
            f"{DELIVERY}/{accepted_order['id']}/progress", json={"progress_notes": "On my way"}, headers=rider_headers
        )
        assert resp.status_code == 404
        assert resp.json["message"] == "Order not found or not out for delivery"

    def test_progress_update_other_rider(self, client, db_session, rider_headers, accepted_order):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        other = make_rider(db_session, username="raj5678", phone="9876500002")
        resp = client.put(
            f"{DELIVERY}/{accepted_order['id']}/progress",
            json={"progress_notes": "Not mine"},
            headers=issue_headers("rider", other),
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize("payload,message", [
        ({"latitude": 123, "longitude": 77.5}, "Invalid latitude"),
        ({"latitude": 12.9}, "Latitude and longitude must be sent together"),
        ({"progress_notes": 5}, "progress_notes must be a string"),
    ])
    def test_progress_update_validation(self, client, rider_headers, accepted_order, payload, message):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        resp = client.put(f"{DELIVERY}/{accepted_order['id']}/progress", json=payload, headers=rider_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == message

    def test_history_and_stats(self, client, db_session, rider_headers, accepted_order, place_order, rice):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        client.post(f"{DELIVERY}/{accepted_order['id']}/complete", headers=rider_headers)

        second = place_order((rice, 1))
        client.post(f"{ORDERS}/{second['id']}/accept", headers=rider_headers)
        client.post(f"{DELIVERY}/{second['id']}/fail", json={"reason": "Wrong address"}, headers=rider_headers)

        history = client.get(f"{DELIVERY}/history", headers=rider_headers).json["data"]
        assert {o["id"] for o in history["orders"]} == {accepted_order["id"], second["id"]}

        stats = client.get(f"{DELIVERY}/stats?period=day", headers=rider_headers).json["data"]
        assert stats["delivered"] == 1
        assert stats["cancelled"] == 1
        assert stats["success_rate"] == 50.0
        assert stats["delivered_value_cents"] == accepted_order["total_cents"]

    def test_stats_rejects_unknown_period(self, client, rider_headers):
        resp = client.get(f"{DELIVERY}/stats?period=decade", headers=rider_headers)
        assert resp.status_code == 400


class TestRiderProfile:
    def test_profile_and_update(self, client, rider_headers):
        resp = client.put("/rider/api/rider/profile", json={"vehicle_number": "KA01ZZ0001"}, headers=rider_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["vehicle_number"] == "KA01ZZ0001"

        resp = client.put("/rider/api/rider/profile", json={"status": "busy"}, headers=rider_headers)
        assert resp.status_code == 400

    @pytest.mark.parametrize("status,expected", [("busy", 200), ("inactive", 200), ("suspended", 400)])
    def test_self_service_status(self, client, rider_headers, status, expected):
        resp = client.put("/rider/api/rider/status", json={"status": status}, headers=rider_headers)
        assert resp.status_code == expected
        if expected == 200:
            assert resp.json["data"] == {"status": status}

    def test_change_password(self, client, rider, rider_headers):
        resp = client.put(
            "/rider/api/rider/password",
            json={"current_password": PASSWORD, "new_password": "RiderPass9"},
            headers=rider_headers,
        )
        assert resp.status_code == 200
        login = client.post("/rider/api/auth/login", json={"phone": rider.phone, "password": "RiderPass9"})
        assert login.status_code == 200

    def test_stats(self, client, rider_headers, accepted_order):
        stats = client.get("/rider/api/rider/stats", headers=rider_headers).json["data"]
        assert stats["active_orders"] == 1
        assert stats["total_deliveries"] == 0


class TestRiderNotifications:
    def test_inbox_flow(self, client, db_session, rider, rider_headers, place_order, rice):
        place_order((rice, 1))
        place_order((rice, 1))

        count = client.get("/rider/api/notifications/count", headers=rider_headers).json["data"]
        assert count == {"unread_count": 2}

        inbox = client.get("/rider/api/notifications", headers=rider_headers).json["data"]
        first_id = inbox["notifications"][0]["id"]
        assert inbox["notifications"][0]["title"] == "New Order Available"

        assert client.put(f"/rider/api/notifications/{first_id}/read", headers=rider_headers).status_code == 200
        updated = client.put("/rider/api/notifications/read-all", headers=rider_headers).json["data"]
        assert updated == {"updated": 1}

        assert client.delete(f"/rider/api/notifications/{first_id}", headers=rider_headers).status_code == 200
        assert db_session.query(RiderNotification).filter_by(rider_id=rider.id).count() == 1

    def test_cannot_touch_other_riders_notification(self, client, db_session, rider, place_order, rice):
        place_order((rice, 1))
        note = db_session.query(RiderNotification).filter_by(rider_id=rider.id).one()
        other = make_rider(db_session, username="raj5678", phone="9876500002")
        resp = client.put(f"/rider/api/notifications/{note.id}/read", headers=issue_headers("rider", other))
        assert resp.status_code == 404


class TestDeliveredOrderState:
    def test_delivered_order_is_terminal(self, client, db_session, rider_headers, accepted_order):
        client.post(f"{DELIVERY}/{accepted_order['id']}/start", headers=rider_headers)
        client.post(f"{DELIVERY}/{accepted_order['id']}/complete", headers=rider_headers)

        resp = client.post(f"{DELIVERY}/{accepted_order['id']}/fail", json={"reason": "late"}, headers=rider_headers)
        assert resp.status_code == 400
        assert db_session.get(Order, accepted_order["id"]).status == "delivered"
