"""
Customer order tests.

Verifies:
- Checkout totals, stock decrement, payment record and cart clearing
- Sequential order numbers
- Unavailable items block checkout with per-line errors
- Customer cancellation window and stock restoration
- Rider fan-out and customer status notifications
- Orders are scoped to their customer
"""

import json

import pytest

from justoo.models import CustomerAddress, Order, Payment, RiderNotification
from justoo.services import order_service

from conftest import issue_headers, make_customer, make_rider


ORDERS = "/customer/api/orders"


class TestPlaceOrder:
    def test_order_totals_and_side_effects(self, client, db_session, customer, customer_headers, place_order, rice, milk):
        order = place_order((rice, 2), (milk, 1))

        assert order["status"] == "placed"
        assert order["order_number"] == "ORD-000001"
        assert order["subtotal_cents"] == 27000
        assert order["delivery_fee_cents"] == 0
        assert order["tax_cents"] == 1350
        assert order["total_cents"] == 28350
        assert order["item_count"] == 3
        assert {line["item_id"]: line["quantity"] for line in order["items"]} == {rice.id: 2, milk.id: 1}
        assert order["payment"]["method"] == "cash"
        assert order["payment"]["status"] == "pending"
        assert order["delivery_address"]["city"] == "Bengaluru"

        db_session.refresh(rice)
        db_session.refresh(milk)
        assert rice.quantity == 48
        assert milk.quantity == 19

        db_session.refresh(customer)
        assert customer.total_orders == 1
        assert customer.total_spent_cents == 28350

        cart = client.get("/customer/api/cart", headers=customer_headers).json["data"]
        assert cart["items"] == []

    def test_small_order_pays_delivery_fee(self, place_order, milk):
        order = place_order((milk, 1))
        assert order["subtotal_cents"] == 3000
        assert order["delivery_fee_cents"] == 4000
        assert order["tax_cents"] == 150
        assert order["total_cents"] == 7150

    def test_online_payment_completed_immediately(self, place_order, rice):
        order = place_order((rice, 1), payment_method="upi")
        assert order["payment"]["status"] == "completed"
        assert order["payment"]["paid_at"] is not None

    def test_order_numbers_are_sequential(self, place_order, rice):
        first = place_order((rice, 1))
        second = place_order((rice, 1))
        assert first["order_number"] == "ORD-000001"
        assert second["order_number"] == "ORD-000002"

    def test_response_envelope(self, client, customer_headers, address, rice):
        client.post("/customer/api/cart/add", json={"item_id": rice.id, "quantity": 1}, headers=customer_headers)
        resp = client.post(ORDERS, json={"delivery_address_id": address.id}, headers=customer_headers)
        assert resp.status_code == 201
        assert resp.json["data"]["order_number"] == resp.json["data"]["order"]["order_number"]
        assert resp.json["data"]["estimated_delivery"] == 15

    def test_address_required(self, client, customer_headers, rice):
        resp = client.post(ORDERS, json={}, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Delivery address is required"

    def test_empty_cart(self, client, customer_headers, address):
        resp = client.post(ORDERS, json={"delivery_address_id": address.id}, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Cart is empty"

    def test_foreign_address_rejected(self, client, db_session, customer_headers, rice):
        stranger = make_customer(db_session, phone="9000033333", name="Stranger")
        foreign = CustomerAddress(customer_id=stranger.id, full_address="1 Elsewhere", city="Pune", is_default=True)
        db_session.add(foreign)
        db_session.commit()

        client.post("/customer/api/cart/add", json={"item_id": rice.id, "quantity": 1}, headers=customer_headers)
        resp = client.post(ORDERS, json={"delivery_address_id": foreign.id}, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid delivery address"

    def test_invalid_payment_method(self, client, customer_headers, address, rice):
        client.post("/customer/api/cart/add", json={"item_id": rice.id, "quantity": 1}, headers=customer_headers)
        resp = client.post(
            ORDERS,
            json={"delivery_address_id": address.id, "payment_method": "barter"},
            headers=customer_headers,
        )
        assert resp.status_code == 400

    def test_stock_drop_blocks_checkout(self, client, db_session, customer_headers, address, rice, bananas):
        client.post("/customer/api/cart/add", json={"item_id": rice.id, "quantity": 1}, headers=customer_headers)
        client.post("/customer/api/cart/add", json={"item_id": bananas.id, "quantity": 4}, headers=customer_headers)
        bananas.quantity = 2
        db_session.commit()

        resp = client.post(ORDERS, json={"delivery_address_id": address.id}, headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Some items in your cart are unavailable"
        assert resp.json["errors"][0]["item_id"] == bananas.id

        db_session.refresh(rice)
        assert rice.quantity == 50
        assert db_session.query(Order).count() == 0


class TestCancelOrder:
    def test_cancel_restocks_and_fails_pending_payment(self, client, db_session, customer_headers, place_order, rice):
        order = place_order((rice, 3))

        resp = client.put(f"{ORDERS}/{order['id']}/cancel", json={"reason": "Changed my mind"}, headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "cancelled"
        assert resp.json["data"]["cancel_reason"] == "Changed my mind"

        db_session.refresh(rice)
        assert rice.quantity == 50
        payment = db_session.query(Payment).filter_by(order_id=order["id"]).one()
        assert payment.status == "failed"

    def test_cancel_refunds_completed_payment(self, client, db_session, customer_headers, place_order, rice):
        order = place_order((rice, 1), payment_method="card")
        client.put(f"{ORDERS}/{order['id']}/cancel", headers=customer_headers)
        payment = db_session.query(Payment).filter_by(order_id=order["id"]).one()
        assert payment.status == "refunded"

    @pytest.mark.parametrize("status", ["preparing", "out_for_delivery", "delivered", "cancelled"])
    def test_cancel_outside_window(self, client, db_session, customer_headers, place_order, rice, status):
        order = place_order((rice, 1))
        db_session.get(Order, order["id"]).status = status
        db_session.commit()

        resp = client.put(f"{ORDERS}/{order['id']}/cancel", headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == f"Order cannot be cancelled. Current status: {status}"


class TestOrderQueries:
    def test_list_detail_and_stats(self, client, customer_headers, place_order, rice, milk):
        first = place_order((rice, 1))
        place_order((milk, 1))

        listing = client.get(ORDERS, headers=customer_headers).json["data"]
        assert listing["pagination"]["total"] == 2

        detail = client.get(f"{ORDERS}/{first['id']}", headers=customer_headers)
        assert detail.status_code == 200
        assert detail.json["data"]["items"][0]["item_name"] == "Basmati Rice"

        client.put(f"{ORDERS}/{first['id']}/cancel", headers=customer_headers)
        stats = client.get(f"{ORDERS}/stats", headers=customer_headers).json["data"]
        assert stats["total_orders"] == 1
        assert stats["total_spent_cents"] == 7150
        assert stats["status_breakdown"]["cancelled"] == 1

    def test_filter_by_status(self, client, customer_headers, place_order, rice):
        order = place_order((rice, 1))
        client.put(f"{ORDERS}/{order['id']}/cancel", headers=customer_headers)
        place_order((rice, 1))

        resp = client.get(f"{ORDERS}?status=placed", headers=customer_headers)
        assert [o["status"] for o in resp.json["data"]["orders"]] == ["placed"]

    def test_other_customers_order_is_hidden(self, client, db_session, place_order, rice):
        order = place_order((rice, 1))
        other = make_customer(db_session, phone="9000044444", name="Nosy")
        resp = client.get(f"{ORDERS}/{order['id']}", headers=issue_headers("customer", other))
        assert resp.status_code == 404


class TestOrderNotifications:
    def test_active_riders_notified(self, db_session, place_order, rice):
        active = make_rider(db_session, username="act0001", phone="9876500011")
        make_rider(db_session, username="off0001", phone="9876500012", status="inactive")

        order = place_order((rice, 3))
        notes = db_session.query(RiderNotification).all()
        assert [n.rider_id for n in notes] == [active.id]
        assert order["order_number"] in notes[0].message
        assert json.loads(notes[0].data)["item_count"] == 3

    def test_customer_inbox_tracks_status(self, client, customer_headers, place_order, rice):
        order = place_order((rice, 1))
        client.put(f"{ORDERS}/{order['id']}/cancel", headers=customer_headers)

        inbox = client.get("/customer/api/notifications", headers=customer_headers).json["data"]
        assert [n["title"] for n in inbox["notifications"]] == ["Order cancelled", "Order placed"]
        assert inbox["unread_count"] == 2

        first_id = inbox["notifications"][0]["id"]
        resp = client.put(f"/customer/api/notifications/{first_id}/read", headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["is_read"] is True


class TestTransitions:
    def test_illegal_transition(self, db_session, place_order, rice):
        order = db_session.get(Order, place_order((rice, 1))["id"])
        with pytest.raises(order_service.OrderError):
            order_service.transition_order(order, "delivered")

    def test_delivery_settles_cash_payment(self, db_session, place_order, rice):
        order = db_session.get(Order, place_order((rice, 1))["id"])
        for status in ("confirmed", "preparing", "ready", "out_for_delivery", "delivered"):
            order_service.transition_order(order, status)

        assert order.delivered_at is not None
        payment = db_session.query(Payment).filter_by(order_id=order.id).one()
        assert payment.status == "completed"
