"""
Customer cart tests.

Verifies:
- Adding, merging, updating and removing lines
- Stock and per-line quantity bounds
- Cart is revalidated against live item data on read
- Checkout summary totals (delivery fee, tax, free-delivery threshold)
- Stale carts are discarded
"""

from datetime import timedelta

import pytest

from justoo.models import CartItem
from justoo.services import cart_service
from justoo.time_utils import utcnow


CART = "/customer/api/cart"


def _add(client, headers, item, quantity=1):
    return client.post(f"{CART}/add", json={"item_id": item.id, "quantity": quantity}, headers=headers)


class TestAddToCart:
    def test_add_and_merge_quantity(self, client, customer_headers, rice):
        assert _add(client, customer_headers, rice, 2).status_code == 200
        resp = _add(client, customer_headers, rice, 3)
        assert resp.status_code == 200

        cart = resp.json["data"]
        assert cart["item_count"] == 5
        assert cart["line_count"] == 1
        assert cart["items"][0]["quantity"] == 5
        assert cart["subtotal_cents"] == 5 * 12000

    def test_unknown_item(self, client, customer_headers, db_session):
        resp = client.post(f"{CART}/add", json={"item_id": 9999, "quantity": 1}, headers=customer_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == "Item not found or unavailable"

    def test_inactive_item(self, client, db_session, customer_headers, rice):
        rice.is_active = False
        db_session.commit()
        assert _add(client, customer_headers, rice).status_code == 404

    def test_insufficient_stock(self, client, customer_headers, bananas):
        resp = _add(client, customer_headers, bananas, 6)
        assert resp.status_code == 400
        assert resp.json["message"] == "Insufficient stock. Available: 5"

    def test_merge_beyond_stock_rejected(self, client, customer_headers, bananas):
        _add(client, customer_headers, bananas, 4)
        resp = _add(client, customer_headers, bananas, 2)
        assert resp.status_code == 400

    def test_quantity_cap(self, client, db_session, customer_headers, rice):
        rice.quantity = 500
        db_session.commit()
        resp = _add(client, customer_headers, rice, 100)
        assert resp.status_code == 400
        assert resp.json["message"] == "Cannot add more than 99 units of an item"

    @pytest.mark.parametrize("quantity", [0, -1, "abc", 1.5])
    def test_invalid_quantity(self, client, customer_headers, rice, quantity):
        resp = client.post(f"{CART}/add", json={"item_id": rice.id, "quantity": quantity}, headers=customer_headers)
        assert resp.status_code == 400


class TestUpdateCart:
    def test_update_quantity(self, client, customer_headers, rice):
        _add(client, customer_headers, rice, 1)
        resp = client.put(f"{CART}/item/{rice.id}", json={"quantity": 4}, headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["items"][0]["quantity"] == 4

    def test_zero_removes_line(self, client, customer_headers, rice):
        _add(client, customer_headers, rice, 1)
        resp = client.put(f"{CART}/item/{rice.id}", json={"quantity": 0}, headers=customer_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["items"] == []

    def test_update_missing_line(self, client, customer_headers, rice):
        resp = client.put(f"{CART}/item/{rice.id}", json={"quantity": 2}, headers=customer_headers)
        assert resp.status_code == 404
        assert resp.json["message"] == "Item not found in cart"

    def test_remove_and_clear(self, client, customer_headers, rice, milk):
        _add(client, customer_headers, rice, 1)
        _add(client, customer_headers, milk, 1)

        resp = client.delete(f"{CART}/item/{rice.id}", headers=customer_headers)
        assert resp.status_code == 200
        assert [line["item_id"] for line in resp.json["data"]["items"]] == [milk.id]

        assert client.delete(f"{CART}/clear", headers=customer_headers).status_code == 200
        assert client.get(CART, headers=customer_headers).json["data"]["items"] == []


class TestCartRevalidation:
    def test_deactivated_item_dropped(self, client, db_session, customer_headers, rice, milk):
        _add(client, customer_headers, rice, 1)
        _add(client, customer_headers, milk, 1)
        rice.is_active = False
        db_session.commit()

        cart = client.get(CART, headers=customer_headers).json["data"]
        assert [line["item_id"] for line in cart["items"]] == [milk.id]
        assert cart["removed_items"][0]["item_id"] == rice.id

    def test_quantity_clamped_to_stock(self, client, db_session, customer_headers, bananas):
        _add(client, customer_headers, bananas, 5)
        bananas.quantity = 2
        db_session.commit()

        cart = client.get(CART, headers=customer_headers).json["data"]
        assert cart["items"][0]["quantity"] == 2
        assert cart["adjusted_items"] == [{"item_id": bananas.id, "from": 5, "to": 2}]

    def test_prices_are_live(self, client, db_session, customer_headers, rice):
        _add(client, customer_headers, rice, 2)
        rice.price_cents = 15000
        db_session.commit()

        cart = client.get(CART, headers=customer_headers).json["data"]
        assert cart["items"][0]["unit_price_cents"] == 15000
        assert cart["subtotal_cents"] == 30000


class TestCartSummary:
    def test_empty_cart(self, client, customer_headers):
        resp = client.get(f"{CART}/summary", headers=customer_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Cart is empty"

    def test_below_free_delivery_threshold(self, client, customer_headers, milk):
        _add(client, customer_headers, milk, 2)
        summary = client.get(f"{CART}/summary", headers=customer_headers).json["data"]

        assert summary["subtotal_cents"] == 6000
        assert summary["delivery_fee_cents"] == 4000
        assert summary["tax_cents"] == 300
        assert summary["total_cents"] == 10300
        assert summary["amount_for_free_delivery_cents"] == 4000

    def test_free_delivery_at_threshold(self, client, customer_headers, rice):
        _add(client, customer_headers, rice, 1)
        summary = client.get(f"{CART}/summary", headers=customer_headers).json["data"]

        assert summary["delivery_fee_cents"] == 0
        assert summary["tax_cents"] == 600
        assert summary["total_cents"] == 12600
        assert summary["amount_for_free_delivery_cents"] == 0


class TestCartExpiry:
    def test_stale_cart_discarded_on_read(self, client, db_session, customer, customer_headers, rice):
        _add(client, customer_headers, rice, 1)
        db_session.query(CartItem).update({CartItem.updated_at: utcnow() - timedelta(hours=100)})
        db_session.commit()

        cart = client.get(CART, headers=customer_headers).json["data"]
        assert cart["items"] == []
        assert db_session.query(CartItem).filter_by(customer_id=customer.id).count() == 0

    def test_prune_stale_carts(self, db_session, customer, rice, milk):
        from conftest import make_customer
        fresh = make_customer(db_session, phone="9000022222", name="Fresh Cart")
        db_session.add(CartItem(
            customer_id=customer.id,
            item_id=rice.id,
            quantity=1,
            updated_at=utcnow() - timedelta(hours=80),
        ))
        db_session.add(CartItem(customer_id=fresh.id, item_id=milk.id, quantity=1))
        db_session.commit()

        assert cart_service.prune_stale_carts(ttl_hours=72) == 1
        remaining = db_session.query(CartItem).all()
        assert [line.customer_id for line in remaining] == [fresh.id]
