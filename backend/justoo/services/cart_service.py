# Overview: Service-layer operations for the persisted per-customer cart.

"""
Cart store.

Carts are rows in cart_items keyed by (customer_id, item_id). Every
mutation first locks the customer's row, so concurrent requests from one
customer are applied one at a time. Bounds:

- CART_MAX_LINES distinct items per cart
- CART_MAX_QUANTITY units per line
- carts untouched for CART_TTL_HOURS are discarded
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import CartItem, Customer, Item
from ..time_utils import utcnow
from ..validation import NotFoundError, ServiceError, parse_int
from .concurrency import lock_row
from .pricing import compute_totals


class CartError(ServiceError):
    """Cart operation refused (stock, bounds, empty cart)."""


def _lines_query(customer_id: int):
    return db.session.query(CartItem).filter(CartItem.customer_id == customer_id)


def _ttl() -> timedelta:
    return timedelta(hours=current_app.config["CART_TTL_HOURS"])


def _expire_if_stale(customer_id: int) -> bool:
    """Drop the whole cart when its most recent change is older than the TTL."""
    last_touch = (
        db.session.query(func.max(CartItem.updated_at))
        .filter(CartItem.customer_id == customer_id)
        .scalar()
    )
    if last_touch is None or last_touch >= utcnow() - _ttl():
        return False
    _lines_query(customer_id).delete(synchronize_session=False)
    return True


def _line_dict(line: CartItem) -> dict:
    item = line.item
    return {
        "item_id": line.item_id,
        "name": item.name,
        "unit": item.unit,
        "image_url": item.image_url,
        "category": item.category,
        "unit_price_cents": item.price_cents,
        "discount_percent": item.discount_percent,
        "quantity": line.quantity,
        "total_price_cents": item.price_cents * line.quantity,
        "available_quantity": item.quantity,
    }


def get_cart(customer_id: int) -> dict:
    """
    Return the cart, revalidated against live item data.

    Lines whose item is gone, inactive or out of stock are dropped;
    lines above the available stock are reduced to it. Prices always
    come from the current item row.
    """
    changed = _expire_if_stale(customer_id)

    removed = []
    adjusted = []
    kept = []
    for line in _lines_query(customer_id).order_by(CartItem.added_at, CartItem.id).all():
        item = line.item
        if item is None or not item.is_active or item.quantity <= 0:
            removed.append({"item_id": line.item_id, "name": item.name if item else None})
            db.session.delete(line)
            changed = True
            continue
        if line.quantity > item.quantity:
            adjusted.append({"item_id": line.item_id, "from": line.quantity, "to": item.quantity})
            line.quantity = item.quantity
            changed = True
        kept.append(line)

    if changed:
        db.session.commit()

    lines = [_line_dict(line) for line in kept]
    return {
        "items": lines,
        "item_count": sum(line["quantity"] for line in lines),
        "line_count": len(lines),
        "subtotal_cents": sum(line["total_price_cents"] for line in lines),
        "removed_items": removed,
        "adjusted_items": adjusted,
    }


def get_summary(customer_id: int) -> dict:
    """Totals for checkout. Raises CartError on an empty cart."""
    cart = get_cart(customer_id)
    if not cart["items"]:
        raise CartError("Cart is empty")

    totals = compute_totals(cart["subtotal_cents"])
    threshold = current_app.config["FREE_DELIVERY_THRESHOLD_CENTS"]
    return {
        **totals,
        "item_count": cart["item_count"],
        "line_count": cart["line_count"],
        "free_delivery_threshold_cents": threshold,
        "amount_for_free_delivery_cents": max(threshold - cart["subtotal_cents"], 0),
    }


def _active_item(item_id: int) -> Item:
    item = db.session.get(Item, item_id)
    if item is None or not item.is_active:
        raise NotFoundError("Item not found or unavailable")
    return item


def _check_line_quantity(item: Item, quantity: int) -> None:
    max_quantity = current_app.config["CART_MAX_QUANTITY"]
    if quantity > max_quantity:
        raise CartError(f"Cannot add more than {max_quantity} units of an item")
    if quantity > item.quantity:
        raise CartError(f"Insufficient stock. Available: {item.quantity}")


def add_item(customer_id: int, item_id, quantity=1) -> dict:
    item_id = parse_int(item_id, "item_id", minimum=1)
    quantity = parse_int(quantity, "quantity", minimum=1)

    lock_row(Customer, customer_id)
    _expire_if_stale(customer_id)
    item = _active_item(item_id)

    line = _lines_query(customer_id).filter(CartItem.item_id == item_id).first()
    new_quantity = quantity + (line.quantity if line else 0)
    _check_line_quantity(item, new_quantity)

    if line is None:
        line_count = _lines_query(customer_id).count()
        if line_count >= current_app.config["CART_MAX_LINES"]:
            raise CartError(f"Cart cannot hold more than {current_app.config['CART_MAX_LINES']} different items")
        db.session.add(CartItem(customer_id=customer_id, item_id=item_id, quantity=new_quantity))
    else:
        line.quantity = new_quantity
        line.updated_at = utcnow()

    db.session.commit()
    return get_cart(customer_id)


def update_item(customer_id: int, item_id: int, quantity) -> dict:
    """Set a line's quantity; 0 removes the line."""
    quantity = parse_int(quantity, "quantity", minimum=0)

    lock_row(Customer, customer_id)
    line = _lines_query(customer_id).filter(CartItem.item_id == item_id).first()
    if line is None:
        raise NotFoundError("Item not found in cart")

    if quantity == 0:
        db.session.delete(line)
    else:
        _check_line_quantity(_active_item(item_id), quantity)
        line.quantity = quantity
        line.updated_at = utcnow()

    db.session.commit()
    return get_cart(customer_id)


def remove_item(customer_id: int, item_id: int) -> dict:
    lock_row(Customer, customer_id)
    line = _lines_query(customer_id).filter(CartItem.item_id == item_id).first()
    if line is None:
        raise NotFoundError("Item not found in cart")
    db.session.delete(line)
    db.session.commit()
    return get_cart(customer_id)


def clear_cart(customer_id: int) -> None:
    lock_row(Customer, customer_id)
    _lines_query(customer_id).delete(synchronize_session=False)
    db.session.commit()


def load_lines_for_checkout(customer_id: int) -> list[CartItem]:
    """Cart lines for order placement. Caller holds the customer lock."""
    _expire_if_stale(customer_id)
    return _lines_query(customer_id).order_by(CartItem.added_at, CartItem.id).all()


def discard_lines(customer_id: int) -> None:
    """Delete cart lines inside the caller's transaction (no commit)."""
    _lines_query(customer_id).delete(synchronize_session=False)


def prune_stale_carts(ttl_hours: int | None = None) -> int:
    """Delete every cart whose newest line is older than the TTL. Returns carts removed."""
    hours = ttl_hours if ttl_hours is not None else current_app.config["CART_TTL_HOURS"]
    cutoff = utcnow() - timedelta(hours=hours)

    stale_customers = [
        row[0]
        for row in db.session.query(CartItem.customer_id)
        .group_by(CartItem.customer_id)
        .having(func.max(CartItem.updated_at) < cutoff)
        .all()
    ]
    if stale_customers:
        (
            db.session.query(CartItem)
            .filter(CartItem.customer_id.in_(stale_customers))
            .delete(synchronize_session=False)
        )
    db.session.commit()
    return len(stale_customers)
