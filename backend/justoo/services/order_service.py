# Overview: Service-layer operations for orders; encapsulates business logic and database work.

"""
Order Service

================================================================================
Order placement, lifecycle transitions and cancellation
================================================================================

PLACEMENT (one transaction):
    lock customer -> read cart -> check address -> lock + check each item
    -> allocate order number -> insert order + lines -> conditional stock
    decrement -> insert payment -> update customer counters -> clear cart
    -> COMMIT
  then, outside the transaction, rider fan-out and customer notification.

STATE MACHINE:
    placed -> confirmed -> preparing -> ready -> out_for_delivery -> delivered
    any non-terminal state -> cancelled

  Confirmed orders may skip straight to ready/out_for_delivery (the rider
  surface starts deliveries from confirmed, preparing or ready).

CANCELLATION restores stock for every line and settles the payment
(completed -> refunded, pending -> failed).
================================================================================
"""

from __future__ import annotations

from datetime import timedelta

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Customer, CustomerAddress, Item, Order, OrderItem, Payment, Rider
from ..models.orders import ORDER_STATUSES, PAYMENT_METHODS, TERMINAL_STATUSES
from ..time_utils import parse_iso_datetime, utcnow
from ..validation import NotFoundError, ServiceError, ValidationError, clean_string, paginate, parse_int, validate_choice
from . import cart_service, inventory_service, notification_service
from .concurrency import lock_row, run_with_retry
from .document_service import next_document_number
from .pricing import compute_totals


ORDER_DOCUMENT_TYPE = "ORDER"
ORDER_NUMBER_PREFIX = "ORD"

CUSTOMER_CANCELLABLE = ("placed", "confirmed")

ALLOWED_TRANSITIONS = {
    "placed": {"confirmed", "cancelled"},
    "confirmed": {"preparing", "ready", "out_for_delivery", "cancelled"},
    "preparing": {"ready", "out_for_delivery", "cancelled"},
    "ready": {"out_for_delivery", "cancelled"},
    "out_for_delivery": {"delivered", "cancelled"},
    "delivered": set(),
    "cancelled": set(),
}

ORDER_SORT_FIELDS = {
    "placed_at": Order.placed_at,
    "total": Order.total_cents,
    "status": Order.status,
    "updated_at": Order.updated_at,
}


class OrderError(ServiceError):
    """Order operation refused by business rules (details in errors)."""


# =============================================================================
# Placement
# =============================================================================

def place_order(
    customer_id: int,
    *,
    delivery_address_id,
    payment_method: str = "cash",
    notes: str | None = None,
    special_instructions: str | None = None,
) -> Order:
    """
    Turn the customer's cart into an order.

    Raises:
        ValidationError: missing/invalid address id or payment method
        OrderError: empty cart, unknown address, unavailable items
    """
    if delivery_address_id in (None, ""):
        raise ValidationError("Delivery address is required")
    delivery_address_id = parse_int(delivery_address_id, "delivery_address_id", minimum=1)
    payment_method = validate_choice(payment_method or "cash", PAYMENT_METHODS, "payment method")

    def _op() -> Order:
        try:
            return _place_order_tx(
                customer_id,
                delivery_address_id=delivery_address_id,
                payment_method=payment_method,
                notes=notes,
                special_instructions=special_instructions,
            )
        except ServiceError:
            db.session.rollback()
            raise

    order = run_with_retry(_op)

    current_app.logger.info(
        "Order %s placed by customer %s: %d units, total %d",
        order.order_number, customer_id, order.item_count, order.total_cents,
    )
    notification_service.notify_riders_new_order(order)
    notification_service.notify_order_status(order)
    return order


def _place_order_tx(customer_id, *, delivery_address_id, payment_method, notes, special_instructions) -> Order:
    customer = lock_row(Customer, customer_id)
    if customer is None:
        raise NotFoundError("Customer not found")

    lines = cart_service.load_lines_for_checkout(customer_id)
    if not lines:
        raise OrderError("Cart is empty")

    address = (
        db.session.query(CustomerAddress)
        .filter(
            CustomerAddress.id == delivery_address_id,
            CustomerAddress.customer_id == customer_id,
            CustomerAddress.is_active.is_(True),
        )
        .first()
    )
    if address is None:
        raise OrderError("Invalid delivery address")

    problems = []
    priced = []
    for line in lines:
        item = lock_row(Item, line.item_id)
        if item is None or not item.is_active:
            problems.append({"item_id": line.item_id, "error": "Item is no longer available"})
            continue
        if item.quantity < line.quantity:
            problems.append({
                "item_id": item.id,
                "name": item.name,
                "error": f"Insufficient stock. Available: {item.quantity}, Requested: {line.quantity}",
            })
            continue
        priced.append((item, line.quantity))
    if problems:
        raise OrderError("Some items in your cart are unavailable", problems)

    subtotal = sum(item.price_cents * quantity for item, quantity in priced)
    totals = compute_totals(subtotal)
    now = utcnow()

    order = Order(
        order_number=next_document_number(document_type=ORDER_DOCUMENT_TYPE, prefix=ORDER_NUMBER_PREFIX),
        customer_id=customer_id,
        delivery_address_id=address.id,
        status="placed",
        item_count=sum(quantity for _, quantity in priced),
        notes=notes,
        special_instructions=special_instructions,
        estimated_delivery_time=now + timedelta(minutes=current_app.config["ESTIMATED_DELIVERY_MINUTES"]),
        placed_at=now,
        **totals,
    )
    db.session.add(order)
    db.session.flush()

    for item, quantity in priced:
        db.session.add(OrderItem(
            order_id=order.id,
            item_id=item.id,
            item_name=item.name,
            quantity=quantity,
            unit_price_cents=item.price_cents,
            total_price_cents=item.price_cents * quantity,
            unit=item.unit,
        ))
        if not inventory_service.decrement_stock(item.id, quantity):
            raise OrderError(f"Insufficient stock for {item.name}", [{"item_id": item.id, "error": "Stock changed"}])

    db.session.add(Payment(
        order_id=order.id,
        amount_cents=order.total_cents,
        method=payment_method,
        status="pending" if payment_method == "cash" else "completed",
        paid_at=None if payment_method == "cash" else now,
    ))

    customer.total_orders = (customer.total_orders or 0) + 1
    customer.total_spent_cents = (customer.total_spent_cents or 0) + order.total_cents
    customer.last_order_date = now

    cart_service.discard_lines(customer_id)
    db.session.commit()
    return order


def place_stock_order(
    lines,
    *,
    notes: str | None = None,
    customer_id=None,
    external_order_id: str | None = None,
) -> dict:
    """
    Stock-only order from the inventory surface.

    Each line is checked and decremented on its own: failed lines are
    reported in errors and the order is created from the lines that
    succeeded. If every line fails, nothing is written and OrderError is
    raised. No delivery fee or tax applies.
    """
    if not isinstance(lines, list) or not lines:
        raise ValidationError("Order items array is required and must not be empty")
    for raw in lines:
        if not isinstance(raw, dict) or not raw.get("item_id") or not raw.get("quantity"):
            raise ValidationError("Each order item must have item_id and positive quantity")
        parse_int(raw["item_id"], "item_id", minimum=1)
        parse_int(raw["quantity"], "quantity", minimum=1)
    if customer_id not in (None, ""):
        customer_id = parse_int(customer_id, "customer_id", minimum=1)
        if db.session.get(Customer, customer_id) is None:
            raise ValidationError("Unknown customer_id")
    else:
        customer_id = None

    processed = []
    errors = []
    order_lines = []
    for raw in lines:
        item_id = int(raw["item_id"])
        quantity = int(raw["quantity"])
        item = db.session.get(Item, item_id)
        if item is None:
            errors.append({"item_id": item_id, "error": "Item not found"})
            continue
        if not item.is_active:
            errors.append({"item_id": item_id, "error": "Item is not active"})
            continue
        previous = item.quantity
        if not inventory_service.decrement_stock(item_id, quantity):
            errors.append({
                "item_id": item_id,
                "error": f"Insufficient stock. Available: {previous}, Requested: {quantity}",
            })
            continue
        db.session.refresh(item)
        order_lines.append((item, quantity))
        processed.append({
            "item_id": item_id,
            "previous_quantity": previous,
            "ordered_quantity": quantity,
            "new_quantity": item.quantity,
        })

    if not order_lines:
        db.session.rollback()
        raise OrderError("Order processing failed", errors)

    subtotal = sum(item.price_cents * quantity for item, quantity in order_lines)
    order = Order(
        order_number=next_document_number(document_type=ORDER_DOCUMENT_TYPE, prefix=ORDER_NUMBER_PREFIX),
        customer_id=customer_id,
        status="placed",
        item_count=sum(quantity for _, quantity in order_lines),
        notes=notes,
        external_order_id=str(external_order_id) if external_order_id not in (None, "") else None,
        subtotal_cents=subtotal,
        delivery_fee_cents=0,
        tax_cents=0,
        discount_cents=0,
        total_cents=subtotal,
    )
    db.session.add(order)
    db.session.flush()
    for item, quantity in order_lines:
        db.session.add(OrderItem(
            order_id=order.id,
            item_id=item.id,
            item_name=item.name,
            quantity=quantity,
            unit_price_cents=item.price_cents,
            total_price_cents=item.price_cents * quantity,
            unit=item.unit,
        ))
    db.session.commit()

    current_app.logger.info(
        "Stock order %s placed: %d lines ok, %d failed", order.order_number, len(order_lines), len(errors)
    )
    return {"order": order, "processed": processed, "errors": errors}


# =============================================================================
# Lifecycle
# =============================================================================

def cancel_order(order: Order, *, reason: str | None = None, allowed_from=None) -> Order:
    """
    Cancel an order and put its stock back.

    allowed_from narrows the statuses the caller may cancel from (the
    customer surface only allows placed/confirmed).
    """
    if order.status in TERMINAL_STATUSES or (allowed_from and order.status not in allowed_from):
        raise OrderError(f"Order cannot be cancelled. Current status: {order.status}")

    for line in order.items:
        if line.item_id is not None:
            inventory_service.restock(line.item_id, line.quantity)

    now = utcnow()
    order.status = "cancelled"
    order.cancelled_at = now
    order.cancel_reason = clean_string(reason, "reason")[:255] or None

    for payment in db.session.query(Payment).filter_by(order_id=order.id).all():
        if payment.status == "completed":
            payment.status = "refunded"
        elif payment.status == "pending":
            payment.status = "failed"

    _release_rider(order)
    db.session.commit()

    current_app.logger.info("Order %s cancelled (%s)", order.order_number, order.cancel_reason or "no reason")
    notification_service.notify_order_status(order)
    return order


def _release_rider(order: Order) -> None:
    if order.rider_id is None:
        return
    rider = db.session.get(Rider, order.rider_id)
    if rider is not None and rider.status == "busy":
        still_busy = (
            db.session.query(Order.id)
            .filter(
                Order.rider_id == rider.id,
                Order.id != order.id,
                Order.status == "out_for_delivery",
            )
            .first()
        )
        if not still_busy:
            rider.status = "active"


def transition_order(order: Order, new_status: str, *, reason: str | None = None) -> Order:
    """
    Move an order along the status sequence.

    delivered stamps delivered_at/actual_delivery_time, credits the
    rider's delivery count and settles cash payments.
    """
    validate_choice(new_status, ORDER_STATUSES, "status")
    if new_status == order.status:
        raise OrderError(f"Order is already {new_status}")
    if new_status not in ALLOWED_TRANSITIONS[order.status]:
        raise OrderError(f"Cannot change order status from {order.status} to {new_status}")

    if new_status == "cancelled":
        return cancel_order(order, reason=reason)

    now = utcnow()
    order.status = new_status

    rider = db.session.get(Rider, order.rider_id) if order.rider_id else None
    if new_status == "out_for_delivery" and rider is not None and rider.status == "active":
        rider.status = "busy"

    if new_status == "delivered":
        order.delivered_at = now
        order.actual_delivery_time = now
        if rider is not None:
            rider.total_deliveries = (rider.total_deliveries or 0) + 1
            _release_rider(order)
        for payment in db.session.query(Payment).filter_by(order_id=order.id, status="pending").all():
            payment.status = "completed"
            payment.paid_at = now

    db.session.commit()
    current_app.logger.info("Order %s moved to %s", order.order_number, new_status)
    notification_service.notify_order_status(order)
    return order


# =============================================================================
# Queries
# =============================================================================

def order_detail(order: Order) -> dict:
    """Order with lines, delivery address, payment and rider summary."""
    data = order.to_dict(include_items=True)
    address = db.session.get(CustomerAddress, order.delivery_address_id) if order.delivery_address_id else None
    payment = (
        db.session.query(Payment)
        .filter_by(order_id=order.id)
        .order_by(Payment.id.desc())
        .first()
    )
    rider = db.session.get(Rider, order.rider_id) if order.rider_id else None
    data["delivery_address"] = address.to_dict() if address else None
    data["payment"] = payment.to_dict() if payment else None
    data["rider"] = (
        {"id": rider.id, "name": rider.name, "phone": rider.phone, "vehicle_number": rider.vehicle_number}
        if rider else None
    )
    return data


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError("Order not found")
    return order


def get_customer_order(customer_id: int, order_id: int) -> Order:
    order = (
        db.session.query(Order)
        .filter(Order.id == order_id, Order.customer_id == customer_id)
        .first()
    )
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _sorted(query, sort_by: str | None, sort_order: str | None):
    column = ORDER_SORT_FIELDS.get(sort_by or "placed_at", Order.placed_at)
    if (sort_order or "desc") == "asc":
        return query.order_by(column.asc(), Order.id.asc())
    return query.order_by(column.desc(), Order.id.desc())


def list_customer_orders(customer_id: int, *, status=None, sort_by=None, sort_order=None, page=1, per_page=20):
    query = db.session.query(Order).filter(Order.customer_id == customer_id)
    if status:
        validate_choice(status, ORDER_STATUSES, "status")
        query = query.filter(Order.status == status)
    return paginate(_sorted(query, sort_by, sort_order), page, per_page)


def customer_order_stats(customer_id: int) -> dict:
    count, total, average, largest = (
        db.session.query(
            func.count(Order.id),
            func.coalesce(func.sum(Order.total_cents), 0),
            func.coalesce(func.avg(Order.total_cents), 0),
            func.coalesce(func.max(Order.total_cents), 0),
        )
        .filter(Order.customer_id == customer_id, Order.status != "cancelled")
        .one()
    )
    breakdown = dict(
        db.session.query(Order.status, func.count(Order.id))
        .filter(Order.customer_id == customer_id)
        .group_by(Order.status)
        .all()
    )
    return {
        "total_orders": int(count),
        "total_spent_cents": int(total),
        "average_order_value_cents": int(round(float(average))),
        "largest_order_cents": int(largest),
        "status_breakdown": {status: breakdown.get(status, 0) for status in ORDER_STATUSES},
    }


def list_orders(
    *,
    status=None,
    customer_id=None,
    rider_id=None,
    search=None,
    start_date=None,
    end_date=None,
    sort_by=None,
    sort_order=None,
    page=1,
    per_page=20,
):
    """Back-office order listing with optional filters."""
    query = db.session.query(Order)
    if status:
        validate_choice(status, ORDER_STATUSES, "status")
        query = query.filter(Order.status == status)
    if customer_id:
        query = query.filter(Order.customer_id == parse_int(customer_id, "customer_id"))
    if rider_id:
        query = query.filter(Order.rider_id == parse_int(rider_id, "rider_id"))
    if search:
        query = query.filter(Order.order_number.ilike(f"%{search.strip()}%"))
    try:
        start = parse_iso_datetime(start_date)
        end = parse_iso_datetime(end_date)
    except ValueError:
        raise ValidationError("start_date/end_date must be ISO-8601 dates")
    if start:
        query = query.filter(Order.placed_at >= start)
    if end:
        query = query.filter(Order.placed_at <= end)
    return paginate(_sorted(query, sort_by, sort_order), page, per_page)


def find_by_external_id(external_order_id: str) -> Order:
    order = db.session.query(Order).filter_by(external_order_id=str(external_order_id)).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order
