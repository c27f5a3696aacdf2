# Overview: Rider-side order pickup and delivery tracking.

from __future__ import annotations

from datetime import timedelta

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..models import Order, Rider
from ..models.orders import ORDER_STATUSES
from ..time_utils import to_utc_z, utcnow
from ..validation import NotFoundError, ServiceError, ValidationError, clean_string, paginate, validate_choice
from . import address_service, notification_service, order_service
from .rider_service import ACTIVE_DELIVERY_STATUSES


STARTABLE_STATUSES = ("confirmed", "preparing", "ready")
ACCEPTABLE_STATUSES = ("placed", "confirmed")
HISTORY_STATUSES = ("delivered", "cancelled")

# Progress steps shown to the rider app, in order
PROGRESS_STEPS = ("placed", "confirmed", "preparing", "ready", "out_for_delivery", "delivered")

STATS_PERIODS = {
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


class DeliveryError(ServiceError):
    """Delivery action refused for the order's current state."""


# =============================================================================
# Order queues
# =============================================================================

def available_orders(*, page: int, per_page: int):
    """Placed orders nobody has picked up yet, oldest first."""
    query = (
        db.session.query(Order)
        .filter(Order.status == "placed", Order.rider_id.is_(None), Order.customer_id.isnot(None))
        .order_by(Order.placed_at.asc(), Order.id.asc())
    )
    return paginate(query, page, per_page)


def current_orders(rider_id: int) -> list[Order]:
    return (
        db.session.query(Order)
        .filter(Order.rider_id == rider_id, Order.status.in_(ACTIVE_DELIVERY_STATUSES))
        .order_by(Order.placed_at.asc(), Order.id.asc())
        .all()
    )


def assigned_orders(rider_id: int, *, status: str | None, page: int, per_page: int):
    query = db.session.query(Order).filter(Order.rider_id == rider_id)
    if status:
        validate_choice(status, ORDER_STATUSES, "status")
        query = query.filter(Order.status == status)
    return paginate(query.order_by(Order.placed_at.desc(), Order.id.desc()), page, per_page)


def completed_orders(rider_id: int, *, page: int, per_page: int):
    query = (
        db.session.query(Order)
        .filter(Order.rider_id == rider_id, Order.status == "delivered")
        .order_by(Order.delivered_at.desc(), Order.id.desc())
    )
    return paginate(query, page, per_page)


def get_rider_order(rider_id: int, order_id: int) -> Order:
    order = db.session.query(Order).filter(Order.id == order_id, Order.rider_id == rider_id).first()
    if order is None:
        raise NotFoundError("Order not found or not assigned to you")
    return order


# =============================================================================
# Actions
# =============================================================================

def accept_order(rider: Rider, order_id: int) -> Order:
    """
    Claim an unassigned order.

    The claim is a single conditional UPDATE, so two riders accepting the
    same order cannot both win.
    """
    if rider.status == "inactive":
        raise DeliveryError("Set your status to active before accepting orders")

    stmt = (
        update(Order)
        .where(
            Order.id == order_id,
            Order.rider_id.is_(None),
            Order.status.in_(ACCEPTABLE_STATUSES),
        )
        .values(rider_id=rider.id, status="confirmed", updated_at=utcnow())
        .execution_options(synchronize_session="fetch")
    )
    if db.session.execute(stmt).rowcount != 1:
        db.session.rollback()
        raise NotFoundError("Order not found or already assigned")
    db.session.commit()

    order = db.session.get(Order, order_id)
    current_app.logger.info("Order %s accepted by rider %s", order.order_number, rider.username)
    notification_service.notify_order_status(order)
    return order


def update_order_status(rider: Rider, order_id: int, status: str | None, *, reason: str | None = None) -> Order:
    validate_choice(status, ORDER_STATUSES, "status")
    order = get_rider_order(rider.id, order_id)
    return order_service.transition_order(order, status, reason=reason)


def start_delivery(rider: Rider, order_id: int) -> Order:
    order = get_rider_order(rider.id, order_id)
    if order.status not in STARTABLE_STATUSES:
        raise DeliveryError(f"Order cannot be picked up from status {order.status}")
    return order_service.transition_order(order, "out_for_delivery")


def complete_delivery(rider: Rider, order_id: int, *, notes: str | None = None) -> Order:
    order = get_rider_order(rider.id, order_id)
    if order.status != "out_for_delivery":
        raise DeliveryError("Order must be out for delivery to complete")
    if notes:
        order.notes = f"{order.notes}\n{notes}" if order.notes else notes
    return order_service.transition_order(order, "delivered")


def fail_delivery(rider: Rider, order_id: int, reason: str | None) -> Order:
    """Cancel an assigned order the rider could not deliver; stock is restored."""
    reason = clean_string(reason, "reason")
    if not reason:
        raise ValidationError("Failure reason is required")
    order = get_rider_order(rider.id, order_id)
    if order.status in ("delivered", "cancelled"):
        raise DeliveryError(f"Order is already {order.status}")
    current_app.logger.info("Rider %s failed delivery of %s: %s", rider.username, order.order_number, reason)
    return order_service.cancel_order(order, reason=f"Delivery failed: {reason}")


def update_delivery_progress(rider: Rider, order_id: int, data: dict) -> Order:
    """Record a progress note and the rider's position on an order out for delivery."""
    order = (
        db.session.query(Order)
        .filter(Order.id == order_id, Order.rider_id == rider.id, Order.status == "out_for_delivery")
        .first()
    )
    if order is None:
        raise NotFoundError("Order not found or not out for delivery")

    latitude = address_service.coerce_coordinate(data.get("latitude"), "latitude", 90)
    longitude = address_service.coerce_coordinate(data.get("longitude"), "longitude", 180)
    if (latitude is None) != (longitude is None):
        raise ValidationError("Latitude and longitude must be sent together")

    if "progress_notes" in data:
        order.delivery_notes = clean_string(data["progress_notes"], "progress_notes") or None
    if latitude is not None:
        order.rider_latitude = latitude
        order.rider_longitude = longitude
    db.session.commit()
    return order


def delivery_progress(rider: Rider, order_id: int) -> dict:
    order = get_rider_order(rider.id, order_id)
    if order.status == "cancelled":
        steps = [{"status": step, "completed": False, "current": False} for step in PROGRESS_STEPS]
        percent = 0
    else:
        position = PROGRESS_STEPS.index(order.status)
        steps = [
            {"status": step, "completed": index <= position, "current": index == position}
            for index, step in enumerate(PROGRESS_STEPS)
        ]
        percent = round(position * 100 / (len(PROGRESS_STEPS) - 1))
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "status": order.status,
        "progress_percent": percent,
        "steps": steps,
        "placed_at": to_utc_z(order.placed_at),
        "estimated_delivery_time": to_utc_z(order.estimated_delivery_time),
        "delivered_at": to_utc_z(order.delivered_at),
        "delivery_notes": order.delivery_notes,
        "rider_latitude": order.rider_latitude,
        "rider_longitude": order.rider_longitude,
    }


# =============================================================================
# History and stats
# =============================================================================

def delivery_history(rider_id: int, *, page: int, per_page: int):
    query = (
        db.session.query(Order)
        .filter(Order.rider_id == rider_id, Order.status.in_(HISTORY_STATUSES))
        .order_by(Order.updated_at.desc(), Order.id.desc())
    )
    return paginate(query, page, per_page)


def delivery_stats(rider: Rider, period: str | None) -> dict:
    period = validate_choice(period or "week", tuple(STATS_PERIODS), "period")
    since = utcnow() - STATS_PERIODS[period]

    base = db.session.query(Order).filter(Order.rider_id == rider.id, Order.updated_at >= since)
    delivered = base.filter(Order.status == "delivered").all()
    cancelled = base.filter(Order.status == "cancelled").count()

    durations = [
        (order.delivered_at - order.placed_at).total_seconds() / 60
        for order in delivered
        if order.delivered_at and order.placed_at
    ]
    attempted = len(delivered) + cancelled
    return {
        "period": period,
        "since": to_utc_z(since),
        "delivered": len(delivered),
        "cancelled": cancelled,
        "success_rate": round(len(delivered) * 100 / attempted, 1) if attempted else 0.0,
        "delivered_value_cents": sum(order.total_cents for order in delivered),
        "average_delivery_minutes": round(sum(durations) / len(durations), 1) if durations else None,
        "total_deliveries": rider.total_deliveries,
        "rating": rider.rating,
    }
