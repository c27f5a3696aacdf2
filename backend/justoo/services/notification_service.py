# Overview: Service-layer operations for rider and customer notification inboxes.

from __future__ import annotations

import json

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import CustomerNotification, Rider, RiderNotification
from ..time_utils import utcnow
from ..validation import NotFoundError, paginate


def _format_rupees(cents: int) -> str:
    return f"₹{cents / 100:.2f}"


def notify_riders_new_order(order) -> int:
    """
    Fan out a "new order" notification to every active rider.

    Runs after the order transaction has committed. Failures are logged
    and swallowed; the order stands either way. Returns riders notified.
    """
    try:
        riders = (
            db.session.query(Rider.id)
            .filter(Rider.is_active.is_(True), Rider.status == "active")
            .all()
        )
        now = utcnow()
        payload = json.dumps({
            "order_id": order.id,
            "order_number": order.order_number,
            "total_cents": order.total_cents,
            "item_count": order.item_count,
        })
        for (rider_id,) in riders:
            db.session.add(RiderNotification(
                rider_id=rider_id,
                type="push",
                title="New Order Available",
                message=(
                    f"A new order #{order.order_number} is available for delivery. "
                    f"Total: {_format_rupees(order.total_cents)}"
                ),
                data=payload,
                sent_at=now,
            ))
        db.session.commit()
        return len(riders)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning("Failed to notify riders about order %s", order.order_number, exc_info=True)
        return 0


def notify_customer(customer_id: int | None, title: str, message: str, data: dict | None = None) -> bool:
    """Best-effort customer notification; never raises on database errors."""
    if not customer_id:
        return False
    try:
        db.session.add(CustomerNotification(
            customer_id=customer_id,
            type="push",
            title=title,
            message=message,
            data=json.dumps(data) if data else None,
            sent_at=utcnow(),
        ))
        db.session.commit()
        return True
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.warning("Failed to notify customer %s: %s", customer_id, title, exc_info=True)
        return False


ORDER_STATUS_MESSAGES = {
    "placed": ("Order placed", "Your order #{number} has been placed."),
    "confirmed": ("Order confirmed", "Your order #{number} has been confirmed."),
    "preparing": ("Order being prepared", "Your order #{number} is being prepared."),
    "ready": ("Order ready", "Your order #{number} is packed and ready for pickup."),
    "out_for_delivery": ("Out for delivery", "Your order #{number} is on its way."),
    "delivered": ("Order delivered", "Your order #{number} has been delivered."),
    "cancelled": ("Order cancelled", "Your order #{number} has been cancelled."),
}


def notify_order_status(order) -> bool:
    title, template = ORDER_STATUS_MESSAGES[order.status]
    return notify_customer(
        order.customer_id,
        title,
        template.format(number=order.order_number),
        {"order_id": order.id, "order_number": order.order_number, "status": order.status},
    )


# =============================================================================
# Inbox queries (rider and customer share the same shape)
# =============================================================================

_INBOXES = {
    "rider": (RiderNotification, RiderNotification.rider_id),
    "customer": (CustomerNotification, CustomerNotification.customer_id),
}


def _inbox(owner_type: str, owner_id: int):
    model, owner_column = _INBOXES[owner_type]
    return model, db.session.query(model).filter(owner_column == owner_id)


def list_notifications(owner_type: str, owner_id: int, *, unread_only: bool, page: int, per_page: int):
    model, query = _inbox(owner_type, owner_id)
    if unread_only:
        query = query.filter(model.is_read.is_(False))
    query = query.order_by(model.created_at.desc(), model.id.desc())
    return paginate(query, page, per_page)


def unread_count(owner_type: str, owner_id: int) -> int:
    model, query = _inbox(owner_type, owner_id)
    return query.filter(model.is_read.is_(False)).count()


def _get_owned(owner_type: str, owner_id: int, notification_id: int):
    model, query = _inbox(owner_type, owner_id)
    notification = query.filter(model.id == notification_id).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


def mark_read(owner_type: str, owner_id: int, notification_id: int):
    notification = _get_owned(owner_type, owner_id, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        db.session.commit()
    return notification


def mark_all_read(owner_type: str, owner_id: int) -> int:
    model, query = _inbox(owner_type, owner_id)
    count = query.filter(model.is_read.is_(False)).update(
        {model.is_read: True, model.read_at: utcnow()},
        synchronize_session=False,
    )
    db.session.commit()
    return count


def delete_notification(owner_type: str, owner_id: int, notification_id: int) -> None:
    notification = _get_owned(owner_type, owner_id, notification_id)
    db.session.delete(notification)
    db.session.commit()
