from __future__ import annotations

import json

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


NOTIFICATION_TYPES = ("email", "sms", "push", "whatsapp")


class _NotificationMixin:
    """Columns shared by rider and customer notification inboxes."""

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(16), nullable=False, default="push")
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    # JSON payload (order id, order number, amounts)
    data = db.Column(db.Text, nullable=True)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    sent_at = db.Column(db.DateTime, nullable=True)
    read_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def _base_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "data": json.loads(self.data) if self.data else None,
            "is_read": self.is_read,
            "sent_at": to_utc_z(self.sent_at),
            "read_at": to_utc_z(self.read_at),
            "created_at": to_utc_z(self.created_at),
        }


class RiderNotification(_NotificationMixin, db.Model):
    __tablename__ = "rider_notifications"
    __table_args__ = (
        db.Index("ix_rider_notifications_rider_read", "rider_id", "is_read"),
        {"sqlite_autoincrement": True},
    )

    rider_id = db.Column(db.Integer, db.ForeignKey("riders.id", ondelete="CASCADE"), nullable=False)

    def to_dict(self) -> dict:
        data = self._base_dict()
        data["rider_id"] = self.rider_id
        return data


class CustomerNotification(_NotificationMixin, db.Model):
    __tablename__ = "customer_notifications"
    __table_args__ = (
        db.Index("ix_customer_notifications_customer_read", "customer_id", "is_read"),
        {"sqlite_autoincrement": True},
    )

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)

    def to_dict(self) -> dict:
        data = self._base_dict()
        data["customer_id"] = self.customer_id
        return data
