from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


# Fixed order status sequence; delivered and cancelled are terminal
ORDER_STATUSES = (
    "placed",
    "confirmed",
    "preparing",
    "ready",
    "out_for_delivery",
    "delivered",
    "cancelled",
)
TERMINAL_STATUSES = ("delivered", "cancelled")

PAYMENT_METHODS = ("cash", "upi", "card", "wallet", "online")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")


class Order(db.Model):
    """
    Customer order.

    Money columns are integer paise and satisfy
    total_cents = subtotal_cents + delivery_fee_cents + tax_cents - discount_cents.
    customer_id is nullable for stock-only orders placed through the
    inventory surface.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('placed', 'confirmed', 'preparing', 'ready', "
            "'out_for_delivery', 'delivered', 'cancelled')",
            name="ck_orders_status",
        ),
        db.Index("ix_orders_customer_placed", "customer_id", "placed_at"),
        db.Index("ix_orders_rider_status", "rider_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(32), nullable=False, unique=True, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True)
    delivery_address_id = db.Column(db.Integer, db.ForeignKey("customer_addresses.id"), nullable=True)
    status = db.Column(db.String(32), nullable=False, default="placed", index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False, default=0)
    delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    tax_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False, default=0)
    item_count = db.Column(db.Integer, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    special_instructions = db.Column(db.Text, nullable=True)
    delivery_notes = db.Column(db.Text, nullable=True)
    rider_latitude = db.Column(db.Float, nullable=True)
    rider_longitude = db.Column(db.Float, nullable=True)
    external_order_id = db.Column(db.String(64), nullable=True, index=True)

    rider_id = db.Column(db.Integer, db.ForeignKey("riders.id"), nullable=True)
    delivery_zone_id = db.Column(db.Integer, db.ForeignKey("delivery_zones.id"), nullable=True)

    estimated_delivery_time = db.Column(db.DateTime, nullable=True)
    actual_delivery_time = db.Column(db.DateTime, nullable=True)
    delivered_at = db.Column(db.DateTime, nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancel_reason = db.Column(db.String(255), nullable=True)

    placed_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    items = db.relationship(
        "OrderItem",
        backref="order",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<Order id={self.id} number={self.order_number} status={self.status}>"

    def to_dict(self, *, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "customer_id": self.customer_id,
            "delivery_address_id": self.delivery_address_id,
            "status": self.status,
            "subtotal_cents": self.subtotal_cents,
            "delivery_fee_cents": self.delivery_fee_cents,
            "tax_cents": self.tax_cents,
            "discount_cents": self.discount_cents,
            "total_cents": self.total_cents,
            "item_count": self.item_count,
            "notes": self.notes,
            "special_instructions": self.special_instructions,
            "delivery_notes": self.delivery_notes,
            "rider_latitude": self.rider_latitude,
            "rider_longitude": self.rider_longitude,
            "external_order_id": self.external_order_id,
            "rider_id": self.rider_id,
            "delivery_zone_id": self.delivery_zone_id,
            "estimated_delivery_time": to_utc_z(self.estimated_delivery_time),
            "actual_delivery_time": to_utc_z(self.actual_delivery_time),
            "delivered_at": to_utc_z(self.delivered_at),
            "cancelled_at": to_utc_z(self.cancelled_at),
            "cancel_reason": self.cancel_reason,
            "placed_at": to_utc_z(self.placed_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [line.to_dict() for line in self.items]
        return data


class OrderItem(db.Model):
    """Order line. Name, unit and price are snapshotted at placement."""
    __tablename__ = "order_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id", ondelete="SET NULL"), nullable=True, index=True)
    item_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)
    unit = db.Column(db.String(16), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_price_cents": self.total_price_cents,
            "unit": self.unit,
        }


class Payment(db.Model):
    """Payment record created with the order. Cash stays pending until delivery."""
    __tablename__ = "payments"
    __table_args__ = (
        db.CheckConstraint(
            "method IN ('cash', 'upi', 'card', 'wallet', 'online')",
            name="ck_payments_method",
        ),
        db.CheckConstraint(
            "status IN ('pending', 'completed', 'failed', 'refunded')",
            name="ck_payments_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    method = db.Column(db.String(16), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    transaction_id = db.Column(db.String(128), nullable=True)
    gateway_response = db.Column(db.Text, nullable=True)
    paid_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount_cents": self.amount_cents,
            "method": self.method,
            "status": self.status,
            "transaction_id": self.transaction_id,
            "paid_at": to_utc_z(self.paid_at),
            "created_at": to_utc_z(self.created_at),
        }


class DocumentSequence(db.Model):
    """Per-document-type counter used to allocate human-readable numbers."""
    __tablename__ = "document_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    document_type = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
