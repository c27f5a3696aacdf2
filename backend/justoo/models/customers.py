from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ADDRESS_TYPES = ("home", "work", "other")
ZONE_STATUSES = ("active", "inactive", "maintenance")


class CustomerAddress(db.Model):
    """
    Delivery address owned by a customer.

    At most one active address per customer carries is_default=True;
    address_service maintains that inside a single transaction.
    """
    __tablename__ = "customer_addresses"
    __table_args__ = (
        db.CheckConstraint("type IN ('home', 'work', 'other')", name="ck_customer_addresses_type"),
        db.Index("ix_customer_addresses_customer_active", "customer_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False)
    type = db.Column(db.String(16), nullable=False, default="home")
    label = db.Column(db.String(64), nullable=True)
    full_address = db.Column(db.Text, nullable=False)
    landmark = db.Column(db.String(255), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    pincode = db.Column(db.String(16), nullable=True)
    city = db.Column(db.String(64), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    country = db.Column(db.String(64), nullable=False, default="India")
    is_default = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "type": self.type,
            "label": self.label,
            "full_address": self.full_address,
            "landmark": self.landmark,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "pincode": self.pincode,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "is_default": self.is_default,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class DeliveryZone(db.Model):
    """Circular service area around a center point."""
    __tablename__ = "delivery_zones"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('active', 'inactive', 'maintenance')",
            name="ck_delivery_zones_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    code = db.Column(db.String(32), nullable=False, unique=True)
    description = db.Column(db.Text, nullable=True)
    center_latitude = db.Column(db.Float, nullable=True)
    center_longitude = db.Column(db.Float, nullable=True)
    radius_km = db.Column(db.Float, nullable=False, default=5.0)
    estimated_delivery_minutes = db.Column(db.Integer, nullable=False, default=10)
    base_delivery_fee_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default="active")
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "description": self.description,
            "center_latitude": self.center_latitude,
            "center_longitude": self.center_longitude,
            "radius_km": self.radius_km,
            "estimated_delivery_minutes": self.estimated_delivery_minutes,
            "base_delivery_fee_cents": self.base_delivery_fee_cents,
            "status": self.status,
            "is_active": self.is_active,
        }


class CartItem(db.Model):
    """One line of a customer's cart. Prices are read live from items."""
    __tablename__ = "cart_items"
    __table_args__ = (
        db.UniqueConstraint("customer_id", "item_id", name="uq_cart_items_customer_item"),
        db.CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("items.id", ondelete="CASCADE"), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    added_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    item = db.relationship("Item", lazy="joined")
