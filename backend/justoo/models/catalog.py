from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Item(db.Model):
    """
    Catalog/inventory product.

    quantity is the on-hand stock; it is only changed through conditional
    updates in inventory_service so it never goes negative.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_items_quantity_nonnegative"),
        db.CheckConstraint("price_cents >= 0", name="ck_items_price_nonnegative"),
        db.Index("ix_items_active_category", "is_active", "category"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False, index=True)
    price_cents = db.Column(db.Integer, nullable=False)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    discount_percent = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(16), nullable=False)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    image_public_id = db.Column(db.String(255), nullable=True)
    min_stock_level = db.Column(db.Integer, nullable=False, default=10)
    category = db.Column(db.String(64), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Item id={self.id} name={self.name!r} qty={self.quantity}>"

    @property
    def stock_status(self) -> str:
        if self.quantity <= 0:
            return "out_of_stock"
        if self.quantity <= self.min_stock_level:
            return "low_stock"
        return "in_stock"

    @property
    def discounted_price_cents(self) -> int:
        if not self.discount_percent:
            return self.price_cents
        return round(self.price_cents * (100 - self.discount_percent) / 100)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price_cents": self.price_cents,
            "discounted_price_cents": self.discounted_price_cents,
            "quantity": self.quantity,
            "discount_percent": self.discount_percent,
            "unit": self.unit,
            "description": self.description,
            "image_url": self.image_url,
            "image_public_id": self.image_public_id,
            "min_stock_level": self.min_stock_level,
            "category": self.category,
            "is_active": self.is_active,
            "stock_status": self.stock_status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
