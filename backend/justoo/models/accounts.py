from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


ADMIN_ROLES = ("superadmin", "admin", "inventory_admin", "viewer")
INVENTORY_ROLES = ("admin", "user")
RIDER_STATUSES = ("active", "inactive", "busy", "suspended")
VEHICLE_TYPES = ("bike", "scooter", "car", "van")
CUSTOMER_STATUSES = ("active", "inactive", "suspended", "banned")

# Principal types carried by session tokens, one per surface
PRINCIPAL_TYPES = ("admin", "inventory", "rider", "customer")


class Admin(db.Model):
    """Platform administrator. Role drives access on the admin surface."""
    __tablename__ = "admins"
    __table_args__ = (
        db.CheckConstraint(
            "role IN ('superadmin', 'admin', 'inventory_admin', 'viewer')",
            name="ck_admins_role",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(32), nullable=False, default="viewer")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Admin id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "last_login": to_utc_z(self.last_login),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class InventoryUser(db.Model):
    """Warehouse staff account for the inventory surface."""
    __tablename__ = "inventory_users"
    __table_args__ = (
        db.CheckConstraint("role IN ('admin', 'user')", name="ck_inventory_users_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="user")
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.Integer, db.ForeignKey("admins.id", ondelete="SET NULL"), nullable=True)
    last_login = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "last_login": to_utc_z(self.last_login),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Rider(db.Model):
    """
    Delivery agent.

    Soft-deleted riders keep their row (is_active=False) so historical
    orders still resolve their rider_id.
    """
    __tablename__ = "riders"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('active', 'inactive', 'busy', 'suspended')",
            name="ck_riders_status",
        ),
        db.CheckConstraint(
            "vehicle_type IN ('bike', 'scooter', 'car', 'van')",
            name="ck_riders_vehicle_type",
        ),
        db.Index("ix_riders_active_status", "is_active", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True, unique=True)
    phone = db.Column(db.String(32), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    vehicle_type = db.Column(db.String(16), nullable=False)
    vehicle_number = db.Column(db.String(32), nullable=False)
    license_number = db.Column(db.String(64), nullable=True)

    status = db.Column(db.String(16), nullable=False, default="active")
    total_deliveries = db.Column(db.Integer, nullable=False, default=0)
    rating = db.Column(db.Float, nullable=False, default=5.0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Rider id={self.id} username={self.username!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "vehicle_type": self.vehicle_type,
            "vehicle_number": self.vehicle_number,
            "license_number": self.license_number,
            "status": self.status,
            "total_deliveries": self.total_deliveries,
            "rating": self.rating,
            "is_active": self.is_active,
            "last_login": to_utc_z(self.last_login),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Customer(db.Model):
    """End customer. Logs in by phone; order counters are denormalized here."""
    __tablename__ = "customers"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended', 'banned')",
            name="ck_customers_status",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(32), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    name = db.Column(db.String(255), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    profile_image = db.Column(db.String(512), nullable=True)
    date_of_birth = db.Column(db.DateTime, nullable=True)
    gender = db.Column(db.String(16), nullable=True)
    status = db.Column(db.String(16), nullable=False, default="active")

    total_orders = db.Column(db.Integer, nullable=False, default=0)
    total_spent_cents = db.Column(db.Integer, nullable=False, default=0)
    last_order_date = db.Column(db.DateTime, nullable=True)
    last_login = db.Column(db.DateTime, nullable=True)
    preferred_payment_method = db.Column(db.String(16), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    phone_verified = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "profile_image": self.profile_image,
            "date_of_birth": to_utc_z(self.date_of_birth),
            "gender": self.gender,
            "status": self.status,
            "total_orders": self.total_orders,
            "total_spent_cents": self.total_spent_cents,
            "last_order_date": to_utc_z(self.last_order_date),
            "last_login": to_utc_z(self.last_login),
            "preferred_payment_method": self.preferred_payment_method,
            "is_active": self.is_active,
            "email_verified": self.email_verified,
            "phone_verified": self.phone_verified,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class SessionToken(db.Model):
    """
    Opaque session token bound to one principal on one surface.

    Tokens are stored hashed (SHA-256). principal_type selects the account
    table (admins, inventory_users, riders, customers), so a token issued
    by one surface never authenticates on another.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_principal", "principal_type", "principal_id", "is_revoked"),
        db.CheckConstraint(
            "principal_type IN ('admin', 'inventory', 'rider', 'customer')",
            name="ck_session_tokens_principal_type",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    principal_type = db.Column(db.String(16), nullable=False)
    principal_id = db.Column(db.Integer, nullable=False)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime, nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<SessionToken id={self.id} {self.principal_type}:{self.principal_id} revoked={self.is_revoked}>"
