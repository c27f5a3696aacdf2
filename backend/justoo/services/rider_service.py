# Overview: Service-layer operations for rider accounts (admin management and rider self-service).

from __future__ import annotations

import re
import secrets
from datetime import timedelta

from flask import current_app
from sqlalchemy import func, or_

from ..extensions import db
from ..models import Order, Rider
from ..models.accounts import RIDER_STATUSES, VEHICLE_TYPES
from ..time_utils import utcnow
from ..validation import (
    clean_string,
    ConflictError,
    NotFoundError,
    ValidationError,
    paginate,
    require_fields,
    validate_choice,
    validate_email,
    validate_password,
    validate_phone,
)
from . import session_service
from .auth_service import hash_password, set_password


# Statuses a rider can set on themselves; "suspended" is admin-only
SELF_SERVICE_STATUSES = ("active", "busy", "inactive")
ADMIN_CREATE_STATUSES = ("active", "inactive", "busy")

ACTIVE_DELIVERY_STATUSES = ("confirmed", "preparing", "ready", "out_for_delivery")

USERNAME_ATTEMPTS = 20


def generate_username(name: str) -> str:
    """Lowercased alphanumeric name plus a random 4-digit suffix, unique in riders."""
    base = re.sub(r"[^a-z0-9]", "", (name or "").lower())[:20] or "rider"
    for _ in range(USERNAME_ATTEMPTS):
        candidate = f"{base}{secrets.randbelow(9000) + 1000}"
        if not db.session.query(Rider.id).filter_by(username=candidate).first():
            return candidate
    raise ConflictError("Could not generate a unique username")


def _ensure_unique(*, phone: str | None, email: str | None, exclude_id: int | None = None) -> None:
    if phone:
        query = db.session.query(Rider.id).filter(Rider.phone == phone)
        if exclude_id is not None:
            query = query.filter(Rider.id != exclude_id)
        if query.first():
            raise ConflictError("Rider with this phone number already exists")
    if email:
        query = db.session.query(Rider.id).filter(Rider.email == email)
        if exclude_id is not None:
            query = query.filter(Rider.id != exclude_id)
        if query.first():
            raise ConflictError("Rider with this email already exists")


def create_rider(data: dict) -> Rider:
    require_fields(data, "name", "phone", "vehicle_type", "vehicle_number", "password")
    name = clean_string(data["name"], "name")
    phone = validate_phone(data.get("phone"))
    email = validate_email(data["email"]) if data.get("email") else None
    vehicle_type = validate_choice(data.get("vehicle_type"), VEHICLE_TYPES, "vehicle type")
    status = validate_choice(data.get("status") or "active", ADMIN_CREATE_STATUSES, "status")
    validate_password(data.get("password"))

    _ensure_unique(phone=phone, email=email)

    rider = Rider(
        username=generate_username(name),
        name=name,
        email=email,
        phone=phone,
        password_hash=hash_password(data["password"]),
        vehicle_type=vehicle_type,
        vehicle_number=clean_string(data["vehicle_number"], "vehicle_number"),
        license_number=clean_string(data.get("license_number"), "license_number") or None,
        status=status,
        is_active=True,
    )
    db.session.add(rider)
    db.session.commit()
    current_app.logger.info("Rider %s created", rider.username)
    return rider


def get_rider(rider_id: int, *, include_inactive: bool = True) -> Rider:
    rider = db.session.get(Rider, rider_id)
    if rider is None or (not include_inactive and not rider.is_active):
        raise NotFoundError("Rider not found")
    return rider


def list_riders(*, status=None, search=None, include_inactive=False, page=1, per_page=20):
    query = db.session.query(Rider)
    if not include_inactive:
        query = query.filter(Rider.is_active.is_(True))
    if status:
        validate_choice(status, RIDER_STATUSES, "status")
        query = query.filter(Rider.status == status)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(Rider.name.ilike(pattern), Rider.phone.ilike(pattern), Rider.username.ilike(pattern)))
    return paginate(query.order_by(Rider.created_at.desc(), Rider.id.desc()), page, per_page)


def _apply_profile_fields(rider: Rider, data: dict) -> None:
    phone = validate_phone(data["phone"]) if "phone" in data else None
    email = validate_email(data["email"]) if data.get("email") else None
    _ensure_unique(phone=phone, email=email, exclude_id=rider.id)

    if "name" in data:
        name = clean_string(data["name"], "name")
        if not name:
            raise ValidationError("Name cannot be blank")
        rider.name = name
    if phone:
        rider.phone = phone
    if "email" in data:
        rider.email = email
    if "vehicle_type" in data:
        rider.vehicle_type = validate_choice(data["vehicle_type"], VEHICLE_TYPES, "vehicle type")
    if "vehicle_number" in data:
        vehicle_number = clean_string(data["vehicle_number"], "vehicle_number")
        if not vehicle_number:
            raise ValidationError("Vehicle number cannot be blank")
        rider.vehicle_number = vehicle_number
    if "license_number" in data:
        rider.license_number = clean_string(data["license_number"], "license_number") or None


def update_rider(rider_id: int, data: dict) -> Rider:
    """Admin edit; may also change status (including suspended)."""
    rider = get_rider(rider_id)
    _apply_profile_fields(rider, data)
    if "status" in data:
        rider.status = validate_choice(data["status"], RIDER_STATUSES, "status")
        if rider.status == "suspended":
            session_service.revoke_all_principal_sessions("rider", rider.id, reason="Rider suspended")
    db.session.commit()
    return rider


def reset_rider_password(rider_id: int, new_password: str) -> Rider:
    rider = get_rider(rider_id)
    set_password(rider, "rider", new_password)
    return rider


def delete_rider(rider_id: int) -> Rider:
    """Soft delete: the row stays for order history, the account stops working."""
    rider = get_rider(rider_id, include_inactive=False)
    rider.is_active = False
    rider.status = "inactive"
    session_service.revoke_all_principal_sessions("rider", rider.id, reason="Rider deleted")
    db.session.commit()
    current_app.logger.info("Rider %s deactivated", rider.username)
    return rider


def rider_analytics() -> dict:
    by_status = dict(
        db.session.query(Rider.status, func.count(Rider.id))
        .filter(Rider.is_active.is_(True))
        .group_by(Rider.status)
        .all()
    )
    total, deliveries, rating = (
        db.session.query(
            func.count(Rider.id),
            func.coalesce(func.sum(Rider.total_deliveries), 0),
            func.coalesce(func.avg(Rider.rating), 0),
        )
        .filter(Rider.is_active.is_(True))
        .one()
    )
    top = (
        db.session.query(Rider)
        .filter(Rider.is_active.is_(True))
        .order_by(Rider.total_deliveries.desc(), Rider.rating.desc())
        .limit(5)
        .all()
    )
    return {
        "total_riders": int(total),
        "by_status": {status: by_status.get(status, 0) for status in RIDER_STATUSES},
        "total_deliveries": int(deliveries),
        "average_rating": round(float(rating), 2),
        "top_riders": [
            {"id": r.id, "name": r.name, "total_deliveries": r.total_deliveries, "rating": r.rating}
            for r in top
        ],
    }


# =============================================================================
# Rider self-service
# =============================================================================

def update_own_profile(rider: Rider, data: dict) -> Rider:
    if "status" in data:
        raise ValidationError("Use the status endpoint to change availability")
    _apply_profile_fields(rider, data)
    db.session.commit()
    return rider


def update_own_status(rider: Rider, status: str | None) -> Rider:
    rider.status = validate_choice(status, SELF_SERVICE_STATUSES, "status")
    db.session.commit()
    return rider


def _delivered_since(rider_id: int, since) -> int:
    return (
        db.session.query(func.count(Order.id))
        .filter(Order.rider_id == rider_id, Order.status == "delivered", Order.delivered_at >= since)
        .scalar()
        or 0
    )


def rider_stats(rider: Rider) -> dict:
    now = utcnow()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    active_orders = (
        db.session.query(func.count(Order.id))
        .filter(Order.rider_id == rider.id, Order.status.in_(ACTIVE_DELIVERY_STATUSES))
        .scalar()
        or 0
    )
    cancelled = (
        db.session.query(func.count(Order.id))
        .filter(Order.rider_id == rider.id, Order.status == "cancelled")
        .scalar()
        or 0
    )
    return {
        "total_deliveries": rider.total_deliveries,
        "rating": rider.rating,
        "status": rider.status,
        "active_orders": active_orders,
        "cancelled_orders": cancelled,
        "deliveries_today": _delivered_since(rider.id, start_of_day),
        "deliveries_this_week": _delivered_since(rider.id, now - timedelta(days=7)),
        "deliveries_this_month": _delivered_since(rider.id, now - timedelta(days=30)),
    }
