# Overview: Service-layer operations for customer accounts; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer
from ..models.orders import PAYMENT_METHODS
from ..time_utils import parse_iso_datetime
from ..validation import (
    clean_string,
    ConflictError,
    ValidationError,
    validate_email,
    validate_phone,
)
from .auth_service import hash_password


GENDERS = ("male", "female", "other")


def _validate_name(name: str | None) -> str:
    name = clean_string(name, "name")
    if len(name) < 2:
        raise ValidationError("Name must be at least 2 characters long")
    return name


def _ensure_unique(*, phone: str | None = None, email: str | None = None, exclude_id: int | None = None) -> None:
    if phone:
        query = db.session.query(Customer.id).filter(Customer.phone == phone)
        if exclude_id:
            query = query.filter(Customer.id != exclude_id)
        if query.first():
            raise ConflictError("Customer with this phone number already exists")
    if email:
        query = db.session.query(Customer.id).filter(Customer.email == email)
        if exclude_id:
            query = query.filter(Customer.id != exclude_id)
        if query.first():
            raise ConflictError("Email is already in use")


def register_customer(data: dict) -> Customer:
    """
    Create a customer account.

    Requires name, phone and password; email is optional. Raises
    ValidationError (400) or ConflictError (409) on duplicate phone/email.
    """
    if not data.get("name") or not data.get("phone") or not data.get("password"):
        raise ValidationError("Name, phone, and password are required")

    name = _validate_name(data.get("name"))
    phone = validate_phone(data.get("phone"))
    email = validate_email(data["email"]) if data.get("email") else None

    _ensure_unique(phone=phone, email=email)

    customer = Customer(
        name=name,
        phone=phone,
        email=email,
        password_hash=hash_password(data["password"]),
        status="active",
        is_active=True,
    )
    db.session.add(customer)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Customer with this phone number or email already exists")
    return customer


def update_profile(customer: Customer, data: dict) -> Customer:
    """Update name, email, gender, date_of_birth, profile_image, preferred_payment_method."""
    if "name" in data:
        customer.name = _validate_name(data["name"])

    if "email" in data:
        email = validate_email(data["email"]) if data["email"] else None
        if email and email != customer.email:
            _ensure_unique(email=email, exclude_id=customer.id)
        customer.email = email

    if "gender" in data:
        gender = data["gender"]
        if gender is not None and gender not in GENDERS:
            raise ValidationError(f"Invalid gender. Must be one of: {', '.join(GENDERS)}")
        customer.gender = gender

    if "date_of_birth" in data:
        try:
            customer.date_of_birth = parse_iso_datetime(data["date_of_birth"]) if data["date_of_birth"] else None
        except ValueError:
            raise ValidationError("date_of_birth must be an ISO-8601 date")

    if "profile_image" in data:
        customer.profile_image = data["profile_image"] or None

    if "preferred_payment_method" in data:
        method = data["preferred_payment_method"]
        if method is not None and method not in PAYMENT_METHODS:
            raise ValidationError(f"Invalid payment method. Must be one of: {', '.join(PAYMENT_METHODS)}")
        customer.preferred_payment_method = method

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Email is already in use")
    return customer
