# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

Password hashing and credential checks for every account type. Each
surface logs in against its own table:

- admin:     username
- inventory: username or email
- rider:     username or phone
- customer:  phone

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, default 12)
- Minimum 6 characters required
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Admin, Customer, InventoryUser, Rider
from ..time_utils import utcnow
from ..validation import ValidationError, clean_string, validate_password
from . import session_service


class PasswordValidationError(ValidationError):
    """Raised when a password doesn't meet requirements."""
    pass


def hash_password(password: str) -> str:
    """Validate length, then hash with bcrypt."""
    try:
        validate_password(password)
    except ValidationError as exc:
        raise PasswordValidationError(str(exc))
    salt = bcrypt.gensalt(rounds=current_app.config["BCRYPT_ROUNDS"])
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """Timing-safe bcrypt check. Malformed hashes never match."""
    if not isinstance(password, str) or not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _finish_login(principal):
    principal.last_login = utcnow()
    db.session.commit()
    return principal


def authenticate_admin(username: str, password: str) -> Admin | None:
    admin = db.session.query(Admin).filter_by(username=clean_string(username, "username")).first()
    if not admin or not admin.is_active:
        return None
    if not verify_password(password, admin.password_hash):
        return None
    return _finish_login(admin)


def authenticate_inventory_user(identifier: str, password: str) -> InventoryUser | None:
    identifier = clean_string(identifier, "identifier")
    user = (
        db.session.query(InventoryUser)
        .filter(
            InventoryUser.is_active.is_(True),
            or_(InventoryUser.username == identifier, InventoryUser.email == identifier.lower()),
        )
        .first()
    )
    if not user or not verify_password(password, user.password_hash):
        return None
    return _finish_login(user)


def authenticate_rider(identifier: str, password: str) -> Rider | None:
    identifier = clean_string(identifier, "identifier")
    rider = (
        db.session.query(Rider)
        .filter(or_(Rider.username == identifier, Rider.phone == identifier))
        .first()
    )
    if not session_service.principal_is_usable("rider", rider):
        return None
    if not verify_password(password, rider.password_hash):
        return None
    return _finish_login(rider)


def authenticate_customer(phone: str, password: str) -> Customer | None:
    customer = db.session.query(Customer).filter_by(phone=clean_string(phone, "phone")).first()
    if not session_service.principal_is_usable("customer", customer):
        return None
    if not verify_password(password, customer.password_hash):
        return None
    return _finish_login(customer)


def change_password(
    principal,
    principal_type: str,
    current_password: str,
    new_password: str,
    *,
    keep_session_id: int | None = None,
) -> None:
    """
    Replace an account's password after checking the current one.

    Every other session of the account is revoked; the caller's own
    session (keep_session_id) stays valid.
    """
    if not current_password or not new_password:
        raise ValidationError("Current password and new password are required")
    if not verify_password(current_password, principal.password_hash):
        raise ValidationError("Current password is incorrect")

    principal.password_hash = hash_password(new_password)
    session_service.revoke_all_principal_sessions(
        principal_type,
        principal.id,
        reason="Password changed",
        except_session_id=keep_session_id,
    )
    db.session.commit()


def set_password(principal, principal_type: str, new_password: str) -> None:
    """Administrative reset: no current-password check, revokes all sessions."""
    principal.password_hash = hash_password(new_password)
    session_service.revoke_all_principal_sessions(principal_type, principal.id, reason="Password reset")
    db.session.commit()
