# Overview: Service-layer operations for admin and inventory-user accounts.

from __future__ import annotations

from flask import current_app
from sqlalchemy import or_

from ..extensions import db
from ..models import Admin, InventoryUser
from ..models.accounts import ADMIN_ROLES, INVENTORY_ROLES
from ..validation import (
    clean_string,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
    paginate,
    require_fields,
    validate_choice,
    validate_email,
    validate_password,
)
from . import session_service
from .auth_service import hash_password


# Roles a superadmin may grant through the API; "viewer" is CLI-only
ASSIGNABLE_ADMIN_ROLES = ("superadmin", "admin", "inventory_admin")

MIN_USERNAME_LENGTH = 3


def _validate_username(username: str | None) -> str:
    username = clean_string(username, "username")
    if len(username) < MIN_USERNAME_LENGTH:
        raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters long")
    return username


def _ensure_unique(model, *, username: str | None, email: str | None, exclude_id: int | None = None) -> None:
    clauses = []
    if username:
        clauses.append(model.username == username)
    if email:
        clauses.append(model.email == email)
    if not clauses:
        return
    query = db.session.query(model).filter(or_(*clauses))
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    existing = query.first()
    if existing is None:
        return
    if username and existing.username == username:
        raise ConflictError("Username already exists")
    raise ConflictError("Email already exists")


# =============================================================================
# Admins
# =============================================================================

def create_admin(data: dict, *, roles=ASSIGNABLE_ADMIN_ROLES) -> Admin:
    require_fields(data, "username", "email", "password")
    username = _validate_username(data.get("username"))
    email = validate_email(data.get("email"))
    validate_password(data.get("password"))
    role = validate_choice(data.get("role") or "admin", roles, "role")

    _ensure_unique(Admin, username=username, email=email)

    admin = Admin(
        username=username,
        email=email,
        password_hash=hash_password(data["password"]),
        role=role,
        is_active=True,
    )
    db.session.add(admin)
    db.session.commit()
    current_app.logger.info("Admin %s created with role %s", username, role)
    return admin


def get_admin(admin_id: int) -> Admin:
    admin = db.session.get(Admin, admin_id)
    if admin is None:
        raise NotFoundError("Admin not found")
    return admin


def list_admins() -> list[Admin]:
    return db.session.query(Admin).order_by(Admin.created_at.desc(), Admin.id.desc()).all()


def list_users(*, role: str | None, page: int, per_page: int):
    query = db.session.query(Admin)
    if role:
        validate_choice(role, ADMIN_ROLES, "role")
        query = query.filter(Admin.role == role)
    return paginate(query.order_by(Admin.created_at.desc(), Admin.id.desc()), page, per_page)


def delete_admin(actor: Admin, admin_id: int) -> Admin:
    """Hard delete. An admin can never delete their own account."""
    if actor.id == admin_id:
        raise ForbiddenError("You cannot delete your own account")
    admin = get_admin(admin_id)
    session_service.revoke_all_principal_sessions("admin", admin.id, reason="Account deleted")
    db.session.delete(admin)
    db.session.commit()
    current_app.logger.info("Admin %s deleted by %s", admin.username, actor.username)
    return admin


def update_own_profile(admin: Admin, data: dict) -> Admin:
    if "username" not in data and "email" not in data:
        raise ValidationError("Username or email is required")
    username = _validate_username(data["username"]) if "username" in data else None
    email = validate_email(data["email"]) if "email" in data else None

    _ensure_unique(Admin, username=username, email=email, exclude_id=admin.id)

    if username:
        admin.username = username
    if email:
        admin.email = email
    db.session.commit()
    return admin


# =============================================================================
# Inventory users (managed by superadmins)
# =============================================================================

def list_inventory_users(*, role: str | None, search: str | None, page: int, per_page: int):
    query = db.session.query(InventoryUser)
    if role:
        validate_choice(role, INVENTORY_ROLES, "role")
        query = query.filter(InventoryUser.role == role)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(InventoryUser.username.ilike(pattern), InventoryUser.email.ilike(pattern)))
    return paginate(query.order_by(InventoryUser.created_at.desc(), InventoryUser.id.desc()), page, per_page)


def get_inventory_user(user_id: int) -> InventoryUser:
    user = db.session.get(InventoryUser, user_id)
    if user is None:
        raise NotFoundError("Inventory user not found")
    return user


def create_inventory_user(data: dict, *, created_by: int | None = None) -> InventoryUser:
    require_fields(data, "username", "email", "password")
    username = _validate_username(data.get("username"))
    email = validate_email(data.get("email"))
    validate_password(data.get("password"))
    role = validate_choice(data.get("role") or "user", INVENTORY_ROLES, "role")

    _ensure_unique(InventoryUser, username=username, email=email)

    user = InventoryUser(
        username=username,
        email=email,
        password_hash=hash_password(data["password"]),
        role=role,
        is_active=True,
        created_by=created_by,
    )
    db.session.add(user)
    db.session.commit()
    return user


def update_inventory_user(user_id: int, data: dict) -> InventoryUser:
    user = get_inventory_user(user_id)
    username = _validate_username(data["username"]) if "username" in data else None
    email = validate_email(data["email"]) if "email" in data else None
    _ensure_unique(InventoryUser, username=username, email=email, exclude_id=user.id)

    if username:
        user.username = username
    if email:
        user.email = email
    if "role" in data:
        user.role = validate_choice(data["role"], INVENTORY_ROLES, "role")
    if "is_active" in data:
        user.is_active = bool(data["is_active"])
        if not user.is_active:
            session_service.revoke_all_principal_sessions("inventory", user.id, reason="Account deactivated")
    if data.get("password"):
        user.password_hash = hash_password(data["password"])
        session_service.revoke_all_principal_sessions("inventory", user.id, reason="Password reset")

    db.session.commit()
    return user


def delete_inventory_user(user_id: int) -> InventoryUser:
    user = get_inventory_user(user_id)
    session_service.revoke_all_principal_sessions("inventory", user.id, reason="Account deleted")
    db.session.delete(user)
    db.session.commit()
    return user


def toggle_inventory_user_status(user_id: int) -> InventoryUser:
    user = get_inventory_user(user_id)
    user.is_active = not user.is_active
    if not user.is_active:
        session_service.revoke_all_principal_sessions("inventory", user.id, reason="Account deactivated")
    db.session.commit()
    return user
