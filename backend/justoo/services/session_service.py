# Overview: Service-layer operations for session tokens; encapsulates business logic and database work.

"""
Session Token Management Service

Opaque bearer tokens for all four surfaces. Each token is bound to a
principal type (admin, inventory, rider, customer) and the id of the
account in that surface's table.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage
- Absolute timeout (SESSION_ABSOLUTE_HOURS) and idle timeout (SESSION_IDLE_HOURS)
- Revocable on logout, password change and account deactivation
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app

from ..extensions import db
from ..models import Admin, Customer, InventoryUser, Rider, SessionToken
from ..time_utils import utcnow


PRINCIPAL_MODELS = {
    "admin": Admin,
    "inventory": InventoryUser,
    "rider": Rider,
    "customer": Customer,
}


@dataclass
class SessionContext:
    """Authenticated principal plus the session record it came from."""
    principal: object
    principal_type: str
    session: SessionToken


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy); sent to the client, never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config["SESSION_ABSOLUTE_HOURS"])


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config["SESSION_IDLE_HOURS"])


def principal_is_usable(principal_type: str, principal) -> bool:
    """
    Whether an account may hold a live session.

    Deactivated accounts are always rejected. Customers must also be in
    status 'active' and riders must not be suspended.
    """
    if principal is None or not principal.is_active:
        return False
    if principal_type == "customer" and principal.status != "active":
        return False
    if principal_type == "rider" and principal.status == "suspended":
        return False
    return True


def create_session(
    principal_type: str,
    principal_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create a new session for a principal.

    Returns (session_record, plaintext_token). Commits.
    """
    if principal_type not in PRINCIPAL_MODELS:
        raise ValueError(f"Unknown principal type: {principal_type}")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        principal_type=principal_type,
        principal_id=principal_id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        expires_at=now + _absolute_timeout(),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, reason: str, now: datetime) -> None:
    session.is_revoked = True
    session.revoked_at = now
    session.revoked_reason = reason


def validate_session(token: str, principal_type: str) -> SessionContext | None:
    """
    Validate a token for the given surface.

    Returns None if the token is unknown, revoked, expired, idle too long,
    issued for another surface, or its account is no longer usable.
    Updates last_used_at on success.
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session or session.principal_type != principal_type:
        return None

    if session.expires_at < now:
        return None

    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout", now)
        db.session.commit()
        return None

    model = PRINCIPAL_MODELS[principal_type]
    principal = db.session.get(model, session.principal_id)

    if not principal_is_usable(principal_type, principal):
        _revoke(session, "Account deactivated", now)
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(principal=principal, principal_type=principal_type, session=session)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Revoke one token. Returns True if a live session was revoked."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason, utcnow())
    db.session.commit()
    return True


def revoke_all_principal_sessions(
    principal_type: str,
    principal_id: int,
    reason: str = "Revoke all sessions",
    *,
    except_session_id: int | None = None,
) -> int:
    """Revoke every live session of an account. Returns count revoked. Does not commit."""
    now = utcnow()
    query = db.session.query(SessionToken).filter_by(
        principal_type=principal_type,
        principal_id=principal_id,
        is_revoked=False,
    )
    if except_session_id is not None:
        query = query.filter(SessionToken.id != except_session_id)

    count = 0
    for session in query.all():
        _revoke(session, reason, now)
        count += 1
    return count


def rotate_session(context: SessionContext, user_agent: str | None = None, ip_address: str | None = None) -> str:
    """Issue a fresh token for the same principal and revoke the current one."""
    _revoke(context.session, "Token refreshed", utcnow())
    _, token = create_session(
        context.principal_type,
        context.principal.id,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    return token


def cleanup_expired_sessions(retention_days: int = 30) -> int:
    """Delete sessions expired or revoked more than retention_days ago."""
    cutoff = utcnow() - timedelta(days=retention_days)
    deleted = (
        db.session.query(SessionToken)
        .filter(
            (SessionToken.expires_at < cutoff)
            | ((SessionToken.is_revoked.is_(True)) & (SessionToken.revoked_at < cutoff))
        )
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted
