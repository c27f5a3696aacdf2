# Overview: Row locking and retry helpers for contended database work.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def lock_row(model, pk: int):
    """Load one row by primary key holding a row lock until commit/rollback."""
    return lock_for_update(db.session.query(model).filter(model.id == pk)).first()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts) and StaleDataError.
    The session is rolled back before each retry, so func must be safe to
    re-run from the start.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Retrying contended database operation (attempt %d/%d)", attempt + 1, attempts
            )
            time.sleep(backoff_base * (2 ** attempt))
