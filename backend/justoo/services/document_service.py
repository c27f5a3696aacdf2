# Overview: Allocation of human-readable document numbers (order numbers).

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentSequence


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def _bump(document_type: str) -> int | None:
    stmt = (
        update(DocumentSequence)
        .where(DocumentSequence.document_type == document_type)
        .values(next_number=DocumentSequence.next_number + 1)
    )
    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    db.session.flush()
    current = (
        db.session.query(DocumentSequence.next_number)
        .filter_by(document_type=document_type)
        .scalar()
    )
    return current - 1


def next_document_number(*, document_type: str, prefix: str, pad: int = 6) -> str:
    """
    Atomically allocate the next number for a document type.

    The UPDATE takes a row lock on the sequence, so concurrent callers are
    serialized. Runs inside the caller's transaction; the first allocation
    for a type inserts the sequence row under a savepoint so a concurrent
    insert does not roll back the outer transaction.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    number = _bump(document_type)
    if number is None:
        try:
            with db.session.begin_nested():
                db.session.add(DocumentSequence(document_type=document_type, next_number=2))
            number = 1
        except IntegrityError:
            number = _bump(document_type)
            if number is None:
                raise DocumentSequenceError(f"Could not allocate number for {document_type}")

    return f"{prefix}-{number:0{pad}d}"
