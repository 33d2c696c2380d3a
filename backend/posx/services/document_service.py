# Overview: Service-layer operations for document numbers; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import update

from ..extensions import db
from ..models import DocumentSequence

RECEIPT_DOCUMENT_TYPE = "RECEIPT"
RECEIPT_PREFIX = "ORD"


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def next_document_number(
    *,
    client_id: int,
    document_type: str = RECEIPT_DOCUMENT_TYPE,
    prefix: str = RECEIPT_PREFIX,
    pad: int = 4,
) -> str:
    """
    Allocate the next document number for a client/type.

    Runs inside the caller's transaction: the UPDATE takes the row lock on
    (client_id, document_type) and a rollback of the caller releases the
    number again, so receipt numbers stay gap-free.
    """
    if not client_id:
        raise DocumentSequenceError("client_id is required")
    if not document_type:
        raise DocumentSequenceError("document_type is required")

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.client_id == client_id,
            DocumentSequence.document_type == document_type,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(client_id=client_id, document_type=document_type)
            .scalar()
        )
        next_num = current - 1
    else:
        # First document for this client; a concurrent first insert fails
        # the unique constraint and the caller's unit of work rolls back.
        db.session.add(DocumentSequence(client_id=client_id, document_type=document_type, next_number=2))
        db.session.flush()
        next_num = 1

    return f"{prefix}-{next_num:0{pad}d}"
