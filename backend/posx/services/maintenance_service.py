# Overview: Service-layer operations for maintenance; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app
from sqlalchemy import text

from ..extensions import db
from ..models import Expense, Product, Sale
from ..time_utils import to_utc_z, utcnow
from . import session_service


def sync_client(client_id: int) -> dict:
    """
    Row counts for the client's data plus a planner statistics refresh.

    Used by the till to confirm it is talking to a live database.
    """
    counts = {
        "products": db.session.query(Product).filter_by(client_id=client_id).count(),
        "sales": db.session.query(Sale).filter_by(client_id=client_id).count(),
        "expenses": db.session.query(Expense).filter_by(client_id=client_id).count(),
    }

    db.session.execute(text("ANALYZE"))
    db.session.commit()

    current_app.logger.info("Sync for client %s: %s", client_id, counts)
    return {
        "success": True,
        "message": "Database synchronized",
        "syncedAt": to_utc_z(utcnow()),
        "counts": counts,
    }


def cleanup_sessions() -> int:
    """Delete expired and revoked session rows past retention."""
    deleted = session_service.cleanup_expired_sessions()
    current_app.logger.info("Removed %s stale sessions", deleted)
    return deleted
