# backend/posx/routes/system.py
"""
System health and maintenance endpoints.

/health is unauthenticated and reports database connectivity for load
balancers; /pos/sync is the till's client-scoped sync call.
"""

import time
from flask import Blueprint, current_app, g
from sqlalchemy import text

from ..decorators import require_auth
from ..extensions import db
from ..models import SessionToken
from ..responses import error_response
from ..services import maintenance_service
from posx.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a trivial round trip.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latencyMs": round(elapsed_ms, 2),
            "details": {"activeSessions": active_sessions},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        db.session.rollback()
        return {
            "status": "unhealthy",
            "latencyMs": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: database reachable
    - 503: database unreachable
    """
    database_health = check_database_health()
    healthy = database_health["status"] == "healthy"

    response = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": to_utc_z(utcnow()),
        "checks": {"database": database_health},
    }
    return response, 200 if healthy else 503


@system_bp.post("/pos/sync")
@require_auth
def sync_route():
    try:
        return maintenance_service.sync_client(g.client_id)
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Sync failed for client %s", g.client_id)
        return error_response("Failed to sync database", 500)
