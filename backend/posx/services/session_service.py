# Overview: Service-layer operations for session; encapsulates business logic and database work.

"""
Session Token Management Service

Tokens are cryptographically secure, hashed in database, and time-limited.

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Absolute timeout (SESSION_ABSOLUTE_TIMEOUT_HOURS)
- Idle timeout (SESSION_IDLE_TIMEOUT_HOURS)
- Revocable on logout
- Client sessions die with the client account (status != active)
"""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import Client, SessionToken
from posx.time_utils import utcnow

# Revoked/expired rows older than this are removed by cleanup
RETENTION = timedelta(days=30)


@dataclass
class SessionContext:
    """What validate_session resolved a bearer token to."""
    session: SessionToken
    client: Client | None  # None for admin sessions
    is_admin: bool

    @property
    def client_id(self) -> int | None:
        return self.client.id if self.client else None


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy). Never stored."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    Hash token for database storage using SHA-256.

    Tokens are already high-entropy, so a fast hash is sufficient.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _absolute_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_ABSOLUTE_TIMEOUT_HOURS", 24))


def _idle_timeout() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_IDLE_TIMEOUT_HOURS", 12))


def create_session(
    client_id: int | None = None,
    *,
    is_admin: bool = False,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Create new session token.

    Returns (session_record, plaintext_token).
    Caller receives plaintext_token, database stores only the hash.
    """
    if client_id is None and not is_admin:
        raise ValueError("client_id is required for client sessions")

    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        client_id=client_id,
        is_admin=is_admin,
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


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    db.session.commit()


def validate_session(token: str) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if the token is unknown, expired, revoked or idle too long.
    A client session whose account is no longer active is still returned, so
    the caller can answer 403 rather than 401.

    Updates last_used_at on successful validation (activity tracking).
    """
    if not token:
        return None

    now = utcnow()
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    # Check absolute timeout
    if session.expires_at < now:
        return None

    # Check idle timeout
    if now - session.last_used_at > _idle_timeout():
        _revoke(session, "Idle timeout")
        return None

    client = None
    if not session.is_admin:
        client = session.client
        if client is None:
            _revoke(session, "Client deleted")
            return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(session=session, client=client, is_admin=bool(session.is_admin))


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """
    Revoke session token.

    Returns True if session was revoked, False if not found.
    """
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    return True


def revoke_client_sessions(client_id: int, reason: str = "Revoke all sessions") -> int:
    """Revoke all active sessions of a client. Returns the count revoked."""
    now = utcnow()
    sessions = db.session.query(SessionToken).filter_by(
        client_id=client_id,
        is_revoked=False,
    ).all()

    for session in sessions:
        session.is_revoked = True
        session.revoked_at = now
        session.revoked_reason = reason

    db.session.commit()
    return len(sessions)


def cleanup_expired_sessions() -> int:
    """
    Delete expired and revoked sessions older than 30 days.

    Returns count of sessions deleted. Run periodically
    (`flask maintenance cleanup-sessions`).
    """
    now = utcnow()
    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < now,
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < now - RETENTION,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
