# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication for shop clients and the admin console.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Admin credentials come from configuration, never from the database
- Session tokens managed separately (see session_service.py)
"""

from __future__ import annotations

import hmac

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Client
from ..validation import ValidationError
from posx.time_utils import utcnow

MIN_PASSWORD_LENGTH = 8


class AuthError(Exception):
    """
    Raised when credentials are rejected.

    status is 401 for bad credentials and 403 for accounts that exist but
    may not log in (inactive, suspended).
    """

    def __init__(self, message: str, status: int = 401):
        super().__init__(message)
        self.status = status


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds=rounds))
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    malformed hashes).
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def authenticate_client(phone_number: str, password: str) -> Client:
    """
    Check a client's phone number and password.

    Updates last_login_at on success. Raises AuthError(401) on bad
    credentials and AuthError(403) when the account is not active.
    """
    if not phone_number or not password:
        raise AuthError("Phone number and password are required")

    client = db.session.query(Client).filter_by(phone_number=phone_number.strip()).first()
    if not client or not verify_password(password, client.password_hash):
        raise AuthError("Invalid phone number or password")

    if not client.is_active:
        raise AuthError(f"Account is {client.status}", status=403)

    client.last_login_at = utcnow()
    db.session.commit()
    return client


def authenticate_admin(username: str, password: str) -> None:
    """
    Check admin console credentials against configuration.

    ADMIN_PASSWORD_HASH (bcrypt) takes precedence over ADMIN_PASSWORD.
    Raises AuthError(401) on mismatch or when no admin is configured.
    """
    config = current_app.config
    expected_username = config.get("ADMIN_USERNAME")
    if not expected_username or not username or not password:
        raise AuthError("Invalid admin credentials")

    if not hmac.compare_digest(username.encode("utf-8"), expected_username.encode("utf-8")):
        raise AuthError("Invalid admin credentials")

    password_hash = config.get("ADMIN_PASSWORD_HASH")
    if password_hash:
        ok = verify_password(password, password_hash)
    else:
        expected_password = config.get("ADMIN_PASSWORD") or ""
        ok = bool(expected_password) and hmac.compare_digest(
            password.encode("utf-8"), expected_password.encode("utf-8")
        )

    if not ok:
        raise AuthError("Invalid admin credentials")
