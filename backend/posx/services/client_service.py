# Overview: Service-layer operations for clients and licenses; encapsulates business logic and database work.

from __future__ import annotations

import secrets
import string
import time

from sqlalchemy import func

from ..extensions import db
from ..models import Client, License, CLIENT_STATUSES
from ..validation import ConflictError, NotFoundError, ValidationError
from .auth_service import hash_password
from .session_service import revoke_client_sessions

_BASE36 = string.digits + string.ascii_uppercase
_LICENSE_ALPHABET = string.ascii_uppercase + string.digits


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_client_code() -> str:
    """CLI-<base36 millis>-<6 random base36 chars>, upper case."""
    timestamp = _base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"CLI-{timestamp}-{random_part}"


def generate_license_key() -> str:
    """Four dash-separated groups of four characters from A-Z0-9."""
    return "-".join(
        "".join(secrets.choice(_LICENSE_ALPHABET) for _ in range(4))
        for _ in range(4)
    )


def create_client(*, patch: dict) -> Client:
    """
    Create a shop account.

    patch: client_name, phone_number, password, optional email, company_name.
    Raises ConflictError when the phone number is already registered.
    """
    phone = patch["phone_number"]
    if db.session.query(Client.id).filter_by(phone_number=phone).first():
        raise ConflictError("A client with this phone number already exists")

    client = Client(
        client_code=generate_client_code(),
        client_name=patch["client_name"],
        phone_number=phone,
        password_hash=hash_password(patch["password"]),
        email=patch.get("email"),
        company_name=patch.get("company_name"),
        status="active",
    )
    db.session.add(client)
    db.session.commit()
    return client


def list_clients() -> list[Client]:
    return db.session.query(Client).order_by(Client.created_at.desc(), Client.id.desc()).all()


def update_client_status(client_id: int, status: str) -> Client:
    """
    Change a client's status.

    Leaving "active" revokes the client's open sessions.
    """
    if status not in CLIENT_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(CLIENT_STATUSES)}")

    client = db.session.get(Client, client_id)
    if not client:
        raise NotFoundError("Client not found")

    client.status = status
    db.session.commit()

    if status != "active":
        revoke_client_sessions(client.id, reason=f"Client {status}")

    return client


def client_stats() -> dict:
    rows = (
        db.session.query(Client.status, func.count(Client.id))
        .group_by(Client.status)
        .order_by(func.count(Client.id).desc())
        .all()
    )
    by_status = {status: int(count) for status, count in rows}
    return {
        "totalClients": sum(by_status.values()),
        "activeClients": by_status.get("active", 0),
        "onHoldClients": by_status.get("onhold", 0),
        "suspendedClients": by_status.get("suspended", 0),
        "statusBreakdown": [{"status": s, "count": c} for s, c in by_status.items()],
    }


# =============================================================================
# Licenses
# =============================================================================

def create_license(*, patch: dict) -> License:
    """
    Issue a license bound to a phone id.

    Raises ConflictError when the phone id already holds a license.
    """
    phone_id = patch["phone_id"]
    if db.session.query(License.id).filter_by(phone_id=phone_id).first():
        raise ConflictError("A license already exists for this phone ID")

    key = generate_license_key()
    while db.session.query(License.id).filter_by(license_key=key).first():
        key = generate_license_key()

    license_ = License(
        license_key=key,
        phone_id=phone_id,
        client_name=patch["client_name"],
        email=patch.get("email"),
        company_name=patch.get("company_name"),
        expires_at=patch.get("expires_at"),
        password_hash=hash_password(patch["password"]),
        is_active=True,
    )
    db.session.add(license_)
    db.session.commit()
    return license_


def list_licenses() -> list[License]:
    return db.session.query(License).order_by(License.created_at.desc(), License.id.desc()).all()


def set_license_active(license_id: int, active: bool) -> License:
    license_ = db.session.get(License, license_id)
    if not license_:
        raise NotFoundError("License not found")
    license_.is_active = active
    db.session.commit()
    return license_
