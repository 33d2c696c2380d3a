from __future__ import annotations

from ..extensions import db
from posx.time_utils import to_utc_z, utcnow

CLIENT_STATUSES = ("active", "onhold", "suspended", "inactive")


class Client(db.Model):
    """
    A shop (tenant) that owns products, sales and staff.

    Every catalog, sales and cash-flow row carries client_id; all queries are
    scoped by the client of the authenticated session.
    """
    __tablename__ = "clients"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    # Public identifier shown in the admin console (e.g., "CLI-LQ2X8K-4F9A")
    client_code = db.Column(db.String(64), nullable=False, unique=True, index=True)

    client_name = db.Column(db.String(255), nullable=False)
    company_name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)

    # Login identifier
    phone_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="active", index=True)  # active, onhold, suspended, inactive

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "clientCode": self.client_code,
            "clientName": self.client_name,
            "companyName": self.company_name,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
            "lastLoginAt": to_utc_z(self.last_login_at),
        }


class License(db.Model):
    """Device license issued by the admin console, bound to a phone id."""
    __tablename__ = "licenses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)

    # "XXXX-XXXX-XXXX-XXXX"
    license_key = db.Column(db.String(32), nullable=False, unique=True, index=True)
    phone_id = db.Column(db.String(64), nullable=False, unique=True, index=True)

    client_name = db.Column(db.String(255), nullable=False)
    company_name = db.Column(db.String(255), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "licenseKey": self.license_key,
            "phoneId": self.phone_id,
            "clientName": self.client_name,
            "companyName": self.company_name,
            "email": self.email,
            "isActive": self.is_active,
            "expiresAt": to_utc_z(self.expires_at),
            "createdAt": to_utc_z(self.created_at),
        }


class Salesperson(db.Model):
    """
    Cashier staff member of a client.

    Phone numbers are unique within a client, not globally.
    """
    __tablename__ = "salespersons"
    __table_args__ = (
        db.UniqueConstraint("client_id", "phone_number", name="uq_salespersons_client_phone"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone_number = db.Column(db.String(32), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)

    can_process_returns = db.Column(db.Boolean, nullable=False, default=False)
    can_give_discounts = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    client = db.relationship("Client", backref=db.backref("salespersons", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "clientId": self.client_id,
            "name": self.name,
            "phoneNumber": self.phone_number,
            "canProcessReturns": self.can_process_returns,
            "canGiveDiscounts": self.can_give_discounts,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class SessionToken(db.Model):
    """
    Opaque bearer token for a client or the admin console.

    Tokens are stored hashed (SHA-256). Admin sessions have client_id NULL
    and is_admin True.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_client_active", "client_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=True, index=True)
    is_admin = db.Column(db.Boolean, nullable=False, default=False)

    # Token hash (never store plaintext tokens!)
    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(512), nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)

    client = db.relationship("Client", backref=db.backref("sessions", lazy=True))
