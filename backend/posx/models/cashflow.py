from __future__ import annotations

from ..extensions import db
from posx.money import from_cents
from posx.time_utils import to_utc_z, utcnow


class Expense(db.Model):
    """Cash paid out of the till (supplies, petty cash)."""
    __tablename__ = "expenses"
    __table_args__ = (
        db.Index("ix_expenses_client_created", "client_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    category = db.Column(db.String(64), nullable=True)
    salesperson_id = db.Column(db.Integer, db.ForeignKey("salespersons.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "description": self.description,
            "amount": from_cents(self.amount_cents),
            "category": self.category,
            "employeeId": self.salesperson_id,
            "createdAt": to_utc_z(self.created_at),
        }


class OpeningBalance(db.Model):
    """Float counted into the drawer at start of day. The latest row wins."""
    __tablename__ = "opening_balances"
    __table_args__ = (
        db.Index("ix_opening_balances_client_created", "client_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": from_cents(self.amount_cents),
            "createdAt": to_utc_z(self.created_at),
        }
