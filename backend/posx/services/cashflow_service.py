# Overview: Service-layer operations for expenses and opening balances.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Expense, OpeningBalance, Sale, Salesperson
from ..money import from_cents
from ..validation import NotFoundError, ValidationError
from .reporting_service import resolve_range
from posx.time_utils import to_utc_z

EXPENSE_LIST_LIMIT = 100


def create_expense(*, client_id: int, patch: dict) -> Expense:
    if patch["amount_cents"] <= 0:
        raise ValidationError("amount must be greater than 0")

    salesperson_id = patch.get("salesperson_id")
    if salesperson_id is not None:
        owned = db.session.query(Salesperson.id).filter_by(id=salesperson_id, client_id=client_id).first()
        if not owned:
            raise NotFoundError("Salesperson not found")

    expense = Expense(
        client_id=client_id,
        description=patch["description"],
        amount_cents=patch["amount_cents"],
        category=patch.get("category") or None,
        salesperson_id=salesperson_id,
    )
    db.session.add(expense)
    db.session.commit()
    return expense


def list_expenses(client_id: int, limit: int = EXPENSE_LIST_LIMIT) -> list[Expense]:
    return (
        db.session.query(Expense)
        .filter_by(client_id=client_id)
        .order_by(Expense.created_at.desc(), Expense.id.desc())
        .limit(limit)
        .all()
    )


def delete_expense(*, client_id: int, expense_id: int) -> None:
    expense = db.session.query(Expense).filter_by(id=expense_id, client_id=client_id).first()
    if not expense:
        raise NotFoundError("Expense not found")
    db.session.delete(expense)
    db.session.commit()


def cashflow_report(client_id: int, start: str | None, end: str | None) -> dict:
    """Sales total against expenses for a window (default today)."""
    start_dt, end_dt = resolve_range(start, end)

    total_sales = db.session.query(func.coalesce(func.sum(Sale.total_amount_cents), 0)).filter(
        Sale.client_id == client_id,
        Sale.created_at >= start_dt,
        Sale.created_at < end_dt,
    ).scalar()
    total_sales = int(total_sales or 0)

    expenses = (
        db.session.query(Expense)
        .filter(
            Expense.client_id == client_id,
            Expense.created_at >= start_dt,
            Expense.created_at < end_dt,
        )
        .order_by(Expense.created_at.desc(), Expense.id.desc())
        .all()
    )
    total_expenses = sum(e.amount_cents for e in expenses)

    return {
        "totalSales": from_cents(total_sales),
        "totalExpenses": from_cents(total_expenses),
        "netCashflow": from_cents(total_sales - total_expenses),
        "expenses": [e.to_dict() for e in expenses],
        "startDate": to_utc_z(start_dt),
        "endDate": to_utc_z(end_dt),
    }


def set_opening_balance(*, client_id: int, amount_cents: int) -> OpeningBalance:
    if amount_cents < 0:
        raise ValidationError("amount must be >= 0")
    balance = OpeningBalance(client_id=client_id, amount_cents=amount_cents)
    db.session.add(balance)
    db.session.commit()
    return balance


def latest_opening_balance(client_id: int) -> OpeningBalance | None:
    return (
        db.session.query(OpeningBalance)
        .filter_by(client_id=client_id)
        .order_by(OpeningBalance.created_at.desc(), OpeningBalance.id.desc())
        .first()
    )
