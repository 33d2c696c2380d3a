# Overview: Flask API routes for expenses, opening balances and the cash flow report.

from flask import Blueprint, request, g

from ..decorators import require_auth
from ..responses import error_response
from ..services import cashflow_service
from ..services.reporting_service import ReportError
from ..validation import (
    Field,
    PayloadPolicy,
    ValidationError,
    NotFoundError,
    validate_payload,
)
from posx.money import from_cents

EXPENSE_POLICY = PayloadPolicy(
    fields={
        "description": Field("description", "str", nullable=False, max_length=255),
        "amount": Field("amount_cents", "money", nullable=False),
        "category": Field("category", "str", max_length=64),
        "employeeId": Field("salesperson_id", "int"),
    },
    required_on_create=frozenset({"description", "amount"}),
)

OPENING_BALANCE_POLICY = PayloadPolicy(
    fields={"amount": Field("amount_cents", "money", nullable=False)},
    required_on_create=frozenset({"amount"}),
)

cashflow_bp = Blueprint("cashflow", __name__, url_prefix="/pos")


@cashflow_bp.post("/expenses")
@require_auth
def create_expense_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=EXPENSE_POLICY, partial=False)
        expense = cashflow_service.create_expense(client_id=g.client_id, patch=patch)
    except ValidationError as e:
        return error_response(str(e), 400)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True, "expense": expense.to_dict()}, 201


@cashflow_bp.get("/expenses")
@require_auth
def list_expenses_route():
    expenses = cashflow_service.list_expenses(g.client_id)
    return {"expenses": [e.to_dict() for e in expenses]}


@cashflow_bp.delete("/expenses/<int:expense_id>")
@require_auth
def delete_expense_route(expense_id: int):
    try:
        cashflow_service.delete_expense(client_id=g.client_id, expense_id=expense_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True}


@cashflow_bp.post("/cashflow-report")
@require_auth
def cashflow_report_route():
    """Body: {startDate, endDate}"""
    payload = request.get_json(silent=True) or {}
    try:
        return cashflow_service.cashflow_report(g.client_id, payload.get("startDate"), payload.get("endDate"))
    except ReportError as e:
        return error_response(str(e), 400)


@cashflow_bp.post("/opening-balance")
@require_auth
def set_opening_balance_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=OPENING_BALANCE_POLICY, partial=False)
        balance = cashflow_service.set_opening_balance(client_id=g.client_id, amount_cents=patch["amount_cents"])
    except ValidationError as e:
        return error_response(str(e), 400)
    return {"success": True, "openingBalance": balance.to_dict()}, 201


@cashflow_bp.get("/opening-balance")
@require_auth
def get_opening_balance_route():
    balance = cashflow_service.latest_opening_balance(g.client_id)
    if balance is None:
        return {"openingBalance": None, "amount": from_cents(0)}
    return {"openingBalance": balance.to_dict(), "amount": from_cents(balance.amount_cents)}
