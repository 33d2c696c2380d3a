# Overview: Flask API routes for reports; read-only aggregations for the till and the client console.

# backend/posx/routes/reports.py
"""
Reporting routes.

Range reports take {startDate, endDate} in the JSON body (ISO dates or
timestamps; default today). Every report is scoped to g.client_id.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth
from ..responses import error_response
from ..services import reporting_service
from ..services.reporting_service import ReportError
from ..validation import ValidationError, coerce_int

reports_bp = Blueprint("reports", __name__, url_prefix="/pos")


def _range_args() -> tuple[dict, str | None, str | None]:
    payload = request.get_json(silent=True) or {}
    return payload, payload.get("startDate"), payload.get("endDate")


@reports_bp.post("/hourly-sales")
@require_auth
def hourly_sales_route():
    _, start, end = _range_args()
    try:
        return {"hourlySales": reporting_service.hourly_sales(g.client_id, start, end)}
    except ReportError as e:
        return error_response(str(e), 400)


@reports_bp.post("/top-sales")
@require_auth
def top_sales_route():
    """Body: {startDate, endDate, filterType: all|item|category, categoryId?}"""
    payload, start, end = _range_args()
    try:
        category_id = payload.get("categoryId")
        if category_id not in (None, ""):
            category_id = coerce_int("categoryId", category_id)
        else:
            category_id = None
        rows = reporting_service.top_sales(
            g.client_id,
            start,
            end,
            filter_type=str(payload.get("filterType") or "all").lower(),
            category_id=category_id,
        )
    except (ReportError, ValidationError) as e:
        return error_response(str(e), 400)
    return {"topSales": rows}


@reports_bp.post("/category-sales-report")
@require_auth
def category_sales_report_route():
    _, start, end = _range_args()
    try:
        return {"categorySales": reporting_service.category_sales_report(g.client_id, start, end)}
    except ReportError as e:
        return error_response(str(e), 400)


@reports_bp.post("/category-items")
@require_auth
def category_items_route():
    """Body: {categoryId, startDate, endDate}"""
    payload, start, end = _range_args()
    if payload.get("categoryId") in (None, ""):
        return error_response("categoryId is required", 400)
    try:
        category_id = coerce_int("categoryId", payload["categoryId"])
        items = reporting_service.category_items(g.client_id, category_id, start, end)
    except (ReportError, ValidationError) as e:
        return error_response(str(e), 400)
    return {"items": items}


@reports_bp.post("/sales-transactions")
@require_auth
def sales_transactions_route():
    _, start, end = _range_args()
    try:
        return {"transactions": reporting_service.sales_transactions(g.client_id, start, end)}
    except ReportError as e:
        return error_response(str(e), 400)


@reports_bp.get("/receipts/search")
@require_auth
def search_receipts_route():
    """Query params: date (YYYY-MM-DD) or orderNumber. Defaults to today."""
    try:
        receipts = reporting_service.search_receipts(
            g.client_id,
            day=request.args.get("date"),
            order_number=request.args.get("orderNumber"),
        )
    except ReportError as e:
        return error_response(str(e), 400)
    return {"receipts": receipts, "total": len(receipts)}


# =============================================================================
# Client console
# =============================================================================

@reports_bp.get("/client/dashboard")
@require_auth
def client_dashboard_route():
    return reporting_service.client_dashboard(g.client_id)


@reports_bp.post("/client/sales-report")
@require_auth
def client_sales_report_route():
    _, start, end = _range_args()
    try:
        return {"salesReport": reporting_service.client_sales_report(g.client_id, start, end)}
    except ReportError as e:
        return error_response(str(e), 400)


@reports_bp.post("/client/category-sales")
@require_auth
def client_category_sales_route():
    _, start, end = _range_args()
    try:
        return {"categorySales": reporting_service.client_category_sales(g.client_id, start, end)}
    except ReportError as e:
        return error_response(str(e), 400)


@reports_bp.post("/client/top-products")
@require_auth
def client_top_products_route():
    _, start, end = _range_args()
    try:
        return {"topProducts": reporting_service.client_top_products(g.client_id, start, end)}
    except ReportError as e:
        return error_response(str(e), 400)


@reports_bp.post("/client/cashflow")
@require_auth
def client_cashflow_route():
    _, start, end = _range_args()
    try:
        return reporting_service.client_cashflow(g.client_id, start, end)
    except ReportError as e:
        return error_response(str(e), 400)
