# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# backend/posx/routes/sales.py
"""
Checkout and sales summary routes.

POST /pos/sales writes the sale, its items and the stock decrements in one
transaction (see sales_service.create_sale). Nothing is left behind when it
fails.
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth
from ..responses import error_response
from ..services import export_service, reporting_service, sales_service
from ..services.reporting_service import ReportError
from ..services.stock_service import InsufficientStockError, ProductNotFoundError
from ..validation import ValidationError

sales_bp = Blueprint("sales", __name__, url_prefix="/pos/sales")


@sales_bp.post("")
@require_auth
def create_sale_route():
    """
    Body: {items: [{productId, quantity, unitPrice, totalPrice}], totalAmount,
    paymentMethod, promotion?, discount?, customReduce?, customDiscount?,
    remarks?, salesPerson?, printReceipt?}

    Returns 201 with {sale, success: true}.
    """
    payload = request.get_json(silent=True)

    try:
        sale_request = sales_service.parse_sale_request(payload)
    except ValidationError as e:
        return error_response(str(e), 400)

    try:
        sale = sales_service.create_sale(client_id=g.client_id, request=sale_request)
    except ProductNotFoundError as e:
        return error_response(str(e), 404, e.details)
    except InsufficientStockError as e:
        return error_response(str(e), 400, e.details)
    except ValidationError as e:
        return error_response(str(e), 400)
    except Exception:
        current_app.logger.exception("Sale creation failed for client %s", g.client_id)
        return error_response("Failed to create sale", 500)

    return {"sale": sale.to_dict(), "success": True}, 201


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    """A single sale of the calling client, with its items."""
    sale = sales_service.get_sale(g.client_id, sale_id)
    if sale is None:
        return error_response("Sale not found", 404)
    return {"sale": sale.to_dict()}


@sales_bp.get("/summary")
@require_auth
def sales_summary_route():
    """Query params: dateFrom, dateTo (YYYY-MM-DD, default today)."""
    try:
        return reporting_service.sales_summary(
            g.client_id,
            request.args.get("dateFrom"),
            request.args.get("dateTo"),
        )
    except ReportError as e:
        return error_response(str(e), 400)


@sales_bp.post("/export-email")
@require_auth
def export_sales_email_route():
    """Body: {email, dateFrom?, dateTo?, employeeFilter?}. Sends the summary as CSV."""
    payload = request.get_json(silent=True) or {}
    result = export_service.export_sales_email(
        g.client_id,
        payload.get("email"),
        payload.get("dateFrom"),
        payload.get("dateTo"),
        payload.get("employeeFilter"),
    )
    return result, 200 if result["success"] else 400
