# Overview: Flask API routes for emailed report exports.

from flask import Blueprint, request, g

from ..decorators import require_auth
from ..services import export_service
from ..validation import ValidationError, coerce_int
from ..responses import error_response

exports_bp = Blueprint("exports", __name__, url_prefix="/pos")


@exports_bp.post("/export-category-sales-email")
@require_auth
def export_category_sales_email_route():
    """Body: {email, startDate?, endDate?, categoryId?}"""
    payload = request.get_json(silent=True) or {}

    category_id = payload.get("categoryId")
    try:
        category_id = coerce_int("categoryId", category_id) if category_id not in (None, "") else None
    except ValidationError as e:
        return error_response(str(e), 400)

    result = export_service.export_category_sales_email(
        g.client_id,
        payload.get("email"),
        payload.get("startDate"),
        payload.get("endDate"),
        category_id,
    )
    return result, 200 if result["success"] else 400


@exports_bp.post("/send-logs")
@require_auth
def send_logs_route():
    """Emails today's sales and expenses to the configured recipient."""
    result = export_service.send_logs(g.client_id)
    return result, 200 if result["success"] else 400
