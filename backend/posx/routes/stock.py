# Overview: Flask API routes for stock adjustments and the movement ledger.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth
from ..responses import error_response
from ..services import stock_service
from ..services.stock_service import InsufficientStockError, ProductNotFoundError
from ..validation import ValidationError

stock_bp = Blueprint("stock", __name__, url_prefix="/pos/stock")


@stock_bp.post("/update")
@require_auth
def update_stock_route():
    """
    Body: {updates: [{productId, quantity, action, price?, remarks?}]}
    action: stock-in | stock-out | stock-loss

    The batch is all-or-nothing. Returns {success, updatedProducts} with the
    product ids in input order.
    """
    payload = request.get_json(silent=True)

    try:
        updates = stock_service.parse_stock_updates(payload)
    except ValidationError as e:
        return error_response(str(e), 400)

    try:
        updated = stock_service.update_stock(client_id=g.client_id, updates=updates)
    except ProductNotFoundError as e:
        return error_response(str(e), 404, e.details)
    except InsufficientStockError as e:
        return error_response(str(e), 400, e.details)
    except ValidationError as e:
        return error_response(str(e), 400)
    except Exception:
        current_app.logger.exception("Stock update failed for client %s", g.client_id)
        return error_response("Failed to update stock", 500)

    return {"success": True, "updatedProducts": updated}


@stock_bp.get("/movements")
@require_auth
def list_movements_route():
    """Query params: productId (optional), limit (default 100, max 500)."""
    product_id = request.args.get("productId", type=int)
    limit = request.args.get("limit", default=100, type=int)

    movements = stock_service.list_movements(g.client_id, product_id=product_id, limit=limit)
    return {"movements": [m.to_dict() for m in movements]}
