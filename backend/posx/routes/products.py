# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/posx/routes/products.py
"""
Product management routes.

All product operations are scoped to the caller's client (g.client_id, set
by @require_auth). Static paths are registered before /<int:product_id>.
"""
from flask import Blueprint, request, g

from ..decorators import require_auth
from ..responses import error_response
from ..services import products_service
from ..validation import (
    Field,
    PayloadPolicy,
    ValidationError,
    ConflictError,
    NotFoundError,
    enforce_rules_product,
    require_list,
    validate_payload,
)

PRODUCT_POLICY = PayloadPolicy(
    fields={
        "name": Field("name", "str", nullable=False, max_length=255),
        "price": Field("price_cents", "money", nullable=False),
        "quantity": Field("quantity", "int"),
        "categoryId": Field("category_id", "int"),
        "barcode": Field("barcode", "str", max_length=64),
        "sku": Field("sku", "str", max_length=64),
        "secondName": Field("second_name", "str", max_length=255),
        "wholesalePrice": Field("wholesale_price_cents", "money"),
        "startQty": Field("start_qty", "int"),
        "stockPrice": Field("stock_price_cents", "money"),
        "totalAmount": Field("total_amount_cents", "money"),
        "shelfLife": Field("shelf_life", "int"),
        "origin": Field("origin", "str", max_length=255),
        "ingredients": Field("ingredients", "str"),
        "remarks": Field("remarks", "str"),
        "weighing": Field("weighing", "bool"),
        "isOffShelf": Field("is_off_shelf", "bool", nullable=False),
    },
    required_on_create=frozenset({"name", "price"}),
    ignore_unknown=True,
)

products_bp = Blueprint("products", __name__, url_prefix="/pos/products")


@products_bp.get("")
@require_auth
def list_products_route():
    products = products_service.list_products(g.client_id)
    return {"products": [p.to_dict() for p in products]}


@products_bp.post("")
@require_auth
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
    except ValidationError as e:
        return error_response(str(e), 400)

    try:
        product = products_service.create_product(client_id=g.client_id, patch=patch)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except ConflictError as e:
        return error_response(str(e), 409)

    return {"success": True, "product": product.to_dict()}, 201


@products_bp.get("/low-stock")
@require_auth
def low_stock_route():
    threshold = request.args.get("threshold", type=int)
    products = products_service.low_stock_products(g.client_id, threshold)
    return {"products": [p.to_dict() for p in products]}


@products_bp.get("/export")
@require_auth
def export_products_route():
    rows = products_service.export_products(g.client_id)
    return {"products": rows, "total": len(rows)}


@products_bp.post("/import")
@require_auth
def import_products_route():
    """
    Body: {products: [...rows], updateExisting: bool}

    Rows are processed independently; per-row problems come back in errors.
    """
    payload = request.get_json(silent=True) or {}
    try:
        rows = require_list(payload, "products")
    except ValidationError as e:
        return error_response(str(e), 400)

    result = products_service.import_products(
        client_id=g.client_id,
        rows=rows,
        update_existing=bool(payload.get("updateExisting")),
    )
    return {"success": True, **result}


@products_bp.get("/category/<int:category_id>")
@require_auth
def list_category_products_route(category_id: int):
    products = products_service.list_products(g.client_id, category_id=category_id)
    return {"products": [p.to_dict() for p in products]}


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(g.client_id, product_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"product": product.to_dict()}


@products_bp.put("/<int:product_id>")
@require_auth
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return error_response(str(e), 400)

    try:
        product = products_service.update_product(client_id=g.client_id, product_id=product_id, patch=patch)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except ConflictError as e:
        return error_response(str(e), 409)

    return {"success": True, "product": product.to_dict()}


@products_bp.delete("/<int:product_id>")
@require_auth
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(client_id=g.client_id, product_id=product_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except ConflictError as e:
        return error_response(str(e), 409)
    return {"success": True}


@products_bp.post("/<int:product_id>/stick")
@require_auth
def stick_product_route(product_id: int):
    try:
        product = products_service.stick_product(client_id=g.client_id, product_id=product_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True, "product": product.to_dict()}


@products_bp.post("/<int:product_id>/toggle-off-shelf")
@require_auth
def toggle_off_shelf_route(product_id: int):
    try:
        product = products_service.toggle_off_shelf(client_id=g.client_id, product_id=product_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True, "product": product.to_dict()}
