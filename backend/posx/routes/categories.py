# Overview: Flask API routes for categories; parses input and returns JSON responses.

from flask import Blueprint, request, g

from ..decorators import require_auth
from ..responses import error_response
from ..services import category_service
from ..validation import (
    Field,
    PayloadPolicy,
    ValidationError,
    ConflictError,
    NotFoundError,
    validate_payload,
)

CATEGORY_POLICY = PayloadPolicy(
    fields={
        "name": Field("name", "str", nullable=False, max_length=255),
        "color": Field("color", "str", max_length=16),
    },
    required_on_create=frozenset({"name"}),
)

categories_bp = Blueprint("categories", __name__, url_prefix="/pos/categories")


@categories_bp.get("")
@require_auth
def list_categories_route():
    """Categories with their product counts."""
    return {"categories": category_service.list_categories_with_counts(g.client_id)}


@categories_bp.get("/flat")
@require_auth
def list_categories_flat_route():
    return {"categories": [c.to_dict() for c in category_service.list_categories(g.client_id)]}


@categories_bp.post("")
@require_auth
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=CATEGORY_POLICY, partial=False)
        category = category_service.create_category(client_id=g.client_id, patch=patch)
    except ValidationError as e:
        return error_response(str(e), 400)
    except ConflictError as e:
        return error_response(str(e), 409)
    return {"success": True, "category": category.to_dict()}, 201


@categories_bp.put("/<int:category_id>")
@require_auth
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=CATEGORY_POLICY, partial=True)
        category = category_service.update_category(client_id=g.client_id, category_id=category_id, patch=patch)
    except ValidationError as e:
        return error_response(str(e), 400)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except ConflictError as e:
        return error_response(str(e), 409)
    return {"success": True, "category": category.to_dict()}


@categories_bp.delete("/<int:category_id>")
@require_auth
def delete_category_route(category_id: int):
    try:
        category_service.delete_category(client_id=g.client_id, category_id=category_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except ValidationError as e:
        return error_response(str(e), 400)
    return {"success": True}
