# Overview: Flask API routes for salespersons; parses input and returns JSON responses.

from flask import Blueprint, request, g

from ..decorators import require_auth
from ..responses import error_response
from ..services import salesperson_service
from ..validation import (
    Field,
    PayloadPolicy,
    ValidationError,
    ConflictError,
    NotFoundError,
    validate_payload,
)

SALESPERSON_POLICY = PayloadPolicy(
    fields={
        "name": Field("name", "str", nullable=False, max_length=255),
        "phoneNumber": Field("phone_number", "str", nullable=False, max_length=32),
        "password": Field("password", "str", nullable=False),
        "canProcessReturns": Field("can_process_returns", "bool"),
        "canGiveDiscounts": Field("can_give_discounts", "bool"),
        "isActive": Field("is_active", "bool"),
    },
    required_on_create=frozenset({"name", "phoneNumber", "password"}),
)

# Password changes go through /<id>/password
SALESPERSON_UPDATE_POLICY = PayloadPolicy(
    fields={k: v for k, v in SALESPERSON_POLICY.fields.items() if k != "password"},
)

salespersons_bp = Blueprint("salespersons", __name__, url_prefix="/auth/salespersons")


@salespersons_bp.post("")
@require_auth
def create_salesperson_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=SALESPERSON_POLICY, partial=False)
        person = salesperson_service.create_salesperson(client_id=g.client_id, patch=patch)
    except ValidationError as e:
        return error_response(str(e), 400)
    except ConflictError as e:
        return error_response(str(e), 409)
    return {"success": True, "salesperson": person.to_dict()}, 201


@salespersons_bp.get("")
@require_auth
def list_salespersons_route():
    people = salesperson_service.list_salespersons(g.client_id)
    return {"salespersons": [p.to_dict() for p in people]}


@salespersons_bp.put("/<int:salesperson_id>")
@require_auth
def update_salesperson_route(salesperson_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=SALESPERSON_UPDATE_POLICY, partial=True)
        person = salesperson_service.update_salesperson(
            client_id=g.client_id, salesperson_id=salesperson_id, patch=patch
        )
    except ValidationError as e:
        return error_response(str(e), 400)
    except NotFoundError as e:
        return error_response(str(e), 404)
    except ConflictError as e:
        return error_response(str(e), 409)
    return {"success": True, "salesperson": person.to_dict()}


@salespersons_bp.delete("/<int:salesperson_id>")
@require_auth
def delete_salesperson_route(salesperson_id: int):
    try:
        salesperson_service.delete_salesperson(client_id=g.client_id, salesperson_id=salesperson_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True}


@salespersons_bp.post("/<int:salesperson_id>/password")
@require_auth
def change_password_route(salesperson_id: int):
    """Body: {password}"""
    payload = request.get_json(silent=True) or {}
    try:
        salesperson_service.change_password(
            client_id=g.client_id,
            salesperson_id=salesperson_id,
            new_password=payload.get("password"),
        )
    except ValidationError as e:
        return error_response(str(e), 400)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True, "message": "Password updated"}
