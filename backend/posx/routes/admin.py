# Overview: Flask API routes for the admin console (clients and licenses).

# backend/posx/routes/admin.py
"""
Admin console routes.

SECURITY: Every route requires an admin session (@require_admin).
"""
from flask import Blueprint, request, current_app

from ..decorators import require_admin
from ..responses import error_response
from ..services import client_service
from ..validation import (
    Field,
    PayloadPolicy,
    ValidationError,
    ConflictError,
    NotFoundError,
    validate_payload,
)

CLIENT_POLICY = PayloadPolicy(
    fields={
        "clientName": Field("client_name", "str", nullable=False, max_length=255),
        "phoneNumber": Field("phone_number", "str", nullable=False, max_length=32),
        "password": Field("password", "str", nullable=False),
        "email": Field("email", "str", max_length=255),
        "companyName": Field("company_name", "str", max_length=255),
    },
    required_on_create=frozenset({"clientName", "phoneNumber", "password"}),
)

LICENSE_POLICY = PayloadPolicy(
    fields={
        "phoneId": Field("phone_id", "str", nullable=False, max_length=64),
        "clientName": Field("client_name", "str", nullable=False, max_length=255),
        "password": Field("password", "str", nullable=False),
        "email": Field("email", "str", max_length=255),
        "companyName": Field("company_name", "str", max_length=255),
        "expiresAt": Field("expires_at", "datetime"),
    },
    required_on_create=frozenset({"phoneId", "clientName", "password"}),
)

admin_bp = Blueprint("admin", __name__, url_prefix="/auth/admin")


# =============================================================================
# Clients
# =============================================================================

@admin_bp.post("/clients")
@require_admin
def create_client_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=CLIENT_POLICY, partial=False)
        client = client_service.create_client(patch=patch)
    except ValidationError as e:
        return error_response(str(e), 400)
    except ConflictError as e:
        return error_response(str(e), 409)

    current_app.logger.info("Client %s created (%s)", client.id, client.client_code)
    return {"success": True, "client": client.to_dict()}, 201


@admin_bp.get("/clients")
@require_admin
def list_clients_route():
    clients = client_service.list_clients()
    return {"clients": [c.to_dict() for c in clients], "total": len(clients)}


@admin_bp.get("/clients/stats")
@require_admin
def client_stats_route():
    return client_service.client_stats()


@admin_bp.post("/clients/<int:client_id>/status")
@require_admin
def update_client_status_route(client_id: int):
    """Body: {status} with status in active, onhold, suspended, inactive."""
    payload = request.get_json(silent=True) or {}
    status = str(payload.get("status") or "").strip().lower()

    try:
        client = client_service.update_client_status(client_id, status)
    except ValidationError as e:
        return error_response(str(e), 400)
    except NotFoundError as e:
        return error_response(str(e), 404)

    current_app.logger.info("Client %s status set to %s", client.id, status)
    return {"success": True, "client": client.to_dict()}


# =============================================================================
# Licenses
# =============================================================================

@admin_bp.post("/licenses")
@require_admin
def create_license_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=LICENSE_POLICY, partial=False)
        license_ = client_service.create_license(patch=patch)
    except ValidationError as e:
        return error_response(str(e), 400)
    except ConflictError as e:
        return error_response(str(e), 409)

    return {"success": True, "license": license_.to_dict()}, 201


@admin_bp.get("/licenses")
@require_admin
def list_licenses_route():
    licenses = client_service.list_licenses()
    return {"licenses": [lic.to_dict() for lic in licenses], "total": len(licenses)}


@admin_bp.post("/licenses/<int:license_id>/activate")
@require_admin
def activate_license_route(license_id: int):
    try:
        license_ = client_service.set_license_active(license_id, True)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True, "license": license_.to_dict()}


@admin_bp.post("/licenses/<int:license_id>/deactivate")
@require_admin
def deactivate_license_route(license_id: int):
    try:
        license_ = client_service.set_license_active(license_id, False)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True, "license": license_.to_dict()}
