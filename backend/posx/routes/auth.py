# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/posx/routes/auth.py
"""
Login and session endpoints for shop clients, the admin console and
salespersons.

Client and admin logins issue opaque bearer tokens (see session_service).
Salesperson login only verifies credentials and returns the profile; the
till keeps using the client's session.
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth
from ..responses import error_response
from ..services import auth_service, salesperson_service, session_service
from ..services.auth_service import AuthError
from ..validation import ValidationError
from posx.time_utils import to_utc_z

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _session_body(session, token: str) -> dict:
    return {"token": token, "expiresAt": to_utc_z(session.expires_at)}


@auth_bp.post("/client/login")
def client_login():
    """
    Body: {phoneNumber, password}

    Returns 200 with {success, token, expiresAt, client}; 401 on bad
    credentials; 403 when the account is not active.
    """
    payload = request.get_json(silent=True) or {}
    phone_number = str(payload.get("phoneNumber") or "").strip()
    password = payload.get("password") or ""

    if not phone_number or not password:
        return error_response("Phone number and password are required", 400)

    try:
        client = auth_service.authenticate_client(phone_number, password)
    except AuthError as e:
        current_app.logger.warning("Client login rejected for %s: %s", phone_number, e)
        return error_response(str(e), e.status)

    session, token = session_service.create_session(
        client.id,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return {"success": True, **_session_body(session, token), "client": client.to_dict()}


@auth_bp.post("/admin/login")
def admin_login():
    """Body: {username, password}. Credentials come from configuration."""
    payload = request.get_json(silent=True) or {}
    username = str(payload.get("username") or "").strip()
    password = payload.get("password") or ""

    try:
        auth_service.authenticate_admin(username, password)
    except AuthError as e:
        current_app.logger.warning("Admin login rejected for %s", username or "<blank>")
        return error_response(str(e), e.status)

    session, token = session_service.create_session(
        is_admin=True,
        user_agent=request.headers.get("User-Agent"),
        ip_address=request.remote_addr,
    )
    return {"success": True, **_session_body(session, token), "admin": {"username": username}}


@auth_bp.post("/logout")
def logout():
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return error_response("Authentication required", 401)

    token = auth_header.split(" ", 1)[1].strip()
    if not session_service.revoke_session(token):
        return error_response("Invalid or expired token", 401)
    return {"success": True, "message": "Logged out"}


@auth_bp.get("/me")
@require_auth
def me():
    return {"client": g.current_client.to_dict()}


@auth_bp.post("/salesperson/login")
def salesperson_login():
    """Body: {phoneNumber, password}. Returns the salesperson profile."""
    payload = request.get_json(silent=True) or {}
    phone_number = str(payload.get("phoneNumber") or "").strip()
    password = payload.get("password") or ""

    try:
        person = salesperson_service.authenticate_salesperson(phone_number, password)
    except ValidationError as e:
        return error_response(str(e), 400)
    except AuthError as e:
        current_app.logger.warning("Salesperson login rejected for %s: %s", phone_number, e)
        return error_response(str(e), e.status)

    return {"success": True, "salesperson": person.to_dict()}


@auth_bp.get("/employees")
@require_auth
def list_employees():
    """Active salespersons of the client, for the till's staff picker."""
    people = salesperson_service.list_salespersons(g.client_id, active_only=True)
    return {"employees": [p.to_dict() for p in people]}
