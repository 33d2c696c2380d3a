# Overview: Request decorators for client and admin API routes.

from functools import wraps
from flask import request, g

from .responses import error_response
from .services import session_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    token = auth_header.split(" ", 1)[1].strip()
    return token or None


def require_auth(f):
    """
    Require a client session and establish the tenant context.

    Sets the following Flask g attributes:
    - g.current_client: The authenticated Client
    - g.client_id: Its id; every query in the route is scoped by it
    - g.session_context: The full SessionContext object

    Returns 401 if:
    - No Authorization header
    - Invalid, expired or idle token
    - The token belongs to an admin session

    Returns 403 if the client account is not active.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return error_response("Authentication required", 401)

        context = session_service.validate_session(token)
        if not context or context.is_admin or context.client is None:
            return error_response("Invalid or expired token", 401)

        if not context.client.is_active:
            return error_response(f"Account is {context.client.status}", 403)

        g.current_client = context.client
        g.client_id = context.client.id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_admin(f):
    """Require an admin session (issued by /auth/admin/login)."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return error_response("Authentication required", 401)

        context = session_service.validate_session(token)
        if not context:
            return error_response("Invalid or expired token", 401)
        if not context.is_admin:
            return error_response("Admin access required", 403)

        g.session_context = context
        return f(*args, **kwargs)

    return decorated_function
