# Overview: JSON error bodies shared by routes and app-level handlers.

from __future__ import annotations

from flask import jsonify

ERROR_CODES = {
    400: "invalid_argument",
    401: "unauthenticated",
    403: "permission_denied",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    500: "internal",
}


def error_response(message: str, status: int, details=None):
    """{"error": message, "code": kind} plus details when given."""
    body = {"error": message, "code": ERROR_CODES.get(status, "internal")}
    if details:
        body["details"] = details
    return jsonify(body), status
