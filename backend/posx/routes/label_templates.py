# Overview: Flask API routes for label templates; parses input and returns JSON responses.

from flask import Blueprint, request, g

from ..decorators import require_auth
from ..responses import error_response
from ..services import label_template_service
from ..validation import (
    Field,
    PayloadPolicy,
    ValidationError,
    NotFoundError,
    validate_payload,
)

# elements is validated by the service; id and type echoed back by the till are ignored
LABEL_TEMPLATE_POLICY = PayloadPolicy(
    fields={
        "name": Field("name", "str", nullable=False, max_length=255),
        "width": Field("width", "int", nullable=False),
        "height": Field("height", "int", nullable=False),
    },
    required_on_create=frozenset({"name", "width", "height"}),
    ignore_unknown=True,
)

label_templates_bp = Blueprint("label_templates", __name__, url_prefix="/pos/label-templates")


@label_templates_bp.get("")
@require_auth
def list_templates_route():
    templates = label_template_service.list_templates(g.client_id)
    return {"templates": [t.to_dict() for t in templates], "success": True}


@label_templates_bp.post("")
@require_auth
def create_template_route():
    """Body: {name, width, height, elements: [...]}. Width and height in mm."""
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=LABEL_TEMPLATE_POLICY, partial=False)
        elements = label_template_service.normalize_elements(payload.get("elements", []))
        template = label_template_service.create_template(
            client_id=g.client_id, patch=patch, elements=elements
        )
    except ValidationError as e:
        return error_response(str(e), 400)
    return {"template": template.to_dict(), "success": True}, 201


@label_templates_bp.put("/<int:template_id>")
@require_auth
def update_template_route(template_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=LABEL_TEMPLATE_POLICY, partial=True)
        elements = None
        if "elements" in payload:
            elements = label_template_service.normalize_elements(payload["elements"])
        template = label_template_service.update_template(
            client_id=g.client_id, template_id=template_id, patch=patch, elements=elements
        )
    except ValidationError as e:
        return error_response(str(e), 400)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"template": template.to_dict(), "success": True}


@label_templates_bp.delete("/<int:template_id>")
@require_auth
def delete_template_route(template_id: int):
    try:
        label_template_service.delete_template(client_id=g.client_id, template_id=template_id)
    except NotFoundError as e:
        return error_response(str(e), 404)
    return {"success": True}
