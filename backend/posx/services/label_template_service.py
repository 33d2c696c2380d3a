# Overview: Service-layer operations for label templates; encapsulates business logic and database work.

from __future__ import annotations

from numbers import Real

from ..extensions import db
from ..models import LABEL_ELEMENT_TYPES, LabelTemplate
from ..validation import NotFoundError, ValidationError

MAX_LABEL_MM = 1000
MAX_LABEL_ELEMENTS = 200

_NUMERIC_KEYS = ("x", "y", "width", "height", "fontSize")
_TEXT_KEYS = ("id", "content", "attribute")


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def normalize_elements(raw) -> list[dict]:
    """
    Validate the drawn elements of a template.

    Keeps only the known keys of each element, in the order given.
    """
    if not isinstance(raw, list):
        raise ValidationError("elements must be a list")
    if len(raw) > MAX_LABEL_ELEMENTS:
        raise ValidationError(f"A template can hold at most {MAX_LABEL_ELEMENTS} elements")

    elements = []
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValidationError(f"elements[{index}] must be an object")
        if item.get("type") not in LABEL_ELEMENT_TYPES:
            raise ValidationError(
                f"elements[{index}]: type must be one of: {', '.join(LABEL_ELEMENT_TYPES)}"
            )

        element = {"type": item["type"]}
        for key in _NUMERIC_KEYS:
            value = item.get(key)
            if value is None:
                if key in ("x", "y"):
                    raise ValidationError(f"elements[{index}]: {key} is required")
                continue
            if not _is_number(value):
                raise ValidationError(f"elements[{index}]: {key} must be a number")
            element[key] = value
        for key in _TEXT_KEYS:
            value = item.get(key)
            if value is not None:
                element[key] = str(value)
        elements.append(element)
    return elements


def _check_dimensions(patch: dict) -> None:
    for attr in ("width", "height"):
        value = patch.get(attr)
        if value is not None and not 0 < value <= MAX_LABEL_MM:
            raise ValidationError(f"{attr} must be between 1 and {MAX_LABEL_MM} mm")


def get_template(client_id: int, template_id: int) -> LabelTemplate:
    template = db.session.query(LabelTemplate).filter_by(id=template_id, client_id=client_id).first()
    if not template:
        raise NotFoundError("Label template not found")
    return template


def list_templates(client_id: int) -> list[LabelTemplate]:
    """Newest first."""
    return (
        db.session.query(LabelTemplate)
        .filter_by(client_id=client_id)
        .order_by(LabelTemplate.created_at.desc(), LabelTemplate.id.desc())
        .all()
    )


def create_template(*, client_id: int, patch: dict, elements: list[dict]) -> LabelTemplate:
    _check_dimensions(patch)

    template = LabelTemplate(
        client_id=client_id,
        name=patch["name"],
        width=patch["width"],
        height=patch["height"],
        elements=elements,
    )
    db.session.add(template)
    db.session.commit()
    return template


def update_template(
    *,
    client_id: int,
    template_id: int,
    patch: dict,
    elements: list[dict] | None = None,
) -> LabelTemplate:
    template = get_template(client_id, template_id)
    _check_dimensions(patch)

    for attr in ("name", "width", "height"):
        if patch.get(attr) is not None:
            setattr(template, attr, patch[attr])
    if elements is not None:
        # New list object so the JSON column is flagged dirty
        template.elements = list(elements)

    db.session.commit()
    return template


def delete_template(*, client_id: int, template_id: int) -> None:
    template = get_template(client_id, template_id)
    db.session.delete(template)
    db.session.commit()
