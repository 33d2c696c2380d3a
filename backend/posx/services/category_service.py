# Overview: Service-layer operations for categories; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import func

from ..extensions import db
from ..models import Category, Product, DEFAULT_CATEGORY_COLOR
from ..validation import ConflictError, NotFoundError, ValidationError


def get_category(client_id: int, category_id: int) -> Category:
    category = db.session.query(Category).filter_by(id=category_id, client_id=client_id).first()
    if not category:
        raise NotFoundError("Category not found")
    return category


def find_category_by_name(client_id: int, name: str) -> Category | None:
    return (
        db.session.query(Category)
        .filter(Category.client_id == client_id, func.lower(Category.name) == name.strip().lower())
        .first()
    )


def _ensure_name_free(client_id: int, name: str, exclude_id: int | None = None) -> None:
    existing = find_category_by_name(client_id, name)
    if existing and existing.id != exclude_id:
        raise ConflictError("A category with this name already exists")


def list_categories(client_id: int) -> list[Category]:
    return (
        db.session.query(Category)
        .filter_by(client_id=client_id)
        .order_by(Category.name.asc())
        .all()
    )


def list_categories_with_counts(client_id: int) -> list[dict]:
    """Categories ordered by name, each with its number of products."""
    counts = dict(
        db.session.query(Product.category_id, func.count(Product.id))
        .filter(Product.client_id == client_id, Product.category_id.isnot(None))
        .group_by(Product.category_id)
        .all()
    )
    rows = []
    for category in list_categories(client_id):
        row = category.to_dict()
        row["productCount"] = int(counts.get(category.id, 0))
        rows.append(row)
    return rows


def create_category(*, client_id: int, patch: dict, commit: bool = True) -> Category:
    name = patch["name"]
    _ensure_name_free(client_id, name)

    category = Category(
        client_id=client_id,
        name=name,
        color=patch.get("color") or DEFAULT_CATEGORY_COLOR,
    )
    db.session.add(category)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return category


def update_category(*, client_id: int, category_id: int, patch: dict) -> Category:
    category = get_category(client_id, category_id)

    if patch.get("name"):
        _ensure_name_free(client_id, patch["name"], exclude_id=category.id)
        category.name = patch["name"]
    if patch.get("color"):
        category.color = patch["color"]

    db.session.commit()
    return category


def delete_category(*, client_id: int, category_id: int) -> None:
    """Delete an empty category. Categories that still hold products are rejected."""
    category = get_category(client_id, category_id)

    in_use = (
        db.session.query(func.count(Product.id))
        .filter(Product.client_id == client_id, Product.category_id == category.id)
        .scalar()
    )
    if in_use:
        raise ValidationError(
            "Cannot delete category that contains products. Please move or delete products first."
        )

    db.session.delete(category)
    db.session.commit()
