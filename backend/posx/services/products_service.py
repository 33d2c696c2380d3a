# Overview: Service-layer operations for products; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..extensions import db
from ..models import Category, Product, SaleItem
from ..money import from_cents
from ..validation import (
    ConflictError,
    Field,
    NotFoundError,
    PayloadPolicy,
    ValidationError,
    enforce_rules_product,
    validate_payload,
)
from .category_service import create_category, find_category_by_name, get_category

# Spreadsheet rows: unknown columns are ignored rather than rejected
IMPORT_ROW_POLICY = PayloadPolicy(
    fields={
        "name": Field("name", "str", nullable=False, max_length=255),
        "price": Field("price_cents", "money", nullable=False),
        "quantity": Field("quantity", "int"),
        "categoryName": Field("category_name", "str", max_length=255),
        "barcode": Field("barcode", "str", max_length=64),
        "secondName": Field("second_name", "str", max_length=255),
        "wholesalePrice": Field("wholesale_price_cents", "money"),
        "stockPrice": Field("stock_price_cents", "money"),
        "origin": Field("origin", "str", max_length=255),
        "ingredients": Field("ingredients", "str"),
        "remarks": Field("remarks", "str"),
    },
    required_on_create=frozenset({"name", "price"}),
    ignore_unknown=True,
)

# Fields an import may overwrite on an existing product (None keeps the old value)
_IMPORT_UPDATABLE = (
    "quantity", "barcode", "second_name", "wholesale_price_cents",
    "stock_price_cents", "origin", "ingredients", "remarks",
)


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        setattr(p, k, v)


def _ordered(query):
    return query.order_by(Product.sort_order.desc(), Product.name.asc(), Product.id.asc())


def list_products(client_id: int, *, category_id: int | None = None) -> list[Product]:
    query = db.session.query(Product).filter(Product.client_id == client_id)
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    return _ordered(query).all()


def get_product(client_id: int, product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id, client_id=client_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def _ensure_name_free_in_category(
    client_id: int,
    name: str,
    category_id: int | None,
    exclude_id: int | None = None,
) -> None:
    """Product names are unique (case-insensitive) within one category."""
    if category_id is None:
        return
    query = db.session.query(Product.id).filter(
        Product.client_id == client_id,
        Product.category_id == category_id,
        func.lower(Product.name) == name.strip().lower(),
    )
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("A product with this name already exists in the selected category")


def create_product(*, client_id: int, patch: dict) -> Product:
    category_id = patch.get("category_id")
    if category_id is not None:
        get_category(client_id, category_id)

    _ensure_name_free_in_category(client_id, patch["name"], category_id)

    quantity = patch.get("quantity") or 0
    product = Product(
        client_id=client_id,
        quantity=quantity,
        start_qty=patch.get("start_qty") or quantity,
        weighing=False,
        is_off_shelf=False,
        sort_order=0,
    )
    apply_product_patch(product, {k: v for k, v in patch.items() if k not in ("quantity", "start_qty")})
    if product.weighing is None:
        product.weighing = False

    db.session.add(product)
    db.session.commit()
    return product


def update_product(*, client_id: int, product_id: int, patch: dict) -> Product:
    """
    Partial update: keys absent from patch (or given as null) keep their value.
    """
    product = get_product(client_id, product_id)
    patch = {k: v for k, v in patch.items() if v is not None}

    if "category_id" in patch:
        get_category(client_id, patch["category_id"])

    name = patch.get("name", product.name)
    category_id = patch.get("category_id", product.category_id)
    if "name" in patch or "category_id" in patch:
        _ensure_name_free_in_category(client_id, name, category_id, exclude_id=product.id)

    apply_product_patch(product, patch)
    db.session.commit()
    return product


def delete_product(*, client_id: int, product_id: int) -> None:
    """
    Delete a product.

    Products that appear on a sale stay, so receipts and reports keep their
    line items.
    """
    product = get_product(client_id, product_id)

    sold = db.session.query(SaleItem.id).filter_by(product_id=product.id).first()
    if sold:
        raise ConflictError("Product has sales history and cannot be deleted. Take it off shelf instead.")

    db.session.delete(product)
    db.session.commit()


def stick_product(*, client_id: int, product_id: int) -> Product:
    """Move a product to the top of its category (sort_order = max + 1)."""
    product = get_product(client_id, product_id)

    query = db.session.query(func.coalesce(func.max(Product.sort_order), 0)).filter(
        Product.client_id == client_id,
    )
    if product.category_id is None:
        query = query.filter(Product.category_id.is_(None))
    else:
        query = query.filter(Product.category_id == product.category_id)

    product.sort_order = int(query.scalar() or 0) + 1
    db.session.commit()
    return product


def toggle_off_shelf(*, client_id: int, product_id: int) -> Product:
    product = get_product(client_id, product_id)
    product.is_off_shelf = not product.is_off_shelf
    db.session.commit()
    return product


def low_stock_products(client_id: int, threshold: int | None = None) -> list[Product]:
    """On-shelf products at or below the threshold, lowest quantity first."""
    if threshold is None:
        threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 5)
    return (
        db.session.query(Product)
        .filter(
            Product.client_id == client_id,
            Product.is_off_shelf.is_(False),
            Product.quantity <= threshold,
        )
        .order_by(Product.quantity.asc(), Product.name.asc())
        .all()
    )


# =============================================================================
# Spreadsheet import / export
# =============================================================================

def _find_existing_for_import(client_id: int, name: str, barcode: str | None) -> Product | None:
    cond = func.lower(Product.name) == name.lower()
    if barcode:
        cond = db.or_(cond, Product.barcode == barcode)
    return db.session.query(Product).filter(Product.client_id == client_id, cond).first()


def import_products(*, client_id: int, rows: list, update_existing: bool = False) -> dict:
    """
    Import spreadsheet rows.

    Each row is handled on its own: a bad row is reported in errors and the
    rest of the import continues. Missing categories are created by name.
    Existing products (same name, or same barcode) are updated only when
    update_existing is set, otherwise skipped.
    """
    imported = 0
    updated = 0
    errors: list[str] = []

    for index, raw in enumerate(rows, start=1):
        label = raw.get("name") if isinstance(raw, dict) and raw.get("name") else f"row {index}"
        try:
            row = validate_payload(payload=raw, policy=IMPORT_ROW_POLICY, partial=False)
            enforce_rules_product(row)
        except ValidationError as e:
            errors.append(f"Row skipped ({label}): {e}")
            continue

        try:
            category_id = None
            category_name = row.pop("category_name", None)
            if category_name:
                category = find_category_by_name(client_id, category_name)
                if category is None:
                    category = create_category(client_id=client_id, patch={"name": category_name}, commit=False)
                category_id = category.id

            existing = _find_existing_for_import(client_id, row["name"], row.get("barcode"))
            if existing:
                if not update_existing:
                    errors.append(f'Product "{row["name"]}" already exists and was skipped')
                    db.session.commit()
                    continue
                existing.name = row["name"]
                existing.price_cents = row["price_cents"]
                if category_name:
                    existing.category_id = category_id
                for attr in _IMPORT_UPDATABLE:
                    if row.get(attr) is not None:
                        setattr(existing, attr, row[attr])
                updated += 1
            else:
                quantity = row.get("quantity") or 0
                product = Product(
                    client_id=client_id,
                    category_id=category_id,
                    quantity=quantity,
                    start_qty=quantity,
                    weighing=False,
                    is_off_shelf=False,
                    sort_order=0,
                )
                apply_product_patch(product, {k: v for k, v in row.items() if k != "quantity"})
                db.session.add(product)
                imported += 1

            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.exception("Product import row failed")
            errors.append(f'Error processing "{label}": {e}')

    current_app.logger.info(
        "Product import for client %s: %s imported, %s updated, %s errors",
        client_id, imported, updated, len(errors),
    )
    return {"imported": imported, "updated": updated, "errors": errors}


def export_products(client_id: int) -> list[dict]:
    """Rows in the import format, ordered by category name then product name."""
    rows = (
        db.session.query(Product, Category.name)
        .outerjoin(Category, Product.category_id == Category.id)
        .filter(Product.client_id == client_id)
        .order_by(Category.name.asc(), Product.name.asc())
        .all()
    )
    out = []
    for product, category_name in rows:
        out.append({
            "name": product.name,
            "price": from_cents(product.price_cents),
            "quantity": product.quantity,
            "categoryName": category_name,
            "barcode": product.barcode,
            "secondName": product.second_name,
            "wholesalePrice": from_cents(product.wholesale_price_cents),
            "stockPrice": from_cents(product.stock_price_cents),
            "origin": product.origin,
            "ingredients": product.ingredients,
            "remarks": product.remarks,
        })
    return out
