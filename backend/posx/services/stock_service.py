# Overview: Service-layer operations for stock adjustments and the movement ledger.

"""
Stock adjustment batches.

A batch is a list of {productId, quantity, action, price?, remarks?}
entries applied in input order inside one unit of work. stock-in adds
unconditionally; stock-out and stock-loss subtract and may not take the
on-hand quantity below zero. Any failing entry rolls back the whole batch.

Every quantity change (including sale decrements, see sales_service) is
mirrored by an append-only StockMovement row in the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import Product, StockAction, StockMovement
from ..validation import (
    MAX_QUANTITY,
    Field,
    PayloadPolicy,
    ValidationError,
    require_list,
    validate_payload,
)
from .concurrency import lock_for_update, unit_of_work

MAX_MOVEMENTS_LIMIT = 500


class StockError(Exception):
    """Raised for stock operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ProductNotFoundError(StockError):
    """Referenced product does not exist for this client (404)."""
    pass


class InsufficientStockError(StockError):
    """A decrease would take on-hand quantity below zero (400)."""
    pass


STOCK_UPDATE_POLICY = PayloadPolicy(
    fields={
        "productId": Field("product_id", "int", nullable=False),
        "quantity": Field("quantity", "int", nullable=False),
        "action": Field("action", "str", nullable=False),
        "price": Field("unit_price_cents", "money"),
        "remarks": Field("remarks", "str"),
    },
    required_on_create=frozenset({"productId", "quantity", "action"}),
    ignore_unknown=True,
)


@dataclass(frozen=True)
class StockUpdate:
    product_id: int
    quantity: int
    action: StockAction
    unit_price_cents: int | None = None
    remarks: str | None = None

    @property
    def delta(self) -> int:
        return self.action.sign * self.quantity


def parse_action(value) -> StockAction:
    try:
        return StockAction(str(value).strip().lower())
    except ValueError:
        allowed = ", ".join(a.value for a in StockAction)
        raise ValidationError(f"Invalid action '{value}'. Must be one of: {allowed}")


def parse_stock_updates(payload: dict | None) -> list[StockUpdate]:
    """
    Validate the whole batch before anything is written.

    Quantities must be positive integers; the action decides the sign.
    """
    entries = require_list(payload, "updates")
    updates: list[StockUpdate] = []
    for index, raw in enumerate(entries):
        try:
            row = validate_payload(payload=raw, policy=STOCK_UPDATE_POLICY, partial=False)
            action = parse_action(row["action"])
        except ValidationError as e:
            raise ValidationError(f"updates[{index}]: {e}")
        if not 0 < row["quantity"] <= MAX_QUANTITY:
            raise ValidationError(f"updates[{index}]: quantity must be between 1 and {MAX_QUANTITY}")
        if row.get("unit_price_cents") is not None and row["unit_price_cents"] < 0:
            raise ValidationError(f"updates[{index}]: price must be >= 0")
        updates.append(StockUpdate(
            product_id=row["product_id"],
            quantity=row["quantity"],
            action=action,
            unit_price_cents=row.get("unit_price_cents"),
            remarks=row.get("remarks") or None,
        ))
    return updates


def load_product_for_update(client_id: int, product_id: int) -> Product:
    """Read a product row under lock; ProductNotFoundError if it is not the client's."""
    product = lock_for_update(
        db.session.query(Product).filter_by(id=product_id, client_id=client_id)
    ).first()
    if product is None:
        raise ProductNotFoundError(
            f"Product with ID {product_id} not found",
            details={"productId": product_id},
        )
    return product


def record_movement(
    *,
    product: Product,
    delta: int,
    reason: str,
    unit_price_cents: int | None = None,
    remarks: str | None = None,
    sale_id: int | None = None,
) -> StockMovement:
    """Append a ledger row for a quantity change already applied to product."""
    movement = StockMovement(
        client_id=product.client_id,
        product_id=product.id,
        reason=reason,
        quantity_delta=delta,
        quantity_after=product.quantity,
        unit_price_cents=unit_price_cents,
        remarks=remarks,
        sale_id=sale_id,
    )
    db.session.add(movement)
    return movement


def update_stock(*, client_id: int, updates: list[StockUpdate]) -> list[int]:
    """
    Apply a batch of stock adjustments atomically.

    Returns the product ids in input order (repeats included). Raises
    ProductNotFoundError or InsufficientStockError and leaves every product
    untouched when any entry fails.
    """
    if not updates:
        raise ValidationError("updates cannot be empty")

    updated: list[int] = []
    try:
        with unit_of_work():
            for update in updates:
                product = load_product_for_update(client_id, update.product_id)
                before = product.quantity
                after = before + update.delta

                if update.action.is_decrease and after < 0:
                    raise InsufficientStockError(
                        f"Insufficient stock for product ID {product.id}. Current: {before}, Requested: {update.quantity}",
                        details={
                            "productId": product.id,
                            "available": before,
                            "requested": update.quantity,
                            "action": update.action.value,
                        },
                    )
                if after > MAX_QUANTITY:
                    raise ValidationError(
                        f"Stock for product ID {product.id} cannot exceed {MAX_QUANTITY}. Current: {before}, Requested: {update.quantity}"
                    )

                product.quantity = after
                record_movement(
                    product=product,
                    delta=update.delta,
                    reason=update.action.value,
                    unit_price_cents=update.unit_price_cents,
                    remarks=update.remarks,
                )
                # Later entries for the same product read this value
                db.session.flush()
                updated.append(product.id)
    except (StockError, ValidationError) as e:
        current_app.logger.warning("Stock batch rejected for client %s: %s", client_id, e)
        raise

    current_app.logger.info("Stock batch committed for client %s: %s entries", client_id, len(updated))
    return updated


def list_movements(
    client_id: int,
    *,
    product_id: int | None = None,
    limit: int = 100,
) -> list[StockMovement]:
    """Newest first."""
    limit = max(1, min(int(limit), MAX_MOVEMENTS_LIMIT))
    query = db.session.query(StockMovement).filter(StockMovement.client_id == client_id)
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    return query.order_by(StockMovement.id.desc()).limit(limit).all()
