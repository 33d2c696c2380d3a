# Overview: Service-layer operations for sales; encapsulates business logic and database work.

"""
Checkout processing.

create_sale writes the sale header, its line items, the product quantity
decrements and the matching stock movements in one unit of work. Either
all of it is committed or none of it is.

Sales decrement stock without a sufficiency check unless
SALES_ALLOW_NEGATIVE_STOCK is False, in which case a line that would take a
product below zero fails the sale with InsufficientStockError.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app

from ..extensions import db
from ..models import MOVEMENT_SALE, PaymentMethod, Sale, SaleItem
from ..validation import (
    MAX_QUANTITY,
    Field,
    PayloadPolicy,
    ValidationError,
    require_list,
    validate_payload,
)
from .concurrency import unit_of_work
from .document_service import next_document_number
from .stock_service import InsufficientStockError, load_product_for_update, record_movement


# printReceipt and display-only keys sent by the till are ignored
SALE_POLICY = PayloadPolicy(
    fields={
        "totalAmount": Field("total_amount_cents", "money", nullable=False),
        "paymentMethod": Field("payment_method", "str", nullable=False, max_length=64),
        "promotion": Field("promotion_cents", "money"),
        "discount": Field("discount_cents", "money"),
        "customReduce": Field("custom_reduce_cents", "money"),
        "customDiscount": Field("custom_discount", "int"),
        "remarks": Field("remarks", "str"),
        "salesPerson": Field("salesperson_name", "str", max_length=255),
    },
    required_on_create=frozenset({"totalAmount", "paymentMethod"}),
    ignore_unknown=True,
)

SALE_ITEM_POLICY = PayloadPolicy(
    fields={
        "productId": Field("product_id", "int", nullable=False),
        "quantity": Field("quantity", "int", nullable=False),
        "unitPrice": Field("unit_price_cents", "money", nullable=False),
        "totalPrice": Field("total_price_cents", "money", nullable=False),
    },
    required_on_create=frozenset({"productId", "quantity", "unitPrice", "totalPrice"}),
    ignore_unknown=True,
)


@dataclass
class SaleRequest:
    header: dict
    items: list[dict] = field(default_factory=list)


def parse_sale_request(payload: dict | None) -> SaleRequest:
    """
    Validate a checkout payload before anything is written.

    Quantities must be positive integers no larger than MAX_QUANTITY and
    amounts non-negative. An empty items list is rejected here, so
    create_sale always receives at least one line.
    """
    raw_items = require_list(payload, "items")
    header = validate_payload(payload=payload, policy=SALE_POLICY, partial=False)

    if header["total_amount_cents"] < 0:
        raise ValidationError("totalAmount must be >= 0")
    if header.get("custom_discount") is not None and not 0 <= header["custom_discount"] <= 100:
        raise ValidationError("customDiscount must be between 0 and 100")

    items = []
    for index, raw in enumerate(raw_items):
        try:
            item = validate_payload(payload=raw, policy=SALE_ITEM_POLICY, partial=False)
        except ValidationError as e:
            raise ValidationError(f"items[{index}]: {e}")
        if not 0 < item["quantity"] <= MAX_QUANTITY:
            raise ValidationError(f"items[{index}]: quantity must be between 1 and {MAX_QUANTITY}")
        if item["unit_price_cents"] < 0 or item["total_price_cents"] < 0:
            raise ValidationError(f"items[{index}]: prices must be >= 0")
        items.append(item)

    return SaleRequest(header=header, items=items)


def create_sale(*, client_id: int, request: SaleRequest) -> Sale:
    """
    Persist a checkout as one unit of work.

    Raises ProductNotFoundError for an unknown productId and
    InsufficientStockError when overselling is disabled; in both cases
    nothing of the sale remains.
    """
    allow_negative = current_app.config.get("SALES_ALLOW_NEGATIVE_STOCK", True)
    header = dict(request.header)
    label = header.pop("payment_method")
    method = PaymentMethod.parse(label)

    with unit_of_work():
        sale = Sale(
            client_id=client_id,
            receipt_number=next_document_number(client_id=client_id),
            payment_method=method.value,
            payment_label=label if method is PaymentMethod.OTHERS and label.lower() != method.value else None,
            **header,
        )
        db.session.add(sale)
        # Assigns id and created_at
        db.session.flush()

        for item in request.items:
            product = load_product_for_update(client_id, item["product_id"])

            db.session.add(SaleItem(
                sale_id=sale.id,
                product_id=product.id,
                quantity=item["quantity"],
                unit_price_cents=item["unit_price_cents"],
                total_price_cents=item["total_price_cents"],
            ))

            after = product.quantity - item["quantity"]
            if after < 0 and not allow_negative:
                raise InsufficientStockError(
                    f"Insufficient stock for product ID {product.id}. "
                    f"Current: {product.quantity}, Requested: {item['quantity']}",
                    details={
                        "productId": product.id,
                        "available": product.quantity,
                        "requested": item["quantity"],
                    },
                )

            product.quantity = after
            record_movement(
                product=product,
                delta=-item["quantity"],
                reason=MOVEMENT_SALE,
                unit_price_cents=item["unit_price_cents"],
                sale_id=sale.id,
            )
            db.session.flush()

    current_app.logger.info(
        "Sale %s (%s) committed for client %s: %s items, %s cents",
        sale.id, sale.receipt_number, client_id, len(request.items), sale.total_amount_cents,
    )
    return sale


def get_sale(client_id: int, sale_id: int) -> Sale | None:
    return db.session.query(Sale).filter_by(id=sale_id, client_id=client_id).first()
