from __future__ import annotations

import enum

from ..extensions import db
from posx.money import from_cents
from posx.time_utils import to_utc_z, utcnow


class StockAction(str, enum.Enum):
    """Kinds of quantity change accepted by the stock adjustment batch."""
    STOCK_IN = "stock-in"
    STOCK_OUT = "stock-out"
    STOCK_LOSS = "stock-loss"

    @property
    def sign(self) -> int:
        return 1 if self is StockAction.STOCK_IN else -1

    @property
    def is_decrease(self) -> bool:
        return self.sign < 0


# Movement reasons written to the ledger (superset of StockAction)
MOVEMENT_SALE = "sale"


class StockMovement(db.Model):
    """
    Append-only ledger of product quantity changes.

    One row per sale line and per stock adjustment entry, written in the same
    transaction as the quantity update. Rows are never updated or deleted.
    quantity_delta is signed.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        db.Index("ix_stock_movements_client_created", "client_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)

    # "sale", "stock-in", "stock-out", "stock-loss"
    reason = db.Column(db.String(16), nullable=False, index=True)
    quantity_delta = db.Column(db.Integer, nullable=False)
    quantity_after = db.Column(db.Integer, nullable=False)

    unit_price_cents = db.Column(db.Integer, nullable=True)
    remarks = db.Column(db.Text, nullable=True)

    # Source document (sale id for sale movements)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "productId": self.product_id,
            "productName": self.product.name if self.product else None,
            "reason": self.reason,
            "quantityDelta": self.quantity_delta,
            "quantityAfter": self.quantity_after,
            "price": from_cents(self.unit_price_cents),
            "remarks": self.remarks,
            "saleId": self.sale_id,
            "createdAt": to_utc_z(self.created_at),
        }
