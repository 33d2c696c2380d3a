from __future__ import annotations

import enum

from ..extensions import db
from posx.money import from_cents
from posx.time_utils import to_utc_z, utcnow


class PaymentMethod(str, enum.Enum):
    """
    Closed set of tenders recorded on a sale.

    Labels outside the set are stored as OTHERS with the original text kept in
    Sale.payment_label.
    """
    CASH = "cash"
    MEMBER = "member"
    QR = "qr"
    OTHERS = "others"

    @classmethod
    def parse(cls, label) -> "PaymentMethod":
        if isinstance(label, cls):
            return label
        normalized = str(label or "").strip().lower()
        for method in cls:
            if method.value == normalized:
                return method
        return cls.OTHERS

    @property
    def report_label(self) -> str:
        return {
            PaymentMethod.CASH: "Cash Income",
            PaymentMethod.MEMBER: "Member",
            PaymentMethod.QR: "QR Payment",
            PaymentMethod.OTHERS: "Other Revenue",
        }[self]


class Sale(db.Model):
    """
    Checkout header. Written once by create_sale and never updated.

    total_amount_cents is the amount the till reported; it equals the sum of
    the line totals by convention only.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.UniqueConstraint("client_id", "receipt_number", name="uq_sales_client_receipt"),
        # Composite index for client-scoped date range reports
        db.Index("ix_sales_client_created", "client_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)

    # Human-readable receipt number (e.g., "ORD-000123")
    receipt_number = db.Column(db.String(64), nullable=False, index=True)

    total_amount_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False, default=PaymentMethod.CASH.value, index=True)
    # Label as sent by the till when it is not one of PaymentMethod
    payment_label = db.Column(db.String(64), nullable=True)

    promotion_cents = db.Column(db.Integer, nullable=True)
    discount_cents = db.Column(db.Integer, nullable=True)
    custom_reduce_cents = db.Column(db.Integer, nullable=True)
    custom_discount = db.Column(db.Integer, nullable=True)  # percent
    remarks = db.Column(db.Text, nullable=True)
    salesperson_name = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy=True,
        order_by="SaleItem.id",
    )

    @property
    def payment_display(self) -> str:
        return self.payment_label or self.payment_method

    def to_dict(self, include_items: bool = True) -> dict:
        data = {
            "id": self.id,
            "receiptNumber": self.receipt_number,
            "totalAmount": from_cents(self.total_amount_cents),
            "paymentMethod": self.payment_display,
            "promotion": from_cents(self.promotion_cents),
            "discount": from_cents(self.discount_cents),
            "customReduce": from_cents(self.custom_reduce_cents),
            "customDiscount": self.custom_discount,
            "remarks": self.remarks,
            "salesPerson": self.salesperson_name,
            "createdAt": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Line item of a sale. total_price is computed by the till, not here."""
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_price_cents = db.Column(db.Integer, nullable=False)

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "quantity": self.quantity,
            "unitPrice": from_cents(self.unit_price_cents),
            "totalPrice": from_cents(self.total_price_cents),
        }


class DocumentSequence(db.Model):
    """
    Per-client document counters (receipt numbers).

    Incremented under a row lock inside the sale's transaction so numbers are
    gap-free per client.
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("client_id", "document_type", name="uq_doc_sequences_client_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    document_type = db.Column(db.String(32), nullable=False)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
