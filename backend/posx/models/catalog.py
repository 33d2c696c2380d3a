from __future__ import annotations

from ..extensions import db
from posx.money import from_cents
from posx.time_utils import to_utc_z, utcnow

DEFAULT_CATEGORY_COLOR = "#6B7280"


class Category(db.Model):
    """Product grouping shown as a tab on the sales screen."""
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_client_name", "client_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    color = db.Column(db.String(16), nullable=False, default=DEFAULT_CATEGORY_COLOR)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "createdAt": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Sellable item with an on-hand quantity counter.

    quantity is changed by product edits, by sales (decrement) and by stock
    adjustments. Every change made by a sale or an adjustment is mirrored by a
    row in stock_movements.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_client_category", "client_id", "category_id"),
        db.Index("ix_products_client_barcode", "client_id", "barcode"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True)

    name = db.Column(db.String(255), nullable=False)
    second_name = db.Column(db.String(255), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)
    sku = db.Column(db.String(64), nullable=True)

    # Pricing (all amounts in cents)
    price_cents = db.Column(db.Integer, nullable=False)
    wholesale_price_cents = db.Column(db.Integer, nullable=True)
    stock_price_cents = db.Column(db.Integer, nullable=True)
    total_amount_cents = db.Column(db.Integer, nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    start_qty = db.Column(db.Integer, nullable=False, default=0)

    shelf_life = db.Column(db.Integer, nullable=True)  # days
    origin = db.Column(db.String(255), nullable=True)
    ingredients = db.Column(db.Text, nullable=True)
    remarks = db.Column(db.Text, nullable=True)
    weighing = db.Column(db.Boolean, nullable=False, default=False)

    is_off_shelf = db.Column(db.Boolean, nullable=False, default=False)
    # Higher sorts first ("stick to top")
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    category = db.relationship("Category", backref=db.backref("products", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": from_cents(self.price_cents),
            "quantity": self.quantity,
            "categoryId": self.category_id,
            "barcode": self.barcode,
            "sku": self.sku,
            "secondName": self.second_name,
            "wholesalePrice": from_cents(self.wholesale_price_cents),
            "startQty": self.start_qty,
            "stockPrice": from_cents(self.stock_price_cents),
            "totalAmount": from_cents(self.total_amount_cents),
            "shelfLife": self.shelf_life,
            "origin": self.origin,
            "ingredients": self.ingredients,
            "remarks": self.remarks,
            "weighing": self.weighing,
            "isOffShelf": self.is_off_shelf,
            "sortOrder": self.sort_order,
        }
