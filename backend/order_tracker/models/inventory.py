from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    One stocked product.

    SKU DESIGN DECISION:
    SKU uniqueness is a validation-layer rule (case-insensitive, trimmed, among
    the owner's items), not a database constraint. Shared catalogs are cloned
    into other accounts with the same SKUs, and legacy rows may differ only in
    case.

    STOCK: stock_level is operator managed. Settling an order does not
    decrement it.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_user_name", "user_id", "name"),
    )

    id = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(db.String(36), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    sku = db.Column(db.String(64), nullable=False)

    stock_level = db.Column(db.Integer, nullable=False, default=0)
    unit_cost = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    retail_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    # Expected bank settlement per unit; pre-fills new orders
    bank_settled_amount = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    # Reorder threshold, used only for the low-stock flag
    min_stock_level = db.Column(db.Integer, nullable=False, default=5)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id!r} sku={self.sku!r} name={self.name!r}>"

    @property
    def is_low_stock(self) -> bool:
        return (self.stock_level or 0) <= (self.min_stock_level or 0)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "category": self.category,
            "sku": self.sku,
            "stock_level": self.stock_level,
            "unit_cost": self.unit_cost,
            "retail_price": self.retail_price,
            "bank_settled_amount": self.bank_settled_amount,
            "min_stock_level": self.min_stock_level,
            "is_low_stock": self.is_low_stock,
            "created_at": to_utc_z(self.created_at),
        }
