from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


# Owner-scoped tables carry this column; the gateway refuses to run without it
OWNERSHIP_COLUMN = "user_id"


class Order(db.Model):
    """
    One sales transaction.

    OWNERSHIP: every row belongs to exactly one identity (user_id). Rows only
    change owner through the share operation, which clones them with new ids.

    SNAPSHOT FIELDS: product_name, category, listing_price, settled_amount and
    profit are copied from the inventory item when the order is recorded.
    product_id is deliberately not a foreign key: deleting the item leaves the
    order (and its reporting) intact.

    STORED PROFIT: profit = settled_amount - unit cost at creation time. It is
    NOT kept in sync when settled_amount changes later; see
    orders_service.recompute_profit.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_user_date", "user_id", "date"),
    )

    id = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(db.String(36), nullable=False, index=True)

    # ISO YYYY-MM-DD, kept as text so month bucketing is a prefix
    date = db.Column(db.String(10), nullable=False)

    product_id = db.Column(db.String(64), nullable=True)
    product_name = db.Column(db.String(255), nullable=False, default="")
    category = db.Column(db.String(120), nullable=False, default="")

    listing_price = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    settled_amount = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    profit = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)

    status = db.Column(db.String(64), nullable=False)

    # Return sub-fields, meaningful only while status is the returned label
    return_type = db.Column(db.String(16), nullable=True)
    loss_amount = db.Column(db.Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    claim_status = db.Column(db.String(16), nullable=False, default="None")
    received_status = db.Column(db.String(16), nullable=False, default="Pending")
    bank_settled = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Order id={self.id!r} status={self.status!r} user_id={self.user_id!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "category": self.category,
            "listing_price": self.listing_price,
            "settled_amount": self.settled_amount,
            "profit": self.profit,
            "status": self.status,
            "return_type": self.return_type,
            "loss_amount": self.loss_amount,
            "claim_status": self.claim_status,
            "received_status": self.received_status,
            "bank_settled": self.bank_settled,
            "created_at": to_utc_z(self.created_at),
        }
