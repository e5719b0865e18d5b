from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

MOVEMENT_TYPES = ("in", "out", "adjustment")


class StockMovement(db.Model):
    """
    Append-only audit trail for Product.current_stock.

    quantity is the signed delta applied to stock: positive for "in",
    negative for "out", target minus previous level for "adjustment".
    balance_after records the resulting level, so an adjustment's absolute
    target is never lost.

    reference_id points at the originating sale when the movement was
    driven by a checkout.
    """
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.CheckConstraint(
            "movement_type IN ('in', 'out', 'adjustment')",
            name="ck_stock_movements_type_valid",
        ),
        db.CheckConstraint("balance_after >= 0", name="ck_stock_movements_balance_non_negative"),
        db.Index("ix_stock_movements_product_created", "product_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    movement_type = db.Column(db.String(16), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    balance_after = db.Column(db.Integer, nullable=False)

    reference_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("stock_movements", lazy=True))

    def __repr__(self) -> str:
        return (
            f"<StockMovement id={self.id} product_id={self.product_id} "
            f"type={self.movement_type} quantity={self.quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "movement_type": self.movement_type,
            "quantity": self.quantity,
            "balance_after": self.balance_after,
            "reference_id": self.reference_id,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
