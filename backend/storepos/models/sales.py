from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from .catalog import money_to_json

PAYMENT_METHODS = ("cash", "card", "digital")


class Sale(db.Model):
    """
    Completed checkout. Immutable once committed.

    Money columns are Numeric(10, 2) and come back as Decimal; to_dict()
    turns them into JSON numbers at the boundary.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint(
            "payment_method IN ('cash', 'card', 'digital')",
            name="ck_sales_payment_method_valid",
        ),
        db.CheckConstraint("change_given >= 0", name="ck_sales_change_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable unique id, e.g. "TXN-20260101120000123456-9f86d081"
    transaction_id = db.Column(db.String(64), nullable=False, unique=True)

    cashier_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    total_amount = db.Column(db.Numeric(10, 2, asdecimal=True), nullable=False)
    payment_method = db.Column(db.String(16), nullable=False)
    payment_received = db.Column(db.Numeric(10, 2, asdecimal=True), nullable=False)
    change_given = db.Column(db.Numeric(10, 2, asdecimal=True), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )

    def __repr__(self) -> str:
        return f"<Sale id={self.id} transaction_id={self.transaction_id!r} total={self.total_amount}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "transaction_id": self.transaction_id,
            "cashier_id": self.cashier_id,
            "total_amount": money_to_json(self.total_amount),
            "payment_method": self.payment_method,
            "payment_received": money_to_json(self.payment_received),
            "change_given": money_to_json(self.change_given),
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """One product line of a sale; unit_price is captured at checkout time."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(10, 2, asdecimal=True), nullable=False)
    total_price = db.Column(db.Numeric(10, 2, asdecimal=True), nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": money_to_json(self.unit_price),
            "total_price": money_to_json(self.total_price),
        }
