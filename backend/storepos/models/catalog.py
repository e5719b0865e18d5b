from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


def money_to_json(value) -> float | None:
    """Decimal -> JSON number. Values are already cent-quantized."""
    if value is None:
        return None
    return float(value)


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Product(db.Model):
    """
    Product master data plus the cached stock level.

    STOCK INVARIANT:
    current_stock always equals the sum of StockMovement.quantity for the
    product (movements store the signed delta actually applied). It is only
    ever written through inventory_service.apply_movement, under a row lock.

    version_id makes concurrent writers that slipped past the row lock
    (SQLite ignores FOR UPDATE) fail with StaleDataError instead of
    overwriting each other.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("current_stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("min_stock_level >= 0", name="ck_products_min_stock_non_negative"),
        db.CheckConstraint("selling_price > 0", name="ck_products_selling_price_positive"),
        db.CheckConstraint("cost_price > 0", name="ck_products_cost_price_positive"),
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    sku = db.Column(db.String(64), nullable=False, unique=True)
    # Optional, but unique when present (NULLs do not collide)
    barcode = db.Column(db.String(64), nullable=True, unique=True)

    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=False, index=True)

    selling_price = db.Column(db.Numeric(10, 2, asdecimal=True), nullable=False)
    cost_price = db.Column(db.Numeric(10, 2, asdecimal=True), nullable=False)

    current_stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} stock={self.current_stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "barcode": self.barcode,
            "category_id": self.category_id,
            "selling_price": money_to_json(self.selling_price),
            "cost_price": money_to_json(self.cost_price),
            "current_stock": self.current_stock,
            "min_stock_level": self.min_stock_level,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
