"""
Typed inputs for every write operation.

Each dataclass validates its own ranges in __post_init__, so a service
never receives a non-positive quantity or an unknown payment method no
matter how it was called. from_payload() is the JSON entry point: it
checks required/unknown keys and coerces raw values strictly before
construction.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from .models import MOVEMENT_TYPES, PAYMENT_METHODS, USER_ROLES
from .validation import (
    ValidationError,
    check_int_range,
    coerce_int,
    coerce_money,
    coerce_optional_text,
    coerce_text,
    reject_unknown_fields,
    require_fields,
)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MAX_SEARCH_LIMIT = 100


def _optional_int(value: Any, name: str) -> int | None:
    if value is None:
        return None
    return coerce_int(value, name)


@dataclass(frozen=True)
class SaleLineInput:
    product_id: int
    quantity: int
    unit_price: Decimal

    def __post_init__(self):
        check_int_range(self.quantity, "quantity")
        if self.quantity <= 0:
            raise ValidationError(f"quantity must be > 0 (product {self.product_id})")
        if self.unit_price <= 0:
            raise ValidationError(f"unit_price must be > 0 (product {self.product_id})")

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def from_payload(cls, payload: Any, position: int) -> "SaleLineInput":
        prefix = f"items[{position}]"
        if not isinstance(payload, dict):
            raise ValidationError(f"{prefix} must be an object")
        reject_unknown_fields(payload, {"product_id", "quantity", "unit_price"})
        for key in ("product_id", "quantity", "unit_price"):
            if key not in payload:
                raise ValidationError(f"{prefix}.{key} is required")
        return cls(
            product_id=coerce_int(payload["product_id"], f"{prefix}.product_id"),
            quantity=coerce_int(payload["quantity"], f"{prefix}.quantity"),
            unit_price=coerce_money(payload["unit_price"], f"{prefix}.unit_price"),
        )


@dataclass(frozen=True)
class CreateSaleInput:
    cashier_id: int
    payment_method: str
    payment_received: Decimal
    items: tuple[SaleLineInput, ...]

    def __post_init__(self):
        if self.payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}"
            )
        if self.payment_received <= 0:
            raise ValidationError("payment_received must be > 0")
        if not self.items:
            raise ValidationError("Sale must contain at least one item")

    @classmethod
    def from_payload(cls, payload: Any) -> "CreateSaleInput":
        fields_ = {"cashier_id", "payment_method", "payment_received", "items"}
        payload = require_fields(payload, fields_)
        reject_unknown_fields(payload, fields_)

        raw_items = payload["items"]
        if not isinstance(raw_items, list):
            raise ValidationError("items must be a list")

        return cls(
            cashier_id=coerce_int(payload["cashier_id"], "cashier_id"),
            payment_method=coerce_text(payload["payment_method"], "payment_method"),
            payment_received=coerce_money(payload["payment_received"], "payment_received"),
            items=tuple(SaleLineInput.from_payload(raw, i) for i, raw in enumerate(raw_items)),
        )


@dataclass(frozen=True)
class CreateStockMovementInput:
    """
    quantity is a positive amount for "in"/"out" and the absolute target
    level for "adjustment".
    """
    product_id: int
    movement_type: str
    quantity: int
    created_by: int
    notes: str | None = None

    def __post_init__(self):
        if self.movement_type not in MOVEMENT_TYPES:
            raise ValidationError(
                f"movement_type must be one of: {', '.join(MOVEMENT_TYPES)}"
            )
        check_int_range(self.quantity, "quantity")
        if self.movement_type == "adjustment":
            if self.quantity < 0:
                raise ValidationError("quantity must be >= 0 for adjustment")
        elif self.quantity <= 0:
            raise ValidationError(f"quantity must be > 0 for {self.movement_type}")

    @classmethod
    def from_payload(cls, payload: Any) -> "CreateStockMovementInput":
        required = {"product_id", "movement_type", "quantity", "created_by"}
        payload = require_fields(payload, required)
        reject_unknown_fields(payload, required | {"notes"})
        return cls(
            product_id=coerce_int(payload["product_id"], "product_id"),
            movement_type=coerce_text(payload["movement_type"], "movement_type"),
            quantity=coerce_int(payload["quantity"], "quantity"),
            created_by=coerce_int(payload["created_by"], "created_by"),
            notes=coerce_optional_text(payload.get("notes"), "notes"),
        )


@dataclass(frozen=True)
class CreateProductInput:
    name: str
    sku: str
    category_id: int
    selling_price: Decimal
    cost_price: Decimal
    initial_stock: int
    created_by: int
    barcode: str | None = None
    min_stock_level: int = 0

    def __post_init__(self):
        if self.selling_price <= 0:
            raise ValidationError("selling_price must be > 0")
        if self.cost_price <= 0:
            raise ValidationError("cost_price must be > 0")
        check_int_range(self.initial_stock, "initial_stock")
        check_int_range(self.min_stock_level, "min_stock_level")
        if self.initial_stock < 0:
            raise ValidationError("initial_stock must be >= 0")
        if self.min_stock_level < 0:
            raise ValidationError("min_stock_level must be >= 0")

    @classmethod
    def from_payload(cls, payload: Any) -> "CreateProductInput":
        required = {
            "name", "sku", "category_id", "selling_price",
            "cost_price", "initial_stock", "created_by",
        }
        payload = require_fields(payload, required)
        reject_unknown_fields(payload, required | {"barcode", "min_stock_level"})

        min_stock = payload.get("min_stock_level")
        return cls(
            name=coerce_text(payload["name"], "name", max_length=255),
            sku=coerce_text(payload["sku"], "sku", max_length=64),
            barcode=coerce_optional_text(payload.get("barcode"), "barcode", max_length=64),
            category_id=coerce_int(payload["category_id"], "category_id"),
            selling_price=coerce_money(payload["selling_price"], "selling_price"),
            cost_price=coerce_money(payload["cost_price"], "cost_price"),
            initial_stock=coerce_int(payload["initial_stock"], "initial_stock"),
            min_stock_level=0 if min_stock is None else coerce_int(min_stock, "min_stock_level"),
            created_by=coerce_int(payload["created_by"], "created_by"),
        )


PRODUCT_MUTABLE_FIELDS = frozenset({
    "name", "sku", "barcode", "category_id",
    "selling_price", "cost_price", "min_stock_level",
})


@dataclass(frozen=True)
class UpdateProductInput:
    """
    Partial update. Only keys present in ``changes`` are applied; barcode
    may be explicitly set to None. Stock is never patched here.
    """
    product_id: int
    changes: dict = field(default_factory=dict)

    def __post_init__(self):
        unknown = set(self.changes) - PRODUCT_MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Field not allowed: {sorted(unknown)[0]}")
        for key, value in self.changes.items():
            if value is None and key != "barcode":
                raise ValidationError(f"{key} cannot be null")
        for key in ("selling_price", "cost_price"):
            if key in self.changes and self.changes[key] <= 0:
                raise ValidationError(f"{key} must be > 0")
        if "min_stock_level" in self.changes:
            check_int_range(self.changes["min_stock_level"], "min_stock_level")
            if self.changes["min_stock_level"] < 0:
                raise ValidationError("min_stock_level must be >= 0")

    @classmethod
    def from_payload(cls, product_id: int, payload: Any) -> "UpdateProductInput":
        payload = require_fields(payload, set())
        reject_unknown_fields(payload, set(PRODUCT_MUTABLE_FIELDS))

        changes: dict = {}
        for key, raw in payload.items():
            if raw is None:
                changes[key] = None
            elif key in ("selling_price", "cost_price"):
                changes[key] = coerce_money(raw, key)
            elif key in ("category_id", "min_stock_level"):
                changes[key] = coerce_int(raw, key)
            elif key == "barcode":
                changes[key] = coerce_optional_text(raw, key, max_length=64)
            else:
                changes[key] = coerce_text(raw, key, max_length=255 if key == "name" else 64)
        return cls(product_id=product_id, changes=changes)


@dataclass(frozen=True)
class SearchProductsInput:
    query: str = ""
    category_id: int | None = None
    limit: int = 10

    def __post_init__(self):
        if self.limit <= 0:
            raise ValidationError("limit must be > 0")
        if self.limit > MAX_SEARCH_LIMIT:
            raise ValidationError(f"limit cannot exceed {MAX_SEARCH_LIMIT}")

    @classmethod
    def from_args(cls, args) -> "SearchProductsInput":
        limit = args.get("limit")
        return cls(
            query=(args.get("query") or "").strip(),
            category_id=_optional_int(args.get("category_id"), "category_id"),
            limit=10 if limit is None else coerce_int(limit, "limit"),
        )


@dataclass(frozen=True)
class CreateCategoryInput:
    name: str
    description: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "CreateCategoryInput":
        payload = require_fields(payload, {"name"})
        reject_unknown_fields(payload, {"name", "description"})
        return cls(
            name=coerce_text(payload["name"], "name", max_length=255),
            description=coerce_optional_text(payload.get("description"), "description"),
        )


@dataclass(frozen=True)
class CreateUserInput:
    username: str
    email: str
    password: str
    full_name: str
    role: str

    def __post_init__(self):
        if len(self.username) < 3:
            raise ValidationError("username must be at least 3 characters")
        if not EMAIL_RE.match(self.email):
            raise ValidationError("email must be a valid email address")
        if self.role not in USER_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")

    def __repr__(self) -> str:
        return f"CreateUserInput(username={self.username!r}, email={self.email!r}, role={self.role!r})"

    @classmethod
    def from_payload(cls, payload: Any) -> "CreateUserInput":
        required = {"username", "email", "password", "full_name", "role"}
        payload = require_fields(payload, required)
        reject_unknown_fields(payload, required)
        password = payload["password"]
        if not isinstance(password, str):
            raise ValidationError("password must be a string")
        return cls(
            username=coerce_text(payload["username"], "username", max_length=64),
            email=coerce_text(payload["email"], "email", max_length=255).lower(),
            password=password,
            full_name=coerce_text(payload["full_name"], "full_name", max_length=255),
            role=coerce_text(payload["role"], "role"),
        )
