# Overview: Inventory ledger and stock movement engine.

# backend/storepos/services/inventory_service.py

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..errors import NotFoundError, InsufficientStockError
from ..models import Product, StockMovement, User
from ..schemas import CreateStockMovementInput
from ..time_utils import utcnow
from ..validation import MAX_INT, ValidationError
from .concurrency import UnitOfWork, lock_for_update, run_with_retry
"""
StorePOS Inventory Invariants (authoritative)

Stock model:
- Product.current_stock is the cached stock level; StockMovement rows are the
  append-only audit trail that justifies it.
- Every movement stores the signed delta it applied, so for every product
  current_stock == SUM(stock_movements.quantity).
- balance_after on each movement is the level right after it was applied.

Transition rules (S = current stock, q = caller quantity):
- in:         S + q     q > 0
- out:        S - q     q > 0, q <= S (q == S allowed, yields 0)
- adjustment: q         q >= 0 (absolute target, stored delta = q - S)

Locking:
- Stock is only written by apply_movement(), which reads the product row
  with SELECT ... FOR UPDATE inside the caller's unit of work.
- Validation failures raise before any row is written.
"""


def _load_product(session, product_id: int, *, lock: bool = False) -> Product:
    query = session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError(
            f"Product with id {product_id} not found",
            details={"product_id": product_id},
        )
    return product


def require_user(session, user_id: int, *, label: str = "User") -> User:
    user = session.query(User).filter_by(id=user_id).first()
    if user is None:
        raise NotFoundError(
            f"{label} with id {user_id} not found",
            details={f"{label.lower()}_id": user_id},
        )
    return user


def get_current_stock(product_id: int) -> int:
    return _load_product(db.session, product_id).current_stock


def compute_new_stock(product: Product, movement_type: str, quantity: int) -> int:
    """Apply the transition table; raises before anything is mutated."""
    current = product.current_stock

    if movement_type == "in":
        if current + quantity > MAX_INT:
            raise ValidationError(
                f"Stock for product '{product.name}' (id {product.id}) cannot exceed {MAX_INT}"
            )
        return current + quantity

    if movement_type == "out":
        if quantity > current:
            raise InsufficientStockError(
                f"Insufficient stock for product '{product.name}' (id {product.id}): "
                f"available {current}, requested {quantity}",
                details={
                    "product_id": product.id,
                    "available": current,
                    "requested": quantity,
                },
            )
        return current - quantity

    if movement_type == "adjustment":
        return quantity

    raise ValueError(f"unknown movement_type {movement_type!r}")


def apply_movement(
    uow: UnitOfWork,
    *,
    product_id: int,
    movement_type: str,
    quantity: int,
    actor_id: int,
    notes: str | None = None,
    reference_id: int | None = None,
) -> StockMovement:
    """
    Lock the product row, apply one movement and append its ledger row.

    Flushes but never commits: the caller owns the unit of work. quantity is
    the caller-facing amount (positive for in/out, target for adjustment);
    the stored StockMovement.quantity is the signed delta.
    """
    product = _load_product(uow.session, product_id, lock=True)

    new_stock = compute_new_stock(product, movement_type, quantity)
    delta = new_stock - product.current_stock

    movement = StockMovement(
        product_id=product.id,
        movement_type=movement_type,
        quantity=delta,
        balance_after=new_stock,
        reference_id=reference_id,
        notes=notes,
        created_by=actor_id,
        created_at=utcnow(),
    )

    product.current_stock = new_stock
    product.updated_at = utcnow()

    uow.session.add(movement)
    uow.flush()
    return movement


def create_stock_movement(data: CreateStockMovementInput) -> StockMovement:
    """
    Record a manual stock movement (receiving, write-off, stock count).

    All-or-nothing: unknown product or actor, or an "out" larger than the
    current stock, leaves both the ledger and the product untouched.
    """
    def _op():
        with UnitOfWork() as uow:
            require_user(uow.session, data.created_by)
            movement = apply_movement(
                uow,
                product_id=data.product_id,
                movement_type=data.movement_type,
                quantity=data.quantity,
                actor_id=data.created_by,
                notes=data.notes,
            )
            uow.commit()
            return movement

    movement = run_with_retry(_op)
    current_app.logger.info(
        "Stock movement %s on product %s: %+d (balance %s)",
        movement.movement_type,
        movement.product_id,
        movement.quantity,
        movement.balance_after,
    )
    return movement


def list_stock_movements(product_id: int | None = None, limit: int | None = None) -> list[StockMovement]:
    """
    Movement history, most recent first.

    Insertion order (id) breaks ties between rows sharing a timestamp.
    """
    q = db.session.query(StockMovement)
    if product_id is not None:
        q = q.filter(StockMovement.product_id == product_id)
    q = q.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    if limit is not None:
        q = q.limit(limit)
    return q.all()
