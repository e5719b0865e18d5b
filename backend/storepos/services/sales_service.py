"""
Sales Service - atomic checkout

One call to create_sale() is one unit of work: the sale header, every
sale item, every stock decrement and every "out" ledger row commit
together or not at all.
"""

from __future__ import annotations

import secrets
from datetime import datetime
from decimal import Decimal

from flask import current_app
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..errors import NotFoundError, InactiveEntityError, InsufficientStockError
from ..models import Sale, SaleItem, Product
from ..schemas import CreateSaleInput
from ..time_utils import compact_stamp, utcnow
from ..validation import MAX_MONEY, InsufficientPaymentError, ValidationError, quantize_money
from .concurrency import UnitOfWork, lock_for_update, run_with_retry
from .inventory_service import apply_movement, require_user

ZERO = Decimal("0.00")


def generate_transaction_id(prefix: str = "TXN") -> str:
    """
    TXN-<UTC timestamp to the microsecond>-<8 hex chars>.

    The random suffix keeps ids unique across concurrent checkouts that
    land on the same microsecond; the UNIQUE constraint is the backstop.
    """
    stamp = compact_stamp(utcnow())
    return f"{prefix}-{stamp}-{secrets.token_hex(4)}"


def compute_totals(
    data: CreateSaleInput, *, allow_underpayment: bool = False
) -> tuple[Decimal, Decimal]:
    """Return (total_amount, change_given) for a checkout request."""
    total = sum((line.line_total for line in data.items), ZERO)
    if total > MAX_MONEY:
        raise ValidationError(f"Sale total {total} cannot exceed {MAX_MONEY}")
    total = quantize_money(total)

    if data.payment_received < total and not allow_underpayment:
        raise InsufficientPaymentError(
            f"Payment received {data.payment_received} is less than total {total}"
        )

    change = quantize_money(max(ZERO, data.payment_received - total))
    return total, change


def _validate_lines(session, data: CreateSaleInput) -> dict[int, Product]:
    """
    Resolve and lock every product before anything is written.

    Repeated product ids are summed so two lines cannot each pass the
    stock check while jointly exceeding it. Rows are locked in ascending
    id order so overlapping carts always take their locks in the same order.
    """
    requested: dict[int, int] = {}
    for line in data.items:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    products: dict[int, Product] = {}
    for product_id in sorted(requested):
        qty = requested[product_id]
        product = lock_for_update(session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError(
                f"Product with id {product_id} not found",
                details={"product_id": product_id},
            )
        if not product.is_active:
            raise InactiveEntityError(
                f"Product '{product.name}' (id {product.id}) is not active",
                details={"product_id": product.id},
            )
        if qty > product.current_stock:
            raise InsufficientStockError(
                f"Insufficient stock for product '{product.name}' (id {product.id}): "
                f"available {product.current_stock}, requested {qty}",
                details={
                    "product_id": product.id,
                    "available": product.current_stock,
                    "requested": qty,
                },
            )
        products[product_id] = product

    return products


def create_sale(data: CreateSaleInput, *, allow_underpayment: bool = False, prefix: str = "TXN") -> Sale:
    """
    Process one checkout.

    Steps, all inside one UnitOfWork:
    1. cashier exists; each product exists, is active and has enough stock
    2. total and change computed in Decimal
    3. sale header persisted with a fresh transaction id
    4. per line: SaleItem with captured unit price, then an "out" movement
       referencing the sale (stored quantity is the negative of the sold
       quantity)
    Any failure rolls back every row written by this call.
    """
    total, change = compute_totals(data, allow_underpayment=allow_underpayment)

    def _op():
        with UnitOfWork() as uow:
            session = uow.session
            require_user(session, data.cashier_id, label="Cashier")
            _validate_lines(session, data)

            sale = Sale(
                transaction_id=generate_transaction_id(prefix),
                cashier_id=data.cashier_id,
                total_amount=total,
                payment_method=data.payment_method,
                payment_received=data.payment_received,
                change_given=change,
                created_at=utcnow(),
            )
            session.add(sale)
            uow.flush()

            for line in data.items:
                sale.items.append(SaleItem(
                    product_id=line.product_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    total_price=quantize_money(line.line_total),
                ))
                apply_movement(
                    uow,
                    product_id=line.product_id,
                    movement_type="out",
                    quantity=line.quantity,
                    actor_id=data.cashier_id,
                    notes=f"Sale transaction {sale.transaction_id}",
                    reference_id=sale.id,
                )

            uow.commit()
            return sale

    sale = run_with_retry(_op)
    current_app.logger.info(
        "Sale %s committed: %s line(s), total %s, change %s",
        sale.transaction_id,
        len(data.items),
        sale.total_amount,
        sale.change_given,
    )
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = (
        db.session.query(Sale)
        .options(selectinload(Sale.items))
        .filter(Sale.id == sale_id)
        .first()
    )
    if sale is None:
        raise NotFoundError(f"Sale with id {sale_id} not found", details={"sale_id": sale_id})
    return sale


def list_sales(
    limit: int = 50,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[Sale]:
    """
    Most recent sales first.

    start/end bound created_at as a half-open range [start, end) in naive
    UTC; either may be omitted.
    """
    q = db.session.query(Sale)
    if start is not None:
        q = q.filter(Sale.created_at >= start)
    if end is not None:
        q = q.filter(Sale.created_at < end)
    return (
        q.order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(limit)
        .all()
    )
