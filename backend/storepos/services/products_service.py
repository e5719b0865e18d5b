# backend/storepos/services/products_service.py
"""
Products Service

Catalog reads/writes around the inventory core. Stock is never patched
here: creation seeds it through an "in" movement and every later change
goes through inventory_service.
"""
from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import NotFoundError
from ..models import Product, Category
from ..schemas import CreateProductInput, UpdateProductInput, SearchProductsInput
from ..time_utils import utcnow
from ..validation import ConflictError
from .concurrency import UnitOfWork
from .inventory_service import apply_movement, require_user


def _require_category(session, category_id: int) -> Category:
    category = session.query(Category).filter_by(id=category_id).first()
    if category is None:
        raise NotFoundError(
            f"Category with id {category_id} does not exist",
            details={"category_id": category_id},
        )
    return category


def _ensure_unique(session, *, sku: str | None = None, barcode: str | None = None, exclude_id: int | None = None) -> None:
    if sku is not None:
        q = session.query(Product).filter(Product.sku == sku)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise ConflictError(f"SKU '{sku}' already exists.")
    if barcode is not None:
        q = session.query(Product).filter(Product.barcode == barcode)
        if exclude_id is not None:
            q = q.filter(Product.id != exclude_id)
        if q.first():
            raise ConflictError(f"Barcode '{barcode}' already exists.")


def get_product(product_id: int) -> Product:
    product = db.session.query(Product).filter_by(id=product_id).first()
    if product is None:
        raise NotFoundError(
            f"Product with id {product_id} not found",
            details={"product_id": product_id},
        )
    return product


def create_product(data: CreateProductInput) -> Product:
    """
    Create a product with its opening stock.

    A positive initial_stock is recorded as one "in" movement attributed to
    data.created_by, in the same unit of work as the product row; zero
    initial stock writes no movement.
    """
    with UnitOfWork() as uow:
        session = uow.session
        _require_category(session, data.category_id)
        require_user(session, data.created_by)
        _ensure_unique(session, sku=data.sku, barcode=data.barcode)

        product = Product(
            name=data.name,
            sku=data.sku,
            barcode=data.barcode,
            category_id=data.category_id,
            selling_price=data.selling_price,
            cost_price=data.cost_price,
            current_stock=0,
            min_stock_level=data.min_stock_level,
            is_active=True,
        )
        session.add(product)
        try:
            uow.flush()
        except IntegrityError as exc:
            raise ConflictError("Product SKU or barcode already exists.") from exc

        if data.initial_stock > 0:
            apply_movement(
                uow,
                product_id=product.id,
                movement_type="in",
                quantity=data.initial_stock,
                actor_id=data.created_by,
                notes="Initial stock",
            )

        uow.commit()
        return product


def update_product(data: UpdateProductInput) -> Product:
    """Apply a partial catalog update. Bumps updated_at."""
    with UnitOfWork() as uow:
        session = uow.session
        product = session.query(Product).filter_by(id=data.product_id).first()
        if product is None:
            raise NotFoundError(
                f"Product with id {data.product_id} not found",
                details={"product_id": data.product_id},
            )

        changes = data.changes
        if "category_id" in changes:
            _require_category(session, changes["category_id"])
        _ensure_unique(
            session,
            sku=changes.get("sku") if changes.get("sku") != product.sku else None,
            barcode=changes.get("barcode") if changes.get("barcode") != product.barcode else None,
            exclude_id=product.id,
        )

        for key, value in changes.items():
            setattr(product, key, value)
        product.updated_at = utcnow()

        try:
            uow.commit()
        except IntegrityError as exc:
            raise ConflictError("Product SKU or barcode already exists.") from exc
        return product


def deactivate_product(product_id: int) -> Product:
    """Soft-delete only: preserve ids and historical references."""
    with UnitOfWork() as uow:
        product = uow.session.query(Product).filter_by(id=product_id).first()
        if product is None:
            raise NotFoundError(
                f"Product with id {product_id} not found",
                details={"product_id": product_id},
            )
        if product.is_active:
            product.is_active = False
            product.updated_at = utcnow()
        uow.commit()
        return product


def list_products(page: int | None = None, per_page: int | None = None) -> dict:
    """
    Active products with optional pagination.

    Args:
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = (
        db.session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
    )

    # If no pagination requested, return all items
    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = max(1, min(per_page or 20, 100))
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def search_products(data: SearchProductsInput) -> list[Product]:
    """
    Case-insensitive substring match over name, SKU and barcode.

    Only active products are returned. An empty query matches every
    active product (still bounded by limit).
    """
    q = db.session.query(Product).filter(Product.is_active.is_(True))

    if data.query:
        pattern = f"%{data.query}%"
        q = q.filter(or_(
            Product.name.ilike(pattern),
            Product.sku.ilike(pattern),
            Product.barcode.ilike(pattern),
        ))

    if data.category_id is not None:
        q = q.filter(Product.category_id == data.category_id)

    return q.order_by(Product.name.asc(), Product.id.asc()).limit(data.limit).all()


def list_low_stock_products() -> list[Product]:
    """Products at or below their reorder threshold."""
    return (
        db.session.query(Product)
        .filter(Product.current_stock <= Product.min_stock_level)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )
