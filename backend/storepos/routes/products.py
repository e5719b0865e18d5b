# backend/storepos/routes/products.py
"""
Product catalog routes.

Stock levels are read-only here; they change through
/api/inventory/movements and /api/sales.
"""
from flask import Blueprint, request, current_app

from ..errors import PosError, error_body, http_status_for
from ..schemas import CreateProductInput, UpdateProductInput, SearchProductsInput
from ..services import products_service
from ..validation import ValidationError, ConflictError, check_int_range

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
def list_products():
    """
    List active products with optional pagination.

    Query params:
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    try:
        if page is not None:
            check_int_range(page, "page")
    except ValidationError as e:
        return error_body(e), 400
    return products_service.list_products(page=page, per_page=per_page)


@products_bp.get("/search")
def search_products_route():
    try:
        data = SearchProductsInput.from_args(request.args)
    except ValidationError as e:
        return error_body(e), 400

    products = products_service.search_products(data)
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/low-stock")
def low_stock_route():
    products = products_service.list_low_stock_products()
    return {"items": [p.to_dict() for p in products], "count": len(products)}


@products_bp.get("/<int(max=2147483647):product_id>")
def get_product_route(product_id: int):
    try:
        product = products_service.get_product(product_id)
    except PosError as e:
        return error_body(e), http_status_for(e)
    return {"product": product.to_dict()}


@products_bp.post("")
def create_product_route():
    """
    Create a product. A positive initial_stock is booked as an "in"
    movement attributed to created_by.
    """
    payload = request.get_json(silent=True)

    try:
        data = CreateProductInput.from_payload(payload)
        product = products_service.create_product(data)
    except (PosError, ValidationError, ConflictError) as e:
        return error_body(e), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return {"product": product.to_dict()}, 201


@products_bp.put("/<int(max=2147483647):product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True)

    try:
        data = UpdateProductInput.from_payload(product_id, payload)
        product = products_service.update_product(data)
    except (PosError, ValidationError, ConflictError) as e:
        return error_body(e), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return {"product": product.to_dict()}, 200


@products_bp.delete("/<int(max=2147483647):product_id>")
def delete_product_route(product_id: int):
    """Soft-delete: the product is deactivated, never removed."""
    try:
        product = products_service.deactivate_product(product_id)
    except PosError as e:
        return error_body(e), http_status_for(e)

    return {"ok": True, "product": product.to_dict()}, 200
