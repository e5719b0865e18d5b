# backend/storepos/routes/inventory.py
"""
Stock movement routes.

POST quantities are caller-facing: a positive amount for "in" and "out",
the absolute target level for "adjustment". Returned movements carry the
signed delta actually applied plus balance_after.
"""
from flask import Blueprint, request, current_app

from ..errors import PosError, error_body, http_status_for
from ..schemas import CreateStockMovementInput
from ..services import inventory_service
from ..validation import ValidationError, check_int_range

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/movements")
def create_movement_route():
    payload = request.get_json(silent=True)

    try:
        data = CreateStockMovementInput.from_payload(payload)
        movement = inventory_service.create_stock_movement(data)
    except (PosError, ValidationError) as e:
        return error_body(e), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to create stock movement")
        return {"error": "Internal server error"}, 500

    return {
        "movement": movement.to_dict(),
        "current_stock": movement.balance_after,
    }, 201


@inventory_bp.get("/movements")
def list_movements_route():
    product_id = request.args.get("product_id", type=int)
    limit = request.args.get("limit", type=int)
    try:
        if product_id is not None:
            check_int_range(product_id, "product_id")
    except ValidationError as e:
        return error_body(e), 400
    if limit is not None:
        limit = max(1, min(limit, 500))
    movements = inventory_service.list_stock_movements(product_id=product_id, limit=limit)
    return {"items": [m.to_dict() for m in movements], "count": len(movements)}


@inventory_bp.get("/<int(max=2147483647):product_id>/stock")
def current_stock_route(product_id: int):
    try:
        stock = inventory_service.get_current_stock(product_id)
    except PosError as e:
        return error_body(e), http_status_for(e)
    return {"product_id": product_id, "current_stock": stock}
