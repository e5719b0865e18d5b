# backend/storepos/routes/categories.py

from flask import Blueprint, request, current_app

from ..errors import error_body
from ..schemas import CreateCategoryInput
from ..services import categories_service
from ..validation import ValidationError

categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.post("")
def create_category_route():
    payload = request.get_json(silent=True)

    try:
        data = CreateCategoryInput.from_payload(payload)
        category = categories_service.create_category(data)
    except ValidationError as e:
        return error_body(e), 400
    except Exception:
        current_app.logger.exception("Failed to create category")
        return {"error": "Internal server error"}, 500

    return {"category": category.to_dict()}, 201


@categories_bp.get("")
def list_categories_route():
    categories = categories_service.list_categories()
    return {"items": [c.to_dict() for c in categories], "count": len(categories)}
