# backend/storepos/routes/users.py
"""Staff account routes. Roles are informational; no auth is enforced."""

from flask import Blueprint, request, current_app

from ..errors import error_body
from ..schemas import CreateUserInput
from ..services import users_service
from ..validation import ValidationError, ConflictError

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.post("")
def create_user_route():
    payload = request.get_json(silent=True)

    try:
        data = CreateUserInput.from_payload(payload)
        user = users_service.create_user(data)
    except ValidationError as e:
        return error_body(e), 400
    except ConflictError as e:
        return error_body(e), 409
    except Exception:
        current_app.logger.exception("Failed to create user")
        return {"error": "Internal server error"}, 500

    return {"user": user.to_dict()}, 201


@users_bp.get("")
def list_users_route():
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    users = users_service.list_users(include_inactive=include_inactive)
    return {"items": [u.to_dict() for u in users], "count": len(users)}
