# backend/storepos/routes/sales.py
"""Checkout and sales history routes"""

from flask import Blueprint, request, current_app

from ..errors import PosError, error_body, http_status_for
from ..schemas import CreateSaleInput
from ..services import sales_service
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
def create_sale_route():
    """
    Complete a checkout in one atomic step.

    Body: cashier_id, payment_method, payment_received,
    items: [{product_id, quantity, unit_price}, ...]
    """
    payload = request.get_json(silent=True)

    try:
        data = CreateSaleInput.from_payload(payload)
        sale = sales_service.create_sale(
            data,
            allow_underpayment=current_app.config["POS_ALLOW_UNDERPAYMENT"],
            prefix=current_app.config["POS_TRANSACTION_PREFIX"],
        )
    except (PosError, ValidationError) as e:
        return error_body(e), http_status_for(e)
    except Exception:
        current_app.logger.exception("Failed to create sale")
        return {"error": "Internal server error"}, 500

    return {"sale": sale.to_dict(include_items=True)}, 201


@sales_bp.get("")
def list_sales_route():
    """
    Sales history, newest first.

    Query params:
    - start_date / end_date: ISO-8601 date or datetime (UTC if no offset),
      filtering created_at to [start_date, end_date)
    - limit: int (default POS_SALES_LIST_LIMIT, max 500)
    """
    try:
        start = parse_iso_datetime(request.args.get("start_date"))
        end = parse_iso_datetime(request.args.get("end_date"))
    except ValueError:
        return {"error": "start_date and end_date must be ISO-8601 dates or datetimes"}, 400
    if start is not None and end is not None and start > end:
        return {"error": "start_date must not be after end_date"}, 400

    limit = request.args.get("limit", type=int) or current_app.config["POS_SALES_LIST_LIMIT"]
    sales = sales_service.list_sales(limit=max(1, min(limit, 500)), start=start, end=end)
    return {"items": [s.to_dict() for s in sales], "count": len(sales)}


@sales_bp.get("/<int(max=2147483647):sale_id>")
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except PosError as e:
        return error_body(e), http_status_for(e)
    return {"sale": sale.to_dict(include_items=True)}
