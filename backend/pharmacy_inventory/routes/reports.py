# Overview: Flask API routes for dashboard reports over the catalog.

from flask import Blueprint, current_app, request

from ..extensions import get_inventory
from ..services import monitor_service
from ..services.query_service import paginate
from .errors import INVENTORY_ERRORS, error_response

reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/low-stock")
def low_stock_route():
    """Products at or below their reorder level, catalog order, paginated."""
    page = request.args.get("page", default=1, type=int)
    per_page = request.args.get("per_page", type=int)
    per_page = min(per_page or current_app.config["DEFAULT_PAGE_SIZE"], current_app.config["MAX_PAGE_SIZE"])

    try:
        products = monitor_service.low_stock(get_inventory().catalog.list())
        return paginate(products, page=page, page_size=per_page).to_dict()
    except INVENTORY_ERRORS as e:
        return error_response(e)


@reports_bp.get("/stock-by-category")
def stock_by_category_route():
    try:
        totals = monitor_service.aggregate_by_category(get_inventory().catalog.list())
    except INVENTORY_ERRORS as e:
        return error_response(e)

    return {"items": [{"category": k, "stock": v} for k, v in totals.items()]}


@reports_bp.get("/summary")
def summary_route():
    try:
        stats = monitor_service.inventory_stats(get_inventory().catalog.list())
    except INVENTORY_ERRORS as e:
        return error_response(e)

    stats["inventory_value"] = str(stats["inventory_value"])
    return stats
