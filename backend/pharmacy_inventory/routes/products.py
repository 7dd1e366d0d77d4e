# Overview: Flask API routes for the product catalog; parses input and returns JSON responses.

# backend/pharmacy_inventory/routes/products.py
"""
Product catalog routes.

Stock is read-only here: it changes only through /api/transactions.
PUT replaces every mutable field; a payload that changes stock is rejected.
"""
from flask import Blueprint, current_app, request

from ..extensions import get_inventory
from ..services.query_service import paginate
from .errors import INVENTORY_ERRORS, error_response

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _page_args():
    page = request.args.get("page", type=int)
    per_page = request.args.get("per_page", type=int)
    per_page = min(per_page or current_app.config["DEFAULT_PAGE_SIZE"], current_app.config["MAX_PAGE_SIZE"])
    return page, per_page


@products_bp.get("")
def list_products_route():
    """
    List products with optional search and pagination.

    Query params:
    - q: str (optional) - substring of name or description
    - category: str (optional) - exact category
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 10, max 100)
    """
    term = request.args.get("q", "")
    category = request.args.get("category", "")
    page, per_page = _page_args()

    try:
        products = get_inventory().catalog.search(term, category)
        if page is None:
            return {"items": [p.to_dict() for p in products], "count": len(products)}
        return paginate(products, page=page, page_size=per_page).to_dict()
    except INVENTORY_ERRORS as e:
        return error_response(e)


@products_bp.get("/categories")
def list_categories_route():
    try:
        return {"items": get_inventory().catalog.categories()}
    except INVENTORY_ERRORS as e:
        return error_response(e)


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    try:
        return get_inventory().catalog.get_by_id(product_id).to_dict()
    except INVENTORY_ERRORS as e:
        return error_response(e)


@products_bp.post("")
def create_product_route():
    """Create a product; stock in the payload is the opening stock."""
    payload = request.get_json(silent=True) or {}

    try:
        created = get_inventory().catalog.create(payload)
    except INVENTORY_ERRORS as e:
        return error_response(e)

    return created.to_dict(), 201


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        updated = get_inventory().catalog.update(product_id, payload)
    except INVENTORY_ERRORS as e:
        return error_response(e)

    return updated.to_dict()


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    """
    Delete a product.

    Transactions that reference it are kept as historical records.
    """
    try:
        removed = get_inventory().catalog.delete(product_id)
    except INVENTORY_ERRORS as e:
        return error_response(e)

    return {"deleted": removed.to_dict()}
