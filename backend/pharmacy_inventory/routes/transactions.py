# Overview: Flask API routes for ledger operations; parses input and returns JSON responses.

# backend/pharmacy_inventory/routes/transactions.py
"""
Inventory transaction routes.

Time semantics:
- Transaction dates are assigned server-side; a client-supplied date is ignored.
- dateFrom/dateTo filters accept ISO-8601 dates or datetimes and are inclusive.
"""
from flask import Blueprint, current_app, request

from ..extensions import get_inventory
from ..services.kv_store import PersistenceError
from ..services.ledger_service import PartialCommitError
from ..services.query_service import TransactionCriteria, transaction_history
from ..validation import ValidationError, coerce_int
from .errors import INVENTORY_ERRORS, error_response

transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.get("")
def list_transactions_route():
    """
    Filtered, newest-first, paginated transaction history.

    Query params (all optional, combined with AND):
    - id, productId, type (in|out|all), userId, dateFrom, dateTo
    - page (default 1; clamped to the last page), per_page (default 10, max 100)
    """
    page = request.args.get("page", default=1, type=int)
    per_page = request.args.get("per_page", type=int)
    per_page = min(per_page or current_app.config["DEFAULT_PAGE_SIZE"], current_app.config["MAX_PAGE_SIZE"])

    try:
        criteria = TransactionCriteria.from_args(request.args)
        result = transaction_history(
            get_inventory().ledger.list(),
            criteria,
            page=page,
            page_size=per_page,
        )
    except INVENTORY_ERRORS as e:
        return error_response(e)

    return result.to_dict()


@transactions_bp.get("/<int:transaction_id>")
def get_transaction_route(transaction_id: int):
    try:
        return get_inventory().ledger.get_by_id(transaction_id).to_dict()
    except INVENTORY_ERRORS as e:
        return error_response(e)


@transactions_bp.post("")
def create_transaction_route():
    """
    Record a stock movement.

    Body: {"productId": int, "type": "in"|"out", "quantity": int,
           "notes": str (optional), "userId": (optional)}
    """
    payload = request.get_json(silent=True) or {}

    try:
        if not isinstance(payload, dict):
            raise ValidationError("Invalid transaction payload")
        for field in ("productId", "type", "quantity"):
            if payload.get(field) in (None, ""):
                raise ValidationError(f"{field} is required")

        inventory = get_inventory()
        tx = inventory.ledger.append(
            coerce_int("productId", payload["productId"]),
            payload["type"],
            coerce_int("quantity", payload["quantity"]),
            notes=payload.get("notes"),
            user_id=payload.get("userId"),
        )
        product = inventory.catalog.get_by_id(tx.product_id)
    except INVENTORY_ERRORS as e:
        if isinstance(e, (PersistenceError, PartialCommitError)):
            current_app.logger.exception("Failed to record transaction")
        return error_response(e)

    return {"transaction": tx.to_dict(), "product": product.to_dict()}, 201


@transactions_bp.get("/replay/<int:product_id>")
def replay_route(product_id: int):
    """
    Replay a product's transactions.

    Query params:
    - baseline: int (optional) - starting stock; defaults to the stock the
      product had before its first transaction (deleted products included)

    catalog_stock is null when the product no longer exists.
    """
    baseline = request.args.get("baseline", type=int)

    try:
        return get_inventory().ledger.replay_summary(product_id, baseline=baseline)
    except INVENTORY_ERRORS as e:
        return error_response(e)


@transactions_bp.post("/reconcile/<int:product_id>")
def reconcile_route(product_id: int):
    """Repair the product's catalog stock from the ledger if they disagree."""
    try:
        drift = get_inventory().ledger.reconcile(product_id)
    except INVENTORY_ERRORS as e:
        return error_response(e)

    return drift.to_dict()
