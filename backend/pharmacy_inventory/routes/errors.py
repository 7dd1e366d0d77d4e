# Overview: Maps core error signals to HTTP status codes and human-readable messages.

from __future__ import annotations

from ..services.kv_store import PersistenceError
from ..services.ledger_service import InsufficientStockError, PartialCommitError
from ..validation import NotFoundError, ValidationError

# Every error kind the core raises; routes catch exactly these.
INVENTORY_ERRORS = (
    ValidationError,
    NotFoundError,
    InsufficientStockError,
    PersistenceError,
    PartialCommitError,
)


def error_response(exc: Exception) -> tuple[dict, int]:
    """
    Translate a core error into a JSON body and status code.

    The core reports structured errors; wording for people lives here.
    """
    if isinstance(exc, InsufficientStockError):
        return {
            "error": f"Cannot remove {exc.requested} units; only {exc.available} in stock",
            "product_id": exc.product_id,
            "available": exc.available,
            "requested": exc.requested,
        }, 409

    if isinstance(exc, PartialCommitError):
        return {
            "error": "Transaction recorded but stock update failed; run reconciliation",
            "transaction": exc.transaction.to_dict(),
        }, 500

    if isinstance(exc, NotFoundError):
        return {"error": f"{exc.entity} {exc.entity_id} not found"}, 404

    if isinstance(exc, PersistenceError):
        return {"error": "Failed to save data"}, 503

    if isinstance(exc, ValidationError):
        return {"error": str(exc)}, 400

    raise TypeError(f"unsupported error type: {type(exc).__name__}")
