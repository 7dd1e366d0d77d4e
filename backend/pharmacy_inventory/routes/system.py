# backend/pharmacy_inventory/routes/system.py
"""
System health endpoint.

Reports whether the key-value store is reachable and whether both
collections are present.
"""

import time
from flask import Blueprint, current_app
from ..extensions import get_inventory
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_store_health() -> dict:
    """
    Check store connectivity by reading both collection documents.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        inventory = get_inventory()
        present = {
            c.key: inventory.store.get(c.key) is not None
            for c in inventory.collections()
        }
        elapsed_ms = (time.time() - start_time) * 1000

        return {
            # absent collections are seeded on first read, so still operational
            "status": "healthy" if all(present.values()) else "degraded",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"collections": present},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Store error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: store healthy or degraded (collections not yet seeded)
    - 503: store unreachable
    """
    store_health = check_store_health()
    http_status = 503 if store_health["status"] == "unhealthy" else 200

    return {
        "status": store_health["status"],
        "timestamp": to_utc_z(utcnow()),
        "checks": {"store": store_health},
    }, http_status
