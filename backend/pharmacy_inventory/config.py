# backend/pharmacy_inventory/config.py
from __future__ import annotations
import os
from pathlib import Path

PACKAGE_DIR = Path(__file__).resolve().parent


class Config:
    # SQLite DB stored in backend/instance/pharmacy.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///pharmacy.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Key-value collections (whole-document replace per write)
    INVENTORY_STORAGE_KEY = os.environ.get("INVENTORY_STORAGE_KEY", "pharmacy_inventory")
    TRANSACTIONS_STORAGE_KEY = os.environ.get("TRANSACTIONS_STORAGE_KEY", "pharmacy_transactions")

    # Read-only baseline used when a collection is absent from the store
    SEED_DATA_DIR = os.environ.get("SEED_DATA_DIR", str(PACKAGE_DIR / "seed"))

    # Acting user when a transaction does not name one
    DEFAULT_USER_ID = int(os.environ.get("DEFAULT_USER_ID", "1"))

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100
