"""
Pytest fixtures for the pharmacy inventory tests.

Provides in-memory store handles for the core services, a deterministic
clock, a store that fails writes on demand, and a Flask app on in-memory
SQLite for route and CLI tests.
"""

from datetime import datetime, timedelta

import pytest

from pharmacy_inventory import create_app
from pharmacy_inventory.config import Config
from pharmacy_inventory.extensions import db
from pharmacy_inventory.services import build_services
from pharmacy_inventory.services.kv_store import MemoryKeyValueStore, PersistenceError


class FixedClock:
    """Returns start, start + step, start + 2*step, ... on successive calls."""

    def __init__(self, start=datetime(2025, 4, 9, 12, 0, 0), step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


class FlakyStore(MemoryKeyValueStore):
    """Memory store whose writes to selected keys fail."""

    def __init__(self, initial=None):
        super().__init__(initial)
        self.failing_keys = set()

    def set(self, key, value):
        if key in self.failing_keys:
            raise PersistenceError(f"simulated write failure for {key!r}", key=key)
        super().set(key, value)


def product_payload(**overrides) -> dict:
    payload = {
        "name": "Paracetamol 500mg",
        "category": "Analgesics",
        "description": "Pain reliever",
        "supplier": "Johnson & Johnson",
        "unit": "tablet",
        "stock": 100,
        "price": 5.99,
        "reorderLevel": 20,
        "unitCount": 20,
        "expiryDate": "2026-12-31",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store():
    return FlakyStore()


@pytest.fixture
def inventory(store, clock):
    """Catalog + ledger on an empty in-memory store (no seed data)."""
    return build_services(store, clock=clock)


@pytest.fixture
def catalog(inventory):
    return inventory.catalog


@pytest.fixture
def ledger(inventory):
    return inventory.ledger


@pytest.fixture
def make_product(catalog):
    """Factory creating catalog products from product_payload overrides."""
    def _make(**overrides):
        return catalog.create(product_payload(**overrides))
    return _make


@pytest.fixture
def app(tmp_path):
    """Application on in-memory SQLite with an empty seed directory."""
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SEED_DATA_DIR": str(tmp_path),
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def seeded_app():
    """Application that bootstraps from the packaged seed data."""
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SEED_DATA_DIR": Config.SEED_DATA_DIR,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(seeded_app):
    return seeded_app.test_cli_runner()
