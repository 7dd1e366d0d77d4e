# Overview: Flask extension instances for database and migrations.

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()

INVENTORY_EXTENSION = "pharmacy_inventory"


def get_inventory():
    """Inventory services bound to the current app (see create_app)."""
    return current_app.extensions[INVENTORY_EXTENSION]
