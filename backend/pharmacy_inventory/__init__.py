# backend/pharmacy_inventory/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate, INVENTORY_EXTENSION


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services import build_services
    from .services.documents import SeedSource
    from .services.kv_store import SqlKeyValueStore

    app.extensions[INVENTORY_EXTENSION] = build_services(
        SqlKeyValueStore(db),
        seed=SeedSource(app.config.get("SEED_DATA_DIR")),
        inventory_key=app.config["INVENTORY_STORAGE_KEY"],
        transactions_key=app.config["TRANSACTIONS_STORAGE_KEY"],
        default_user_id=app.config["DEFAULT_USER_ID"],
    )

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.transactions import transactions_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(reports_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
