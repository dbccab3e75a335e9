# backend/storefront/__init__.py
import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))
    logging.getLogger("storefront").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.devices import devices_bp
    from .routes.catalog import catalog_bp
    from .routes.refurbished import refurbished_bp
    from .routes.banners import banners_bp
    from .routes.appointments import appointments_bp
    from .routes.trade_ins import trade_ins_bp
    from .routes.pricing import pricing_bp
    from .routes.search import search_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(devices_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(refurbished_bp)
    app.register_blueprint(banners_bp)
    app.register_blueprint(appointments_bp)
    app.register_blueprint(trade_ins_bp)
    app.register_blueprint(pricing_bp)
    app.register_blueprint(search_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in set(app.config.get("CORS_ORIGINS") or []):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
