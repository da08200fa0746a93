# backend/billing/__init__.py
from __future__ import annotations

from typing import Mapping

from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(config: Mapping | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    # Module loggers (billing.services.*) propagate to app.logger
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp, categories_bp
    from .routes.customers import customers_bp
    from .routes.invoices import invoices_bp
    from .routes.settings import settings_bp
    from .routes.reports import reports_bp, dashboard_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(invoices_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(dashboard_bp)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
