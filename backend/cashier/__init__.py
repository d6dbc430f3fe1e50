# backend/cashier/__init__.py
import logging
import time
import uuid

from flask import Flask, g, request

from .config import Config
from .extensions import db, migrate


def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))
    logging.getLogger(__name__).setLevel(app.logger.level)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .storage import init_storage
    init_storage(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.products import products_bp
    from .routes.categories import categories_bp
    from .routes.checkout import checkout_bp
    from .routes.reports import reports_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(checkout_bp)
    app.register_blueprint(reports_bp)

    @app.before_request
    def start_request_log():
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        g.request_started = time.perf_counter()

    @app.before_request
    def answer_preflight():
        if request.method == "OPTIONS":
            return "", 200

    @app.after_request
    def finish_request(response):
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        response.headers["X-Request-ID"] = g.request_id

        duration_ms = (time.perf_counter() - g.request_started) * 1000
        app.logger.info(
            "%s %s -> %s (%.1f ms) request_id=%s",
            request.method, request.path, response.status_code, duration_ms, g.request_id,
        )
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    app.logger.info("Cashier API ready (storage=%s)", app.config.get("STORAGE_BACKEND"))
    return app
