"""
Architekt — system-architecture modelling service.
Flask Application Factory.

Usage:
    from architekt import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS

from architekt.config import config
from architekt.middleware.logging_config import configure_logging
from architekt.middleware.timing import init_request_timing
from architekt.middleware.user_context import init_user_context
from architekt.models import db
from architekt.services.persistence import create_persistence
from architekt.services.project_store import ProjectAggregateStore

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    config_class = config[config_name]
    # ProductionConfig checks its environment in __init__
    app.config.from_object(config_class())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request middleware ───────────────────────────────────────────────
    init_user_context(app)
    init_request_timing(app)

    # ── Aggregate store ──────────────────────────────────────────────────
    if app.config["PERSISTENCE_DRIVER"] == "sqlalchemy":
        from architekt.models import aggregate_document as _aggregate_models  # noqa: F401

        uri = app.config["SQLALCHEMY_DATABASE_URI"]
        if uri.startswith("sqlite:///") and ":memory:" not in uri:
            os.makedirs(os.path.dirname(uri[len("sqlite:///"):]), exist_ok=True)
        with app.app_context():
            db.create_all()
            app.logger.info("db.create_all() completed successfully")

    app.extensions["architekt_store"] = ProjectAggregateStore(
        create_persistence(app.config),
        allow_alternate_cycles=app.config.get("ALLOW_ALTERNATE_FLOW_CYCLES", False),
    )

    # ── Blueprints ───────────────────────────────────────────────────────
    from architekt.blueprints.health_bp import health_bp
    from architekt.blueprints.projects_bp import projects_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(projects_bp)

    # ── JSON error handlers ──────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "code": "ERR_NOT_FOUND", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed", "code": "ERR_METHOD_NOT_ALLOWED"}, 405

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error", "code": "ERR_INTERNAL"}, 500

    logger.debug("App created config=%s driver=%s", config_name, app.config["PERSISTENCE_DRIVER"])
    return app
