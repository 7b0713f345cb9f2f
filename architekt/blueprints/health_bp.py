"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready  — simple 200 for load balancers
    GET /api/v1/health/live   — persistence driver status
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from architekt.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Readiness probe: 200 whenever the app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Liveness check; pings the database when aggregates are stored there."""
    driver = current_app.config.get("PERSISTENCE_DRIVER", "memory")
    checks = {"persistence": {"driver": driver, "status": "ok"}}
    overall = True

    if driver == "sqlalchemy":
        try:
            t0 = time.perf_counter()
            db.session.execute(db.text("SELECT 1"))
            checks["persistence"]["latency_ms"] = round((time.perf_counter() - t0) * 1000, 1)
        except SQLAlchemyError as exc:
            checks["persistence"] = {"driver": driver, "status": "error", "detail": str(exc)}
            overall = False
            logger.error("Health check — database failed: %s", exc)

    status = "ok" if overall else "degraded"
    return jsonify({"status": status, "checks": checks}), 200 if overall else 503
