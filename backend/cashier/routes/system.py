# backend/cashier/routes/system.py
"""
Root, health and version endpoints.

/health reports the active storage backend and, for the relational backend,
database connectivity with its latency.
"""

import sys
import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..storage import get_storage
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


@system_bp.get("/")
def index():
    return {"message": "Cashier API"}


def check_database_health() -> dict:
    """Run a trivial query; returns dict with status and latency."""
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"dialect": db.engine.dialect.name},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: storage reachable
    - 503: database unreachable (relational backend only)
    """
    start_time = time.time()
    storage = get_storage()

    checks = {}
    if storage.backend == "sql":
        checks["database"] = check_database_health()

    unhealthy = any(check["status"] == "unhealthy" for check in checks.values())
    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": "unhealthy" if unhealthy else "healthy",
        "message": "API is running",
        "storage": storage.backend,
        "timestamp": utcnow().isoformat() + "Z",
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": checks,
    }
    return response, 503 if unhealthy else 200


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info: no secrets, credentials or paths."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": current_app.config.get("API_VERSION", "1.0.0"),
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": utcnow().isoformat() + "Z",
    }
