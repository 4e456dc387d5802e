"""
Health check blueprint.

Endpoints:
    GET /api/v1/health/ready   simple 200 for load balancers
    GET /api/v1/health/live    dependency status (database, blob store)
"""

import logging
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from vendor_platform.integrations.blob_store import LocalBlobStore, get_blob_store
from vendor_platform.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health_bp", __name__, url_prefix="/api/v1/health")


@health_bp.route("/ready", methods=["GET"])
def ready():
    """Simple readiness probe: always 200 if app is running."""
    return jsonify({"status": "ok"}), 200


@health_bp.route("/live", methods=["GET"])
def live():
    """Detailed liveness check with dependency status."""
    checks = {}
    overall = True

    # ── Database ─────────────────────────────────────────────────────
    try:
        t0 = time.perf_counter()
        db.session.execute(db.text("SELECT 1"))
        db_ms = (time.perf_counter() - t0) * 1000
        checks["database"] = {"status": "ok", "latency_ms": round(db_ms, 1)}
    except SQLAlchemyError as exc:
        db.session.rollback()
        checks["database"] = {"status": "error", "detail": str(exc)}
        overall = False
        logger.error("Health check: database failed: %s", exc)

    # ── Blob store ───────────────────────────────────────────────────
    store = get_blob_store()
    if isinstance(store, LocalBlobStore):
        exists = store.base_path.is_dir()
        checks["blob_store"] = {"status": "ok" if exists else "not_initialized", "path": str(store.base_path)}
    else:
        checks["blob_store"] = {"status": "ok", "backend": type(store).__name__}

    checks["app"] = {
        "name": "Vendor Onboarding Platform",
        "debug": current_app.debug,
        "testing": current_app.testing,
        "notifications_enabled": current_app.config.get("WORKFLOW_NOTIFICATIONS_ENABLED", True),
    }

    status_code = 200 if overall else 503
    return jsonify({
        "status": "healthy" if overall else "degraded",
        "checks": checks,
    }), status_code
