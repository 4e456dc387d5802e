"""
Vendor Onboarding Platform
Flask Application Factory.

Usage:
    from vendor_platform import create_app
    app = create_app()           # defaults to APP_ENV, then "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine, event as _sa_event, select

from vendor_platform.config import config
from vendor_platform.integrations.blob_store import init_blob_store
from vendor_platform.middleware.logging_config import configure_logging
from vendor_platform.middleware.timing import init_request_timing
from vendor_platform.models import db

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()


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
    # Instantiated so ProductionConfig can refuse to start without DATABASE_URL/SECRET_KEY
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── Blob store for uploaded documents ────────────────────────────────
    init_blob_store(app)

    # Multipart overhead on top of the largest accepted document
    app.config.setdefault("MAX_CONTENT_LENGTH", app.config["DOCUMENT_MAX_BYTES"] + 1024 * 1024)

    # ── Models (import so SQLAlchemy knows all tables) ───────────────────
    from vendor_platform.models import document as _document_models          # noqa: F401
    from vendor_platform.models import notification as _notification_models  # noqa: F401
    from vendor_platform.models import review as _review_models              # noqa: F401
    from vendor_platform.models import vendor as _vendor_models              # noqa: F401
    from vendor_platform.models import verification as _verification_models  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if not app.testing:
        os.makedirs(app.instance_path, exist_ok=True)
    with app.app_context():
        db.create_all()

    # ── Blueprints ───────────────────────────────────────────────────────
    from vendor_platform.blueprints.document_bp import document_bp
    from vendor_platform.blueprints.health_bp import health_bp
    from vendor_platform.blueprints.notification_bp import notification_bp
    from vendor_platform.blueprints.review_bp import review_bp
    from vendor_platform.blueprints.vendor_bp import vendor_bp
    from vendor_platform.blueprints.verification_bp import verification_bp

    app.register_blueprint(vendor_bp)
    app.register_blueprint(document_bp)
    app.register_blueprint(review_bp)
    app.register_blueprint(verification_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("recompute-metrics")
    def recompute_metrics_cmd():
        """Recompute rating aggregates for every vendor (repairs drift)."""
        from vendor_platform.models.vendor import Vendor
        from vendor_platform.services.metrics_service import recompute_vendor_metrics

        vendor_ids = db.session.execute(select(Vendor.id)).scalars().all()
        for vendor_id in vendor_ids:
            recompute_vendor_metrics(vendor_id)
        logger.info("Recomputed metrics for %d vendor(s).", len(vendor_ids))

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def payload_too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error"}, 500

    return app
