"""
Shared pytest fixtures for the Vendor Onboarding Platform test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate, fresh blob dir (autouse)
    - client: Flask test client (function-scoped)
    - make_vendor: Factory creating vendors via vendor_service
    - vendor: Pre-created pending Vendor
    - approved_vendor: Pre-created Vendor in status approved
"""

import pytest

from vendor_platform import create_app
from vendor_platform.integrations.blob_store import LocalBlobStore, init_blob_store
from vendor_platform.models import db as _db
from vendor_platform.services import vendor_service


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db, tmp_path):
    """Per-test: open app context, point the blob store at a tmp dir, reset tables after."""
    init_blob_store(app, LocalBlobStore(tmp_path / "blobs"))
    app.config["WORKFLOW_NOTIFICATIONS_ENABLED"] = True
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


def _make_vendor(**overrides):
    data = {
        "name": "Acme Supplies",
        "contact_email": "sales@acme.example",
        "phone": "+1 555-010-2030",
        "city": "Austin",
        "state": "TX",
        "business_category": "hardware",
    }
    data.update(overrides)
    return vendor_service.create_vendor(data, created_by="tester")


@pytest.fixture()
def make_vendor():
    """Factory: create a vendor through the service layer (kwargs override profile fields)."""
    return _make_vendor


@pytest.fixture()
def vendor():
    """A freshly registered vendor (status pending, unverified)."""
    return _make_vendor()


@pytest.fixture()
def approved_vendor():
    """A vendor moved to ``approved`` and ready for verification."""
    v = _make_vendor(name="Globex", contact_email="hello@globex.example")
    return vendor_service.set_status(v.id, "approved", updated_by="ops")
