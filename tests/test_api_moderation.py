"""
tests/test_api_moderation.py: document, review and notification API tests.

Covers: multipart upload / download, verify / reject, expiry listings,
blob store failures mapped to 502, review submission and moderation,
duplicate review conflicts, engagement endpoints, notification
transitions and bulk read.
"""

import io
from datetime import timedelta
from unittest.mock import MagicMock

from vendor_platform.core.exceptions import StorageError
from vendor_platform.integrations.blob_store import BlobStore, init_blob_store
from vendor_platform.models._time import utcnow

DOCS = "/api/v1/vendor-documents"
REVIEWS = "/api/v1/vendor-reviews"
NOTIFS = "/api/v1/vendor-notifications"


# ═════════════════════════════════════════════════════════════════════════
# Helpers
# ═════════════════════════════════════════════════════════════════════════

def _upload(client, vid, content=b"%PDF-1.4 licence", **form):
    data = {"vendor_id": str(vid), "document_type": "business_license"}
    data.update(form)
    data["file"] = (io.BytesIO(content), "licence.pdf", "application/pdf")
    return client.post(f"{DOCS}/upload", data=data, content_type="multipart/form-data")


def _review(client, vid, rating=4.5, email="buyer@example.com", **kw):
    body = {"vendor_id": vid, "rating": rating, "customer_email": email}
    body.update(kw)
    rv = client.post(REVIEWS, json=body)
    assert rv.status_code == 201
    return rv.get_json()


def _notif(client, vid, **kw):
    body = {"vendor_id": vid, "type": "reminder", "title": "Reminder", "message": "Please act."}
    body.update(kw)
    rv = client.post(NOTIFS, json=body)
    assert rv.status_code == 201
    return rv.get_json()


# ═════════════════════════════════════════════════════════════════════════
# Documents
# ═════════════════════════════════════════════════════════════════════════

class TestDocumentApi:
    def test_upload_and_download(self, client, vendor):
        rv = _upload(client, vendor.id)
        assert rv.status_code == 201
        doc = rv.get_json()
        assert doc["status"] == "pending"
        assert doc["verification_status"] == "not_verified"
        assert doc["mime_type"] == "application/pdf"
        assert "blob_ref" not in doc

        rv = client.get(f"{DOCS}/{doc['id']}/download")
        assert rv.status_code == 200
        assert rv.data == b"%PDF-1.4 licence"
        assert "licence.pdf" in rv.headers["Content-Disposition"]

    def test_upload_without_file(self, client, vendor):
        rv = client.post(f"{DOCS}/upload", data={"vendor_id": str(vendor.id)}, content_type="multipart/form-data")
        assert rv.status_code == 400

    def test_upload_without_vendor(self, client):
        rv = client.post(
            f"{DOCS}/upload",
            data={"file": (io.BytesIO(b"abc"), "a.pdf")},
            content_type="multipart/form-data",
        )
        assert rv.status_code == 400

    def test_upload_empty_file(self, client, vendor):
        assert _upload(client, vendor.id, content=b"").status_code == 422

    def test_upload_unknown_vendor(self, client):
        assert _upload(client, 999).status_code == 404

    def test_storage_failure_is_502(self, app, client, vendor):
        store = MagicMock(spec=BlobStore)
        store.put.side_effect = StorageError("disk full")
        init_blob_store(app, store)
        assert _upload(client, vendor.id).status_code == 502

    def test_verify_and_reject(self, client, vendor):
        doc = _upload(client, vendor.id).get_json()
        rv = client.put(f"{DOCS}/{doc['id']}/verify", json={"verified_by": "checker", "notes": "ok"})
        assert rv.get_json()["verification_status"] == "verified"
        rv = client.put(f"{DOCS}/{doc['id']}/reject", json={"reason": "forged"}, headers={"X-User": "lead"})
        body = rv.get_json()
        assert body["status"] == "rejected"
        assert body["verified_by"] == "lead"
        assert body["notes"] == "forged"

    def test_update_and_delete(self, client, vendor):
        doc = _upload(client, vendor.id).get_json()
        rv = client.put(f"{DOCS}/{doc['id']}", json={"notes": "renewal"})
        assert rv.get_json()["notes"] == "renewal"
        assert client.delete(f"{DOCS}/{doc['id']}").status_code == 200
        assert client.get(f"{DOCS}/{doc['id']}").status_code == 404

    def test_listings_and_stats(self, client, vendor):
        past = (utcnow() - timedelta(days=1)).isoformat()
        soon = (utcnow() + timedelta(days=3)).isoformat()
        expired = _upload(client, vendor.id, expiry_date=past).get_json()
        _upload(client, vendor.id, expiry_date=soon)

        assert expired["is_expired"] is True
        assert client.get(f"{DOCS}/vendor/{vendor.id}").get_json()["total"] == 2
        assert client.get(f"{DOCS}/pending-verification").get_json()["total"] == 2
        assert client.get(f"{DOCS}/expired").get_json()["items"][0]["id"] == expired["id"]
        assert client.get(f"{DOCS}/expiring?days=7").get_json()["total"] == 1
        assert client.get(f"{DOCS}/stats/verification").get_json()["pending"] == 2
        assert client.get(f"{DOCS}/stats/vendor/{vendor.id}").get_json()["total"] == 2


# ═════════════════════════════════════════════════════════════════════════
# Reviews
# ═════════════════════════════════════════════════════════════════════════

class TestReviewApi:
    def test_submit_and_approve(self, client, vendor):
        r = _review(client, vendor.id)
        assert r["status"] == "pending"
        assert r["sentiment"] == "positive"

        rv = client.put(f"{REVIEWS}/{r['id']}/approve", json={"moderated_by": "mod"})
        assert rv.status_code == 200
        assert rv.get_json()["moderated_by"] == "mod"
        v = client.get(f"/api/v1/vendors/{vendor.id}").get_json()
        assert v["average_rating"] == 4.5
        assert v["total_reviews"] == 1

    def test_missing_vendor_id(self, client):
        assert client.post(REVIEWS, json={"rating": 4}).status_code == 400

    def test_rating_out_of_range(self, client, vendor):
        rv = client.post(REVIEWS, json={"vendor_id": vendor.id, "rating": 7})
        assert rv.status_code == 422
        assert rv.get_json()["details"] == {"rating": "out of range"}

    def test_duplicate_review(self, client, vendor):
        r = _review(client, vendor.id)
        client.put(f"{REVIEWS}/{r['id']}/approve")
        rv = client.post(REVIEWS, json={"vendor_id": vendor.id, "rating": 2, "customer_email": "buyer@example.com"})
        assert rv.status_code == 409

    def test_invalid_transition(self, client, vendor):
        r = _review(client, vendor.id)
        client.put(f"{REVIEWS}/{r['id']}/reject", json={"reason": "spam"})
        assert client.put(f"{REVIEWS}/{r['id']}/flag", json={}).status_code == 422

    def test_engagement(self, client, vendor):
        r = _review(client, vendor.id)
        client.post(f"{REVIEWS}/{r['id']}/helpful")
        rv = client.post(f"{REVIEWS}/{r['id']}/not-helpful")
        assert rv.get_json()["helpful_count"] == 1
        assert rv.get_json()["helpful_percentage"] == 50.0
        rv = client.put(f"{REVIEWS}/{r['id']}/vendor-response", json={"response": "Thanks"})
        assert rv.get_json()["vendor_response"] == "Thanks"

    def test_vendor_queries(self, client, vendor):
        good = _review(client, vendor.id, 5, "a@example.com")
        bad = _review(client, vendor.id, 1.5, "b@example.com")
        client.put(f"{REVIEWS}/{good['id']}/approve")
        client.put(f"{REVIEWS}/{bad['id']}/approve")

        assert client.get(f"{REVIEWS}/vendor/{vendor.id}").get_json()["total"] == 2
        assert client.get(f"{REVIEWS}/vendor/{vendor.id}/positive").get_json()["total"] == 1
        assert client.get(f"{REVIEWS}/vendor/{vendor.id}/negative").get_json()["total"] == 1
        assert client.get(f"{REVIEWS}/vendor/{vendor.id}/most-helpful").get_json()["total"] == 2
        assert client.get(f"{REVIEWS}/vendor/{vendor.id}/pending-response").get_json()["total"] == 2
        stats = client.get(f"{REVIEWS}/vendor/{vendor.id}/stats").get_json()
        assert stats["average_rating"] == 3.25
        assert stats["total_approved"] == 2

    def test_date_range_requires_bounds(self, client, vendor):
        assert client.get(f"{REVIEWS}/vendor/{vendor.id}/date-range").status_code == 422

    def test_delete_recomputes(self, client, vendor):
        r = _review(client, vendor.id)
        client.put(f"{REVIEWS}/{r['id']}/approve")
        assert client.delete(f"{REVIEWS}/{r['id']}").status_code == 200
        assert client.get(f"/api/v1/vendors/{vendor.id}").get_json()["total_reviews"] == 0


# ═════════════════════════════════════════════════════════════════════════
# Notifications
# ═════════════════════════════════════════════════════════════════════════

class TestNotificationApi:
    def test_create_and_transitions(self, client, vendor):
        n = _notif(client, vendor.id, priority="urgent")
        assert n["status"] == "unread"
        assert n["requires_immediate"] is True

        rv = client.put(f"{NOTIFS}/{n['id']}/read")
        assert rv.get_json()["status"] == "read"
        rv = client.put(f"{NOTIFS}/{n['id']}/archive")
        assert rv.get_json()["status"] == "archived"
        assert client.put(f"{NOTIFS}/{n['id']}/read").status_code == 422
        rv = client.put(f"{NOTIFS}/{n['id']}/discard")
        assert rv.get_json()["status"] == "deleted"

    def test_unknown_action(self, client, vendor):
        n = _notif(client, vendor.id)
        assert client.put(f"{NOTIFS}/{n['id']}/snooze").status_code == 404

    def test_complete_action(self, client, vendor):
        n = _notif(client, vendor.id, action_required=True)
        rv = client.put(f"{NOTIFS}/{n['id']}/complete-action")
        assert rv.get_json()["action_completed"] is True
        plain = _notif(client, vendor.id)
        assert client.put(f"{NOTIFS}/{plain['id']}/complete-action").status_code == 422

    def test_invalid_create(self, client, vendor):
        assert client.post(NOTIFS, json={"type": "x"}).status_code == 400
        rv = client.post(NOTIFS, json={"vendor_id": vendor.id, "type": "x", "title": "t", "message": "m",
                                       "action_completed": True})
        assert rv.status_code == 422

    def test_read_all_and_queries(self, client, vendor):
        _notif(client, vendor.id)
        _notif(client, vendor.id, action_required=True, action_deadline=(utcnow() - timedelta(days=1)).isoformat())
        _notif(client, vendor.id, related_entity_type="document", related_entity_id=3)

        assert client.get(f"{NOTIFS}/vendor/{vendor.id}/unread").get_json()["total"] == 3
        assert client.get(f"{NOTIFS}/vendor/{vendor.id}/pending-actions").get_json()["total"] == 1
        assert client.get(f"{NOTIFS}/vendor/{vendor.id}/overdue-actions").get_json()["total"] == 1
        assert client.get(f"{NOTIFS}/vendor/{vendor.id}/related/document/3").get_json()["total"] == 1
        assert client.get(f"{NOTIFS}/vendor/{vendor.id}/recent?limit=2").get_json()["total"] == 2

        rv = client.put(f"{NOTIFS}/vendor/{vendor.id}/read-all")
        assert rv.get_json() == {"updated": 3}
        assert client.get(f"{NOTIFS}/vendor/{vendor.id}/unread").get_json()["total"] == 0
        assert client.get(f"{NOTIFS}/stats/vendor/{vendor.id}").get_json()["unread"] == 0

    def test_physical_delete(self, client, vendor):
        n = _notif(client, vendor.id)
        assert client.delete(f"{NOTIFS}/{n['id']}").status_code == 200
        assert client.get(f"{NOTIFS}/{n['id']}").status_code == 404
