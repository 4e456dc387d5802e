"""
Verification case service tests.

Case state machine, vendor side effects of an approved completion,
cancellation rules, priority handling and the case queries.
"""

from datetime import timedelta

import pytest

from vendor_platform.core.exceptions import NotFoundError, ValidationError
from vendor_platform.models import db
from vendor_platform.models._time import utcnow
from vendor_platform.models.notification import VendorNotification
from vendor_platform.models.vendor import Vendor
from vendor_platform.models.verification import VendorVerification
from vendor_platform.services import verification_service


def _case(vendor_id, **details):
    return verification_service.initiate_verification(vendor_id, "license", "ops", details or None)


class TestInitiate:
    def test_defaults(self, vendor):
        c = _case(vendor.id)
        assert c.status == "pending"
        assert c.priority == "medium"
        assert c.initiated_by == "ops"
        assert c.initiated_date is not None
        assert c.assigned_to is None

    def test_details_are_parsed(self, vendor):
        c = _case(vendor.id, verification_method="document_review", estimated_completion_hours="48",
                  next_review_date="2030-01-01T00:00:00Z")
        assert c.verification_method == "document_review"
        assert c.estimated_completion_hours == 48
        assert c.next_review_date is not None

    def test_type_required(self, vendor):
        with pytest.raises(ValidationError):
            verification_service.initiate_verification(vendor.id, "  ")

    def test_unknown_vendor(self):
        with pytest.raises(NotFoundError):
            verification_service.initiate_verification(77, "license")


class TestAssign:
    def test_moves_to_in_progress(self, vendor):
        c = verification_service.assign_verification(_case(vendor.id).id, "agent1")
        assert c.status == "in_progress"
        assert c.assigned_to == "agent1"
        assert c.assigned_date is not None

    def test_reassignment(self, vendor):
        c = _case(vendor.id)
        verification_service.assign_verification(c.id, "agent1")
        c = verification_service.assign_verification(c.id, "agent2")
        assert c.assigned_to == "agent2"
        assert c.status == "in_progress"

    def test_assignee_required(self, vendor):
        with pytest.raises(ValidationError):
            verification_service.assign_verification(_case(vendor.id).id, "")


class TestComplete:
    def test_approved_marks_vendor_verified(self, approved_vendor):
        c = _case(approved_vendor.id)
        verification_service.assign_verification(c.id, "agent1")
        c = verification_service.complete_verification(c.id, True, "agent1", notes="all good", score=92)

        assert c.status == "completed"
        assert c.completed_by == "agent1"
        assert c.completed_date is not None
        assert c.verification_score == 92
        assert c.actual_completion_hours == 0
        v = db.session.get(Vendor, approved_vendor.id)
        assert v.is_verified is True
        assert v.status == "active"

    def test_rejected_leaves_vendor_alone(self, approved_vendor):
        c = verification_service.complete_verification(_case(approved_vendor.id).id, False, "agent1", notes="expired licence")
        assert c.status == "rejected"
        assert c.rejection_reason == "expired licence"
        v = db.session.get(Vendor, approved_vendor.id)
        assert v.is_verified is False
        assert v.status == "approved"

    def test_pending_case_may_complete_directly(self, vendor):
        c = verification_service.complete_verification(_case(vendor.id).id, True, "agent1")
        assert c.status == "completed"

    @pytest.mark.parametrize("status", ["completed", "failed", "rejected", "expired", "cancelled"])
    def test_terminal_cases_refuse(self, vendor, status):
        c = _case(vendor.id)
        c.status = status
        db.session.commit()
        with pytest.raises(ValidationError):
            verification_service.complete_verification(c.id, True, "agent1")
        assert db.session.get(Vendor, vendor.id).is_verified is False

    @pytest.mark.parametrize("score", [-1, 101, "high"])
    def test_score_range(self, vendor, score):
        with pytest.raises(ValidationError):
            verification_service.complete_verification(_case(vendor.id).id, True, "agent1", score=score)

    def test_hours_measured_from_assignment(self, vendor):
        c = _case(vendor.id)
        verification_service.assign_verification(c.id, "agent1")
        row = db.session.get(VendorVerification, c.id)
        row.assigned_date = utcnow() - timedelta(hours=5, minutes=10)
        db.session.commit()
        c = verification_service.complete_verification(c.id, True, "agent1")
        assert c.actual_completion_hours == 5

    def test_notifies_vendor(self, vendor):
        c = verification_service.complete_verification(_case(vendor.id).id, False, "agent1", notes="blurry scan")
        notif = VendorNotification.query.filter_by(vendor_id=vendor.id, type="verification_rejected").one()
        assert notif.related_entity_id == c.id
        assert notif.action_required is True
        assert "blurry scan" in notif.message


class TestCancel:
    @pytest.mark.parametrize("status", ["pending", "in_progress", "on_hold"])
    def test_open_cases_cancel(self, vendor, status):
        c = _case(vendor.id)
        if status == "in_progress":
            verification_service.assign_verification(c.id, "agent1")
        else:
            c.status = status
            db.session.commit()
        c = verification_service.cancel_verification(c.id, "ops", "duplicate request")
        assert c.status == "cancelled"
        assert c.notes == "duplicate request"
        assert c.updated_by == "ops"

    def test_keeps_assignee(self, vendor):
        c = _case(vendor.id)
        verification_service.assign_verification(c.id, "agent1")
        c = verification_service.cancel_verification(c.id, "ops")
        assert c.assigned_to == "agent1"

    def test_completed_case_cannot_cancel(self, vendor):
        c = verification_service.complete_verification(_case(vendor.id).id, True, "agent1")
        with pytest.raises(ValidationError):
            verification_service.cancel_verification(c.id, "ops")
        assert db.session.get(VendorVerification, c.id).status == "completed"

    def test_cancel_does_not_touch_vendor(self, approved_vendor):
        verification_service.cancel_verification(_case(approved_vendor.id).id, "ops")
        v = db.session.get(Vendor, approved_vendor.id)
        assert v.status == "approved"
        assert v.is_verified is False


class TestStatusPredicates:
    def test_lifecycle_flags(self, vendor):
        c = _case(vendor.id)
        assert c.is_pending and not c.is_terminal
        c = verification_service.assign_verification(c.id, "agent1")
        assert c.is_in_progress
        c = verification_service.complete_verification(c.id, False, "agent1")
        assert c.is_failed and c.is_terminal
        assert not c.is_completed

    @pytest.mark.parametrize("field,predicate", [("expiry_date", "is_expired"), ("next_review_date", "is_overdue")])
    def test_date_predicates(self, vendor, field, predicate):
        now = utcnow()
        past = _case(vendor.id, **{field: (now - timedelta(days=1)).isoformat()})
        future = _case(vendor.id, **{field: (now + timedelta(days=1)).isoformat()})
        unset = _case(vendor.id)
        assert getattr(past, predicate)(now) is True
        assert getattr(future, predicate)(now) is False
        assert getattr(unset, predicate)(now) is False

    def test_days_in_progress_open_case(self, vendor):
        c = _case(vendor.id)
        assert c.days_in_progress(utcnow() + timedelta(days=3, hours=1)) == 3

    def test_days_in_progress_stops_at_completion(self, vendor):
        c = _case(vendor.id)
        c.initiated_date = utcnow() - timedelta(days=5, hours=1)
        db.session.commit()
        c = verification_service.complete_verification(c.id, True, "agent1")
        assert c.days_in_progress(utcnow() + timedelta(days=30)) == 5


class TestPriority:
    def test_update(self, vendor):
        assert verification_service.update_priority(_case(vendor.id).id, "urgent").priority == "urgent"

    @pytest.mark.parametrize("priority", ["", None, "critical"])
    def test_invalid(self, vendor, priority):
        with pytest.raises(ValidationError):
            verification_service.update_priority(_case(vendor.id).id, priority)


class TestQueries:
    def test_high_priority_pending_order(self, vendor):
        low = _case(vendor.id)
        urgent = _case(vendor.id)
        done = _case(vendor.id)
        verification_service.update_priority(low.id, "low")
        verification_service.update_priority(urgent.id, "urgent")
        verification_service.update_priority(done.id, "urgent")
        verification_service.complete_verification(done.id, True, "agent1")

        ids = [c.id for c in verification_service.list_high_priority_pending()]
        assert ids == [urgent.id, low.id]

    def test_overdue_and_expiring(self, vendor):
        now = utcnow()
        overdue = _case(vendor.id, next_review_date=(now - timedelta(days=1)).isoformat())
        _case(vendor.id, next_review_date=(now + timedelta(days=10)).isoformat())
        expiring = _case(vendor.id, expiry_date=(now + timedelta(days=5)).isoformat())
        _case(vendor.id, expiry_date=(now + timedelta(days=90)).isoformat())

        assert [c.id for c in verification_service.list_overdue_verifications()] == [overdue.id]
        assert [c.id for c in verification_service.list_expiring_verifications(30)] == [expiring.id]

    def test_stats(self, vendor):
        a = _case(vendor.id)
        b = _case(vendor.id)
        c = verification_service.initiate_verification(vendor.id, "identity")
        verification_service.complete_verification(a.id, True, "agent1", score=80)
        verification_service.complete_verification(b.id, True, "agent1", score=91)
        verification_service.assign_verification(c.id, "agent2")

        stats = verification_service.verification_stats(vendor.id)
        assert stats["total"] == 3
        assert stats["completed"] == 2
        assert stats["in_progress"] == 1
        assert stats["pending"] == 0
        assert stats["average_score"] == 85.5
        assert stats["by_type"] == {"license": 2, "identity": 1}

    def test_vendor_list_newest_first(self, vendor):
        first = _case(vendor.id)
        second = _case(vendor.id)
        ids = [c.id for c in verification_service.list_vendor_verifications(vendor.id)]
        assert ids == [second.id, first.id]
