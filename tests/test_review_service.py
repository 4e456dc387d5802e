"""
Review moderation service tests.

Creation validation, the one-approved-review-per-customer rule, the
moderation transition table, engagement counters and review queries.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from vendor_platform.core.exceptions import ConflictError, DuplicateReviewError, NotFoundError, ValidationError
from vendor_platform.models import db
from vendor_platform.models._time import utcnow
from vendor_platform.models.notification import VendorNotification
from vendor_platform.models.review import VendorReview
from vendor_platform.models.vendor import Vendor
from vendor_platform.services import review_service


def _review(vendor_id, rating=4.0, email="buyer@example.com", **extra):
    data = {"rating": rating, "customer_email": email, "customer_name": "Buyer"}
    data.update(extra)
    return review_service.create_review(vendor_id, data)


def _approved(vendor_id, rating=4.0, email="buyer@example.com", **extra):
    return review_service.approve_review(_review(vendor_id, rating, email, **extra).id, "mod")


class TestCreateReview:
    def test_starts_pending(self, vendor):
        r = _review(vendor.id, 4.5, title="Great", comment="Fast shipping")
        assert r.status == "pending"
        assert r.rating == Decimal("4.5")
        assert r.helpful_count == 0
        assert r.not_helpful_count == 0

    @pytest.mark.parametrize("rating", [0.9, 5.1, -3, "abc", None])
    def test_rating_bounds(self, vendor, rating):
        with pytest.raises(ValidationError):
            _review(vendor.id, rating)

    def test_verified_purchase_flag(self, vendor):
        assert _review(vendor.id, email="a@example.com", is_verified_purchase="false").is_verified_purchase is False
        assert _review(vendor.id, email="b@example.com", is_verified_purchase=True).is_verified_purchase is True
        with pytest.raises(ValidationError):
            _review(vendor.id, email="c@example.com", is_verified_purchase="sometimes")

    @pytest.mark.parametrize("rating", [1, "1.0", 5, 3.0])
    def test_rating_edges_accepted(self, vendor, rating):
        assert _review(vendor.id, rating).status == "pending"

    def test_rating_stored_with_one_decimal(self, vendor):
        assert _review(vendor.id, 4.25).rating == Decimal("4.3")

    def test_comment_length_cap(self, vendor):
        with pytest.raises(ValidationError):
            _review(vendor.id, comment="x" * 2001)

    def test_unknown_vendor(self):
        with pytest.raises(NotFoundError):
            _review(555)

    def test_duplicate_when_customer_has_approved_review(self, vendor):
        _approved(vendor.id, email="dup@example.com")
        with pytest.raises(DuplicateReviewError):
            _review(vendor.id, email="DUP@example.com")

    def test_duplicate_is_a_conflict(self, vendor):
        _approved(vendor.id, email="dup@example.com")
        with pytest.raises(ConflictError):
            _review(vendor.id, email="dup@example.com")

    def test_rejected_review_does_not_block(self, vendor):
        first = _review(vendor.id, email="again@example.com")
        review_service.reject_review(first.id, "off-topic")
        assert _review(vendor.id, email="again@example.com").status == "pending"

    def test_pending_review_does_not_block(self, vendor):
        _review(vendor.id, email="twice@example.com")
        assert _review(vendor.id, email="twice@example.com").status == "pending"

    def test_same_customer_other_vendor(self, vendor, make_vendor):
        other = make_vendor(name="Other", contact_email="other@example.com")
        _approved(vendor.id, email="c@example.com")
        assert _review(other.id, email="c@example.com").status == "pending"


class TestModeration:
    def test_approve_sets_audit_fields(self, vendor):
        r = _approved(vendor.id)
        assert r.status == "approved"
        assert r.moderated_by == "mod"
        assert r.moderated_date is not None

    def test_approve_notifies_vendor(self, vendor):
        r = _approved(vendor.id)
        notif = VendorNotification.query.filter_by(vendor_id=vendor.id, type="review_approved").one()
        assert notif.related_entity_type == "review"
        assert notif.related_entity_id == r.id

    def test_reject_keeps_reason(self, vendor):
        r = review_service.reject_review(_review(vendor.id).id, "spam", "mod")
        assert r.status == "rejected"
        assert r.moderation_notes == "spam"

    def test_second_approval_for_same_customer_conflicts(self, vendor):
        a = _review(vendor.id, email="same@example.com")
        b = _review(vendor.id, email="same@example.com")
        review_service.approve_review(a.id)
        with pytest.raises(DuplicateReviewError):
            review_service.approve_review(b.id)
        assert db.session.get(VendorReview, b.id).status == "pending"

    def test_reapproving_after_hide(self, vendor):
        r = _approved(vendor.id)
        review_service.hide_review(r.id, "dispute")
        r = review_service.approve_review(r.id)
        assert r.status == "approved"

    @pytest.mark.parametrize(
        "start,action",
        [
            ("approved", review_service.approve_review),
            ("rejected", review_service.reject_review),
            ("rejected", review_service.flag_review),
            ("hidden", review_service.flag_review),
        ],
    )
    def test_invalid_transitions(self, vendor, start, action):
        r = _review(vendor.id)
        r.status = start
        db.session.commit()
        with pytest.raises(ValidationError):
            action(r.id)

    def test_flagging_approved_review_drops_it_from_metrics(self, vendor):
        r = _approved(vendor.id, 5.0)
        assert db.session.get(Vendor, vendor.id).total_reviews == 1
        review_service.flag_review(r.id, "suspicious")
        v = db.session.get(Vendor, vendor.id)
        assert v.total_reviews == 0
        assert v.average_rating == Decimal("0.00")

    def test_deleting_pending_review_keeps_metrics(self, vendor):
        _approved(vendor.id, 3.0, email="a@example.com")
        pending = _review(vendor.id, 1.0, email="b@example.com")
        review_service.delete_review(pending.id)
        v = db.session.get(Vendor, vendor.id)
        assert v.average_rating == Decimal("3.00")
        assert db.session.get(VendorReview, pending.id) is None


class TestEngagement:
    def test_helpful_counters(self, vendor):
        r = _review(vendor.id)
        review_service.mark_helpful(r.id)
        review_service.mark_helpful(r.id)
        r = review_service.mark_not_helpful(r.id)
        assert r.helpful_count == 2
        assert r.not_helpful_count == 1
        assert r.total_votes == 3
        assert round(r.helpful_percentage, 2) == 66.67

    def test_vendor_response(self, vendor):
        r = review_service.add_vendor_response(_approved(vendor.id).id, "Thanks!")
        assert r.vendor_response == "Thanks!"
        assert r.vendor_response_date is not None
        assert r.has_vendor_response

    def test_blank_response_rejected(self, vendor):
        with pytest.raises(ValidationError):
            review_service.add_vendor_response(_review(vendor.id).id, "   ")


class TestSentiment:
    @pytest.mark.parametrize("rating,sentiment", [(4.0, "positive"), (3.0, "neutral"), (2.5, "negative")])
    def test_classification(self, vendor, rating, sentiment):
        assert _review(vendor.id, rating).sentiment == sentiment

    def test_flags(self, vendor):
        review = _review(vendor.id, 3.0)
        assert review.is_neutral
        assert not review.is_positive and not review.is_negative


class TestQueries:
    def test_positive_negative_split(self, vendor):
        _approved(vendor.id, 5.0, email="a@example.com")
        _approved(vendor.id, 4.0, email="b@example.com")
        _approved(vendor.id, 3.0, email="c@example.com")
        _approved(vendor.id, 1.5, email="d@example.com")
        _review(vendor.id, 1.0, email="pending@example.com")

        assert [float(r.rating) for r in review_service.list_positive_reviews(vendor.id)] == [5.0, 4.0]
        assert [float(r.rating) for r in review_service.list_negative_reviews(vendor.id)] == [1.5]

    def test_most_helpful(self, vendor):
        a = _approved(vendor.id, email="a@example.com")
        b = _approved(vendor.id, email="b@example.com")
        review_service.mark_helpful(b.id)
        ids = [r.id for r in review_service.list_most_helpful_reviews(vendor.id)]
        assert ids == [b.id, a.id]

    def test_pending_response(self, vendor):
        answered = _approved(vendor.id, email="a@example.com")
        open_ = _approved(vendor.id, email="b@example.com")
        review_service.add_vendor_response(answered.id, "Thank you")
        assert [r.id for r in review_service.list_pending_response_reviews(vendor.id)] == [open_.id]

    def test_date_range(self, vendor):
        old = _review(vendor.id, email="old@example.com")
        row = db.session.get(VendorReview, old.id)
        row.created_at = utcnow() - timedelta(days=20)
        db.session.commit()
        recent = _review(vendor.id, email="new@example.com")

        now = utcnow()
        found = review_service.list_reviews_in_range(
            vendor.id, (now - timedelta(days=7)).isoformat(), (now + timedelta(minutes=1)).isoformat(),
        )
        assert [r.id for r in found] == [recent.id]

    def test_date_range_inverted(self, vendor):
        with pytest.raises(ValidationError):
            review_service.list_reviews_in_range(vendor.id, "2025-02-01", "2025-01-01")

    def test_vendor_reviews_status_filter(self, vendor):
        _approved(vendor.id, email="a@example.com")
        _review(vendor.id, email="b@example.com")
        items, total = review_service.list_vendor_reviews(vendor.id, status="pending")
        assert total == 1
        assert items[0].customer_email == "b@example.com"

    def test_stats(self, vendor):
        _approved(vendor.id, 4.5, email="a@example.com", is_verified_purchase=True)
        _approved(vendor.id, 2.0, email="b@example.com")
        _review(vendor.id, 5.0, email="c@example.com")

        stats = review_service.review_stats(vendor.id)
        assert stats["average_rating"] == 3.25
        assert stats["total_approved"] == 2
        assert stats["verified_purchases"] == 1
        assert stats["pending"] == 1
        assert stats["rating_distribution"] == {"1": 0, "2": 1, "3": 0, "4": 0, "5": 1}
