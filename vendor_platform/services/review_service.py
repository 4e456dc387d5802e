"""
Vendor review service.

Customer reviews and their moderation workflow.

Moderation state machine (see models/review.py REVIEW_TRANSITIONS):
    pending → approved | rejected | flagged | hidden
    moderated states may move among each other; nothing returns to pending.

Rules:
  - A customer may hold at most one approved review per vendor. Creating a
    review, or approving one, while another approved review exists for the
    same (vendor, customer_email) raises DuplicateReviewError.
  - Vendor rating aggregates are recomputed synchronously whenever the set of
    approved reviews changes: approval, a transition away from approved, or
    deleting an approved review.
  - helpful / not helpful counters only ever grow.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select

from vendor_platform.core.exceptions import DuplicateReviewError, ValidationError
from vendor_platform.models import db
from vendor_platform.models._time import utcnow as _utcnow
from vendor_platform.models.review import (
    RATING_MAX,
    RATING_MIDPOINT,
    RATING_MIN,
    VendorReview,
    validate_review_transition,
)
from vendor_platform.models.vendor import Vendor
from vendor_platform.services import metrics_service, notification_service
from vendor_platform.services.helpers.lookups import get_or_raise
from vendor_platform.services.helpers.validation import (
    check_email,
    clean_text,
    parse_bool,
    parse_datetime,
    parse_decimal,
    parse_int,
)

logger = logging.getLogger(__name__)


def _has_approved_review(vendor_id: int, customer_email: str | None, exclude_id: int | None = None) -> bool:
    if not customer_email:
        return False
    stmt = select(VendorReview.id).where(
        VendorReview.vendor_id == vendor_id,
        func.lower(VendorReview.customer_email) == customer_email.lower(),
        VendorReview.status == "approved",
    )
    if exclude_id is not None:
        stmt = stmt.where(VendorReview.id != exclude_id)
    return db.session.execute(stmt).first() is not None


def _parse_rating(value) -> Decimal:
    rating = parse_decimal(value, "rating")
    if rating is None:
        raise ValidationError("rating is required", details={"rating": "required"})
    if rating < RATING_MIN or rating > RATING_MAX:
        raise ValidationError(
            f"rating must be between {RATING_MIN} and {RATING_MAX}",
            details={"rating": "out of range"},
        )
    return rating.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


# ── Create ───────────────────────────────────────────────────────────────────


def create_review(vendor_id: int, data: dict) -> VendorReview:
    """Submit a customer review. New reviews always start ``pending``.

    Raises:
        NotFoundError: vendor does not exist.
        ValidationError: rating missing or outside [1.0, 5.0], oversized text.
        DuplicateReviewError: the customer already has an approved review.
    """
    get_or_raise(Vendor, vendor_id)

    rating = _parse_rating(data.get("rating"))
    customer_email = check_email(clean_text(data, "customer_email", 100), "customer_email")
    if _has_approved_review(vendor_id, customer_email):
        raise DuplicateReviewError(vendor_id, customer_email)

    review = VendorReview(
        vendor_id=vendor_id,
        customer_id=parse_int(data.get("customer_id"), "customer_id"),
        customer_name=clean_text(data, "customer_name", 100),
        customer_email=customer_email,
        rating=rating,
        title=clean_text(data, "title", 200),
        comment=clean_text(data, "comment", 2000),
        order_id=parse_int(data.get("order_id"), "order_id"),
        product_id=parse_int(data.get("product_id"), "product_id"),
        is_verified_purchase=parse_bool(data.get("is_verified_purchase"), "is_verified_purchase"),
        status="pending",
        helpful_count=0,
        not_helpful_count=0,
    )
    db.session.add(review)
    db.session.commit()
    logger.info(
        "Review %s created vendor_id=%s rating=%s", review.id, vendor_id, rating,
        extra={"vendor_id": vendor_id, "entity_type": "review", "entity_id": review.id},
    )
    return review


def get_review(review_id: int) -> VendorReview:
    return get_or_raise(VendorReview, review_id)


# ── Moderation ───────────────────────────────────────────────────────────────


def _moderate(review_id: int, new_status: str, moderated_by: str | None, notes: str | None = None,
              *, keep_notes: bool = False) -> VendorReview:
    review = get_or_raise(VendorReview, review_id)
    old_status = review.status
    if not validate_review_transition(old_status, new_status):
        raise ValidationError(
            f"Invalid transition: {old_status} → {new_status}",
            details={"status": f"cannot move from {old_status} to {new_status}"},
        )
    if new_status == "approved" and _has_approved_review(review.vendor_id, review.customer_email, review.id):
        raise DuplicateReviewError(review.vendor_id, review.customer_email)

    review.status = new_status
    review.moderated_by = moderated_by
    review.moderated_date = _utcnow()
    if not keep_notes:
        review.moderation_notes = clean_text({"moderation_notes": notes}, "moderation_notes", 500)
    db.session.commit()
    logger.info(
        "Review %s %s → %s by %s", review_id, old_status, new_status, moderated_by,
        extra={"vendor_id": review.vendor_id, "entity_type": "review", "entity_id": review.id},
    )

    if "approved" in (old_status, new_status):
        metrics_service.recompute_vendor_metrics(review.vendor_id)
    return review


def approve_review(review_id: int, moderated_by: str | None = None) -> VendorReview:
    review = _moderate(review_id, "approved", moderated_by, keep_notes=True)
    notification_service.notify_review_approved(review)
    return review


def reject_review(review_id: int, reason: str | None = None, moderated_by: str | None = None) -> VendorReview:
    return _moderate(review_id, "rejected", moderated_by, reason)


def flag_review(review_id: int, reason: str | None = None, moderated_by: str | None = None) -> VendorReview:
    return _moderate(review_id, "flagged", moderated_by, reason)


def hide_review(review_id: int, reason: str | None = None, moderated_by: str | None = None) -> VendorReview:
    return _moderate(review_id, "hidden", moderated_by, reason)


# ── Engagement ───────────────────────────────────────────────────────────────


def mark_helpful(review_id: int) -> VendorReview:
    review = get_or_raise(VendorReview, review_id)
    review.helpful_count = (review.helpful_count or 0) + 1
    db.session.commit()
    return review


def mark_not_helpful(review_id: int) -> VendorReview:
    review = get_or_raise(VendorReview, review_id)
    review.not_helpful_count = (review.not_helpful_count or 0) + 1
    db.session.commit()
    return review


def add_vendor_response(review_id: int, response: str) -> VendorReview:
    review = get_or_raise(VendorReview, review_id)
    review.vendor_response = clean_text({"vendor_response": response}, "vendor_response", 1000, required=True)
    review.vendor_response_date = _utcnow()
    db.session.commit()
    return review


def delete_review(review_id: int) -> None:
    """Remove the review and bring the vendor's aggregates back in line."""
    review = get_or_raise(VendorReview, review_id)
    vendor_id = review.vendor_id
    db.session.delete(review)
    db.session.commit()
    logger.info("Review %s deleted", review_id, extra={"vendor_id": vendor_id})
    metrics_service.recompute_vendor_metrics(vendor_id)


# ── Query ────────────────────────────────────────────────────────────────────


def _approved(vendor_id: int):
    return VendorReview.query.filter_by(vendor_id=vendor_id, status="approved")


def list_vendor_reviews(vendor_id: int, status: str | None = None, limit: int = 50, offset: int = 0):
    """Reviews for a vendor, newest first.

    Returns:
        (items, total) tuple.
    """
    get_or_raise(Vendor, vendor_id)
    q = VendorReview.query.filter_by(vendor_id=vendor_id)
    if status:
        q = q.filter_by(status=status)
    total = q.count()
    items = q.order_by(VendorReview.created_at.desc(), VendorReview.id.desc()).offset(offset).limit(limit).all()
    return items, total


def list_positive_reviews(vendor_id: int, min_rating=Decimal("4.0")) -> list[VendorReview]:
    threshold = parse_decimal(min_rating, "min_rating")
    if threshold is None:
        threshold = Decimal("4.0")
    return (
        _approved(vendor_id)
        .filter(VendorReview.rating >= threshold)
        .order_by(VendorReview.rating.desc(), VendorReview.created_at.desc())
        .all()
    )


def list_negative_reviews(vendor_id: int, max_rating=RATING_MIDPOINT) -> list[VendorReview]:
    threshold = parse_decimal(max_rating, "max_rating")
    if threshold is None:
        threshold = RATING_MIDPOINT
    return (
        _approved(vendor_id)
        .filter(VendorReview.rating < threshold)
        .order_by(VendorReview.rating.asc(), VendorReview.created_at.desc())
        .all()
    )


def list_most_helpful_reviews(vendor_id: int, limit: int = 10) -> list[VendorReview]:
    return (
        _approved(vendor_id)
        .order_by(VendorReview.helpful_count.desc(), VendorReview.created_at.desc())
        .limit(limit)
        .all()
    )


def list_reviews_in_range(vendor_id: int, start, end) -> list[VendorReview]:
    start_dt: datetime | None = parse_datetime(start, "start_date")
    end_dt: datetime | None = parse_datetime(end, "end_date")
    if start_dt is None or end_dt is None:
        raise ValidationError("start_date and end_date are required", details={"range": "required"})
    if start_dt > end_dt:
        raise ValidationError("start_date must not be after end_date", details={"range": "inverted"})
    return (
        VendorReview.query
        .filter(
            VendorReview.vendor_id == vendor_id,
            VendorReview.created_at >= start_dt,
            VendorReview.created_at <= end_dt,
        )
        .order_by(VendorReview.created_at.desc())
        .all()
    )


def list_pending_response_reviews(vendor_id: int) -> list[VendorReview]:
    """Approved reviews the vendor has not answered yet."""
    return (
        _approved(vendor_id)
        .filter(VendorReview.vendor_response.is_(None))
        .order_by(VendorReview.created_at.asc())
        .all()
    )


def review_stats(vendor_id: int) -> dict:
    get_or_raise(Vendor, vendor_id)
    average, total = metrics_service.compute_rating_summary(vendor_id)
    verified_purchases = _approved(vendor_id).filter(VendorReview.is_verified_purchase.is_(True)).count()
    rows = db.session.execute(
        select(VendorReview.rating, func.count(VendorReview.id))
        .where(VendorReview.vendor_id == vendor_id, VendorReview.status == "approved")
        .group_by(VendorReview.rating)
    ).all()
    distribution = {str(star): 0 for star in range(1, 6)}
    for rating, count in rows:
        bucket = str(int(Decimal(str(rating)).to_integral_value(rounding=ROUND_HALF_UP)))
        distribution[bucket] += count
    return {
        "vendor_id": vendor_id,
        "average_rating": float(average),
        "total_approved": total,
        "verified_purchases": verified_purchases,
        "pending": VendorReview.query.filter_by(vendor_id=vendor_id, status="pending").count(),
        "rating_distribution": distribution,
    }
