"""
Vendor Onboarding Platform
Customer review model.

Models:
    - VendorReview: customer rating + comment, subject to moderation

Moderation transitions (REVIEW_TRANSITIONS) never lead back to ``pending``.
Only ``approved`` reviews count toward the vendor's rating metrics.
"""

from decimal import Decimal

from vendor_platform.models import db
from vendor_platform.models._time import iso_or_none as _iso, utcnow as _utcnow


REVIEW_STATUSES = ("pending", "approved", "rejected", "flagged", "hidden")

REVIEW_TRANSITIONS = {
    "pending":  ["approved", "rejected", "flagged", "hidden"],
    "approved": ["rejected", "flagged", "hidden"],
    "flagged":  ["approved", "rejected", "hidden"],
    "hidden":   ["approved", "rejected"],
    "rejected": ["approved"],
}

RATING_MIN = Decimal("1.0")
RATING_MAX = Decimal("5.0")
RATING_MIDPOINT = Decimal("3.0")


def validate_review_transition(old_status, new_status):
    """Return True if VendorReview status transition is valid."""
    return new_status in REVIEW_TRANSITIONS.get(old_status, [])


def classify_rating(rating) -> str:
    """positive above 3.0, negative below, neutral at exactly 3.0."""
    value = Decimal(str(rating))
    if value > RATING_MIDPOINT:
        return "positive"
    if value < RATING_MIDPOINT:
        return "negative"
    return "neutral"


class VendorReview(db.Model):
    """Customer review of a vendor."""

    __tablename__ = "vendor_reviews"
    __table_args__ = (
        db.Index("idx_vreview_vendor_email", "vendor_id", "customer_email"),
        db.Index("idx_vreview_vendor_status", "vendor_id", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(
        db.Integer, db.ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    customer_id = db.Column(db.Integer, nullable=True)
    customer_name = db.Column(db.String(100), nullable=True)
    customer_email = db.Column(db.String(100), nullable=True)
    rating = db.Column(db.Numeric(2, 1), nullable=False)
    title = db.Column(db.String(200), nullable=True)
    comment = db.Column(db.String(2000), nullable=True)
    order_id = db.Column(db.Integer, nullable=True)
    product_id = db.Column(db.Integer, nullable=True)

    status = db.Column(
        db.String(20), nullable=False, default="pending",
        comment="pending | approved | rejected | flagged | hidden",
    )
    is_verified_purchase = db.Column(db.Boolean, nullable=False, default=False)
    helpful_count = db.Column(db.Integer, nullable=False, default=0)
    not_helpful_count = db.Column(db.Integer, nullable=False, default=0)

    vendor_response = db.Column(db.String(1000), nullable=True)
    vendor_response_date = db.Column(db.DateTime(timezone=True), nullable=True)

    moderated_by = db.Column(db.String(100), nullable=True)
    moderated_date = db.Column(db.DateTime(timezone=True), nullable=True)
    moderation_notes = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    vendor = db.relationship("Vendor", back_populates="reviews")

    @property
    def sentiment(self) -> str | None:
        return classify_rating(self.rating) if self.rating is not None else None

    @property
    def is_positive(self) -> bool:
        return self.sentiment == "positive"

    @property
    def is_negative(self) -> bool:
        return self.sentiment == "negative"

    @property
    def is_neutral(self) -> bool:
        return self.sentiment == "neutral"

    @property
    def has_vendor_response(self) -> bool:
        return bool(self.vendor_response and self.vendor_response.strip())

    @property
    def total_votes(self) -> int:
        return (self.helpful_count or 0) + (self.not_helpful_count or 0)

    @property
    def helpful_percentage(self) -> float:
        total = self.total_votes
        if total == 0:
            return 0.0
        return (self.helpful_count or 0) * 100.0 / total

    def to_dict(self):
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "rating": float(self.rating) if self.rating is not None else None,
            "sentiment": self.sentiment,
            "title": self.title,
            "comment": self.comment,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "status": self.status,
            "is_verified_purchase": bool(self.is_verified_purchase),
            "helpful_count": self.helpful_count or 0,
            "not_helpful_count": self.not_helpful_count or 0,
            "helpful_percentage": round(self.helpful_percentage, 1),
            "vendor_response": self.vendor_response,
            "vendor_response_date": _iso(self.vendor_response_date),
            "moderated_by": self.moderated_by,
            "moderated_date": _iso(self.moderated_date),
            "moderation_notes": self.moderation_notes,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<VendorReview {self.id}: vendor={self.vendor_id} rating={self.rating} [{self.status}]>"
