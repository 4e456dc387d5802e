"""
Vendor Onboarding Platform
Verification case model.

Models:
    - VendorVerification: a tracked check (license, identity, ...) whose
      approved completion marks the vendor verified.

Driven transitions:
    pending      --assign-->            in_progress
    in_progress  --assign-->            in_progress   (reassignment)
    any open     --complete(ok)-->      completed
    any open     --complete(not ok)-->  rejected
    any open     --cancel-->            cancelled

``failed``, ``expired`` and ``on_hold`` exist for external policy; nothing in
the service layer moves a case into them. Expiry and overdue are evaluated
lazily against ``expiry_date`` / ``next_review_date``.
"""

from datetime import datetime

from vendor_platform.models import db
from vendor_platform.models._time import as_utc, iso_or_none as _iso, utcnow as _utcnow


VERIFICATION_STATUSES = (
    "pending",
    "in_progress",
    "completed",
    "failed",
    "rejected",
    "expired",
    "cancelled",
    "on_hold",
)
OPEN_VERIFICATION_STATUSES = ("pending", "in_progress", "on_hold")
TERMINAL_VERIFICATION_STATUSES = ("completed", "failed", "rejected", "expired", "cancelled")

VERIFICATION_PRIORITIES = ("low", "medium", "high", "urgent")
# Sort key: urgent first
PRIORITY_RANK = {"urgent": 0, "high": 1, "medium": 2, "low": 3}


class VendorVerification(db.Model):
    """Verification case for one vendor."""

    __tablename__ = "vendor_verifications"
    __table_args__ = (
        db.Index("idx_vverif_vendor_status", "vendor_id", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(
        db.Integer, db.ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    verification_type = db.Column(db.String(50), nullable=False, comment="Free-form: license, identity, ...")
    status = db.Column(
        db.String(20), nullable=False, default="pending",
        comment="pending | in_progress | completed | failed | rejected | expired | cancelled | on_hold",
    )
    priority = db.Column(db.String(10), nullable=False, default="medium", comment="low | medium | high | urgent")

    initiated_by = db.Column(db.String(100), nullable=True)
    initiated_date = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    assigned_to = db.Column(db.String(100), nullable=True)
    assigned_date = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_by = db.Column(db.String(100), nullable=True)
    completed_date = db.Column(db.DateTime(timezone=True), nullable=True)

    verification_method = db.Column(db.String(100), nullable=True)
    external_reference = db.Column(db.String(255), nullable=True)
    verification_score = db.Column(db.Integer, nullable=True, comment="0-100")
    notes = db.Column(db.String(2000), nullable=True)
    rejection_reason = db.Column(db.String(1000), nullable=True)
    required_actions = db.Column(db.String(1000), nullable=True)

    expiry_date = db.Column(db.DateTime(timezone=True), nullable=True)
    next_review_date = db.Column(db.DateTime(timezone=True), nullable=True)
    estimated_completion_hours = db.Column(db.Integer, nullable=True)
    actual_completion_hours = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    updated_by = db.Column(db.String(100), nullable=True)

    vendor = db.relationship("Vendor", back_populates="verifications")

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def is_failed(self) -> bool:
        return self.status in ("failed", "rejected")

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"

    @property
    def is_in_progress(self) -> bool:
        return self.status == "in_progress"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_VERIFICATION_STATUSES

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expiry_date is None:
            return False
        return as_utc(self.expiry_date) < (now or _utcnow())

    def is_overdue(self, now: datetime | None = None) -> bool:
        if self.next_review_date is None:
            return False
        return as_utc(self.next_review_date) < (now or _utcnow())

    def days_in_progress(self, now: datetime | None = None) -> int:
        """Whole days from initiation to completion (or to now while open)."""
        if self.initiated_date is None:
            return 0
        end = as_utc(self.completed_date) or now or _utcnow()
        return (end - as_utc(self.initiated_date)).days

    def to_dict(self):
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "verification_type": self.verification_type,
            "status": self.status,
            "priority": self.priority,
            "initiated_by": self.initiated_by,
            "initiated_date": _iso(self.initiated_date),
            "assigned_to": self.assigned_to,
            "assigned_date": _iso(self.assigned_date),
            "completed_by": self.completed_by,
            "completed_date": _iso(self.completed_date),
            "verification_method": self.verification_method,
            "external_reference": self.external_reference,
            "verification_score": self.verification_score,
            "notes": self.notes,
            "rejection_reason": self.rejection_reason,
            "required_actions": self.required_actions,
            "expiry_date": _iso(self.expiry_date),
            "next_review_date": _iso(self.next_review_date),
            "estimated_completion_hours": self.estimated_completion_hours,
            "actual_completion_hours": self.actual_completion_hours,
            "is_overdue": self.is_overdue(),
            "is_expired": self.is_expired(),
            "days_in_progress": self.days_in_progress(),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<VendorVerification {self.id}: {self.verification_type} [{self.status}]>"
