"""
Vendor Onboarding Platform
Vendor notification domain model.

Models:
    - VendorNotification: informational or action-requiring record for one
      vendor, with read tracking and follow-up action state.

The related entity is a loose back-reference (type + id), never a foreign
key: it may point at a document, review or case that has since been deleted.
"""

from datetime import datetime

from vendor_platform.models import db
from vendor_platform.models._time import as_utc, iso_or_none as _iso, utcnow as _utcnow


# ── Constants ────────────────────────────────────────────────────────────────

NOTIFICATION_STATUSES = ("unread", "read", "archived", "deleted")
NOTIFICATION_PRIORITIES = ("low", "normal", "high", "urgent")
RELATED_ENTITY_TYPES = ("vendor", "document", "review", "verification")

NOTIFICATION_TRANSITIONS = {
    "unread":   ["read", "archived", "deleted"],
    "read":     ["archived", "deleted"],
    "archived": ["deleted"],
    "deleted":  [],
}


def validate_notification_transition(old_status, new_status):
    """Return True if VendorNotification status transition is valid."""
    return new_status in NOTIFICATION_TRANSITIONS.get(old_status, [])


class VendorNotification(db.Model):
    """
    In-app notification for a vendor.

    ``action_completed`` is only ever true on rows where ``action_required``
    is true.
    """

    __tablename__ = "vendor_notifications"
    __table_args__ = (
        db.Index("idx_vnotif_vendor_status", "vendor_id", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(
        db.Integer, db.ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    type = db.Column(db.String(50), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.String(1000), nullable=False)
    priority = db.Column(db.String(20), nullable=False, default="normal", comment="low | normal | high | urgent")
    status = db.Column(db.String(20), nullable=False, default="unread", comment="unread | read | archived | deleted")
    read_date = db.Column(db.DateTime(timezone=True), nullable=True)

    # Follow-up action
    action_required = db.Column(db.Boolean, nullable=False, default=False)
    action_url = db.Column(db.String(500), nullable=True)
    action_deadline = db.Column(db.DateTime(timezone=True), nullable=True)
    action_completed = db.Column(db.Boolean, nullable=False, default=False)
    action_completed_date = db.Column(db.DateTime(timezone=True), nullable=True)

    # Link to source entity
    related_entity_type = db.Column(db.String(50), nullable=True, comment="document/review/verification/...")
    related_entity_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    created_by = db.Column(db.String(100), nullable=True)

    vendor = db.relationship("Vendor", back_populates="notifications")

    @property
    def is_read(self) -> bool:
        return self.status in ("read", "archived")

    def is_action_overdue(self, now: datetime | None = None) -> bool:
        if not self.action_required or self.action_completed or self.action_deadline is None:
            return False
        return as_utc(self.action_deadline) < (now or _utcnow())

    def requires_immediate(self) -> bool:
        return self.priority == "urgent" and not self.action_completed

    def mark_read(self, when: datetime | None = None):
        self.status = "read"
        self.read_date = when or _utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "priority": self.priority,
            "status": self.status,
            "is_read": self.is_read,
            "read_date": _iso(self.read_date),
            "action_required": bool(self.action_required),
            "action_url": self.action_url,
            "action_deadline": _iso(self.action_deadline),
            "action_completed": bool(self.action_completed),
            "action_completed_date": _iso(self.action_completed_date),
            "is_action_overdue": self.is_action_overdue(),
            "requires_immediate": self.requires_immediate(),
            "related_entity_type": self.related_entity_type,
            "related_entity_id": self.related_entity_id,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f"<VendorNotification {self.id}: {self.title[:40]}>"
