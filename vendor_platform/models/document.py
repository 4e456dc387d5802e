"""
Vendor Onboarding Platform
Vendor document model.

Models:
    - VendorDocument: uploaded evidence file (license, tax id, ...) whose bytes
      live in the blob store; the row only keeps the blob reference.

Two status columns move together:
    status=approved  <=>  verification_status=verified
``expired`` and ``replaced`` are never set by public operations; expiry is
evaluated lazily through ``is_expired``.
"""

from datetime import datetime

from vendor_platform.models import db
from vendor_platform.models._time import as_utc, iso_or_none as _iso, utcnow as _utcnow


DOCUMENT_STATUSES = ("pending", "approved", "rejected", "expired", "replaced")
DOCUMENT_VERIFICATION_STATUSES = ("not_verified", "verified", "failed", "expired")


def format_file_size(size: int | None) -> str:
    """Render a byte count as B / KB / MB / GB with one decimal."""
    if size is None:
        return "Unknown"
    if size < 1024:
        return f"{size} B"
    if size < 1024 ** 2:
        return f"{size / 1024:.1f} KB"
    if size < 1024 ** 3:
        return f"{size / 1024 ** 2:.1f} MB"
    return f"{size / 1024 ** 3:.1f} GB"


class VendorDocument(db.Model):
    """Uploaded vendor document. Owned by exactly one Vendor."""

    __tablename__ = "vendor_documents"
    __table_args__ = (
        db.Index("idx_vdoc_vendor_type", "vendor_id", "document_type"),
    )

    id = db.Column(db.Integer, primary_key=True)
    vendor_id = db.Column(
        db.Integer, db.ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    document_type = db.Column(db.String(50), nullable=False)
    document_name = db.Column(db.String(255), nullable=False, comment="Original upload filename")
    blob_ref = db.Column(db.String(500), nullable=True, comment="Blob store reference")
    file_size = db.Column(db.BigInteger, nullable=True)
    mime_type = db.Column(db.String(100), nullable=True)

    status = db.Column(
        db.String(20), nullable=False, default="pending",
        comment="pending | approved | rejected | expired | replaced",
    )
    verification_status = db.Column(
        db.String(20), nullable=False, default="not_verified", index=True,
        comment="not_verified | verified | failed | expired",
    )
    verified_by = db.Column(db.String(100), nullable=True)
    verified_date = db.Column(db.DateTime(timezone=True), nullable=True)
    expiry_date = db.Column(db.DateTime(timezone=True), nullable=True, index=True)
    notes = db.Column(db.String(1000), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    created_by = db.Column(db.String(100), nullable=True)
    updated_by = db.Column(db.String(100), nullable=True)

    vendor = db.relationship("Vendor", back_populates="documents")

    def is_expired(self, now: datetime | None = None) -> bool:
        """True once the expiry date has passed, whatever the review status."""
        if self.expiry_date is None:
            return False
        return as_utc(self.expiry_date) < (now or _utcnow())

    @property
    def is_verified(self) -> bool:
        return self.verification_status == "verified"

    @property
    def file_size_formatted(self) -> str:
        return format_file_size(self.file_size)

    def to_dict(self):
        return {
            "id": self.id,
            "vendor_id": self.vendor_id,
            "document_type": self.document_type,
            "document_name": self.document_name,
            "file_size": self.file_size,
            "file_size_formatted": self.file_size_formatted,
            "mime_type": self.mime_type,
            "status": self.status,
            "verification_status": self.verification_status,
            "verified_by": self.verified_by,
            "verified_date": _iso(self.verified_date),
            "expiry_date": _iso(self.expiry_date),
            "is_expired": self.is_expired(),
            "notes": self.notes,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<VendorDocument {self.id}: {self.document_type} [{self.status}]>"
