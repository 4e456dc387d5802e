"""
Vendor Onboarding Platform
Vendor domain model.

Models:
    - Vendor: marketplace seller account, root of every other aggregate

Lifecycle (see services/vendor_service.py):
    pending → under_review → approved → active
    side branches: suspended, inactive, rejected, blacklisted

``set_status`` is a direct overwrite, so VENDOR_STATUSES only constrains the
value, not the edge. The one guarded edge is approved → active, which happens
inside ``mark_verified``.
"""

from decimal import Decimal

from vendor_platform.models import db
from vendor_platform.models._time import iso_or_none as _iso, utcnow as _utcnow


# ── Constants ────────────────────────────────────────────────────────────────

VENDOR_STATUSES = (
    "pending",
    "under_review",
    "approved",
    "active",
    "suspended",
    "inactive",
    "rejected",
    "blacklisted",
)

# Profile fields a caller may set on create/update, with their length caps.
VENDOR_PROFILE_FIELDS = {
    "name": 100,
    "contact_email": 100,
    "phone": 20,
    "website": 255,
    "street_address": 255,
    "city": 100,
    "state": 100,
    "country": 100,
    "postal_code": 20,
    "business_description": 1000,
    "business_category": 50,
    "license_number": 100,
    "tax_id": 50,
    "facebook_url": 255,
    "instagram_url": 255,
    "twitter_url": 255,
}


class Vendor(db.Model):
    """
    Marketplace seller account.

    Never hard-deleted: ``delete_vendor`` moves the record to ``inactive``.
    ``is_verified`` implies ``verified_date`` and ``verified_by`` are set;
    only ``vendor_service.mark_verified`` flips it.
    """

    __tablename__ = "vendors"

    id = db.Column(db.Integer, primary_key=True)

    # Profile
    name = db.Column(db.String(100), nullable=False)
    contact_email = db.Column(db.String(100), nullable=False, unique=True, index=True)
    phone = db.Column(db.String(20), nullable=True)
    website = db.Column(db.String(255), nullable=True)
    street_address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(100), nullable=True, index=True)
    state = db.Column(db.String(100), nullable=True)
    country = db.Column(db.String(100), nullable=True)
    postal_code = db.Column(db.String(20), nullable=True)
    business_description = db.Column(db.String(1000), nullable=True)
    business_category = db.Column(db.String(50), nullable=True, index=True)
    founding_date = db.Column(db.Date, nullable=True)
    license_number = db.Column(db.String(100), nullable=True)
    tax_id = db.Column(db.String(50), nullable=True)
    facebook_url = db.Column(db.String(255), nullable=True)
    instagram_url = db.Column(db.String(255), nullable=True)
    twitter_url = db.Column(db.String(255), nullable=True)

    # Lifecycle
    status = db.Column(
        db.String(20), nullable=False, default="pending", index=True,
        comment="pending | under_review | approved | active | suspended | inactive | rejected | blacklisted",
    )
    is_verified = db.Column(db.Boolean, nullable=False, default=False)
    verified_date = db.Column(db.DateTime(timezone=True), nullable=True)
    verified_by = db.Column(db.String(100), nullable=True)

    # Derived metrics (written by metrics_service only)
    average_rating = db.Column(db.Numeric(3, 2), nullable=False, default=Decimal("0.00"))
    total_reviews = db.Column(db.Integer, nullable=False, default=0)
    total_sales = db.Column(db.Integer, nullable=False, default=0)
    total_revenue = db.Column(db.Numeric(15, 2), nullable=False, default=Decimal("0.00"))

    # Audit
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
    created_by = db.Column(db.String(100), nullable=True)
    updated_by = db.Column(db.String(100), nullable=True)

    documents = db.relationship("VendorDocument", back_populates="vendor", lazy="dynamic")
    reviews = db.relationship("VendorReview", back_populates="vendor", lazy="dynamic")
    verifications = db.relationship("VendorVerification", back_populates="vendor", lazy="dynamic")
    notifications = db.relationship("VendorNotification", back_populates="vendor", lazy="dynamic")

    @property
    def full_address(self) -> str:
        parts = [self.street_address, self.city, self.state, self.postal_code, self.country]
        return ", ".join(p for p in parts if p)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def can_sell(self) -> bool:
        """Only active and verified vendors may list products."""
        return self.status == "active" and bool(self.is_verified)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "contact_email": self.contact_email,
            "phone": self.phone,
            "website": self.website,
            "street_address": self.street_address,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "postal_code": self.postal_code,
            "full_address": self.full_address,
            "business_description": self.business_description,
            "business_category": self.business_category,
            "founding_date": _iso(self.founding_date),
            "license_number": self.license_number,
            "tax_id": self.tax_id,
            "facebook_url": self.facebook_url,
            "instagram_url": self.instagram_url,
            "twitter_url": self.twitter_url,
            "status": self.status,
            "is_verified": bool(self.is_verified),
            "verified_date": _iso(self.verified_date),
            "verified_by": self.verified_by,
            "average_rating": float(self.average_rating or 0),
            "total_reviews": self.total_reviews or 0,
            "total_sales": self.total_sales or 0,
            "total_revenue": float(self.total_revenue or 0),
            "can_sell": self.can_sell(),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Vendor {self.id}: {self.name} [{self.status}]>"
