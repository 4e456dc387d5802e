"""
Vendor lifecycle service.

All vendor profile and lifecycle business logic lives here.

Lifecycle:
    pending → under_review → approved → active
    side branches: suspended, inactive, rejected, blacklisted

Rules:
  - set_status is a direct overwrite: only the value is validated, never the
    edge. Operators use it to correct records in any direction.
  - mark_verified is the only writer of is_verified / verified_date /
    verified_by and the only automatic approved → active promotion. It is
    idempotent so a verification case can re-run it safely.
  - delete_vendor never removes a row; it moves the vendor to inactive.
  - db.session.commit() happens only in the service layer.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import func, or_, select

from vendor_platform.core.exceptions import ConflictError
from vendor_platform.models import db
from vendor_platform.models._time import iso_or_none, utcnow as _utcnow
from vendor_platform.models.document import VendorDocument
from vendor_platform.models.vendor import VENDOR_PROFILE_FIELDS, VENDOR_STATUSES, Vendor
from vendor_platform.models.verification import VendorVerification
from vendor_platform.services import notification_service
from vendor_platform.services.helpers.lookups import get_or_raise
from vendor_platform.services.helpers.validation import (
    check_choice,
    check_email,
    check_phone,
    clean_text,
    parse_date,
    parse_decimal,
)

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = {"name", "contact_email"}


def _apply_profile(vendor: Vendor, data: dict, *, creating: bool) -> None:
    """Validate and copy the profile fields present in ``data`` onto ``vendor``."""
    for field, max_length in VENDOR_PROFILE_FIELDS.items():
        if not creating and field not in data:
            continue
        value = clean_text(data, field, max_length, required=field in _REQUIRED_FIELDS)
        if field == "contact_email":
            value = check_email(value).lower()
        elif field == "phone":
            value = check_phone(value)
        setattr(vendor, field, value)

    if creating or "founding_date" in data:
        vendor.founding_date = parse_date(data.get("founding_date"), "founding_date")


def _ensure_email_free(email: str, exclude_id: int | None = None) -> None:
    stmt = select(Vendor.id).where(func.lower(Vendor.contact_email) == email.lower())
    if exclude_id is not None:
        stmt = stmt.where(Vendor.id != exclude_id)
    if db.session.execute(stmt).first() is not None:
        raise ConflictError("Vendor", "contact_email", email)


# ── CRUD ─────────────────────────────────────────────────────────────────────


def create_vendor(data: dict, created_by: str | None = None) -> Vendor:
    """Register a new vendor in ``pending``, unverified, with zeroed metrics.

    Raises:
        ValidationError: missing name/email, bad email or phone, oversized field.
        ConflictError: another vendor already uses the contact email.
    """
    vendor = Vendor(
        status="pending",
        is_verified=False,
        average_rating=Decimal("0.00"),
        total_reviews=0,
        total_sales=0,
        total_revenue=Decimal("0.00"),
        created_by=created_by,
        updated_by=created_by,
    )
    _apply_profile(vendor, data, creating=True)
    _ensure_email_free(vendor.contact_email)

    db.session.add(vendor)
    db.session.commit()
    logger.info("Vendor %s created email=%s", vendor.id, vendor.contact_email, extra={"vendor_id": vendor.id})
    return vendor


def get_vendor(vendor_id: int) -> Vendor:
    return get_or_raise(Vendor, vendor_id)


def update_vendor(vendor_id: int, data: dict, updated_by: str | None = None) -> Vendor:
    """Update profile fields only. Status, verification and metrics are ignored here."""
    vendor = get_or_raise(Vendor, vendor_id)
    _apply_profile(vendor, data, creating=False)
    if "contact_email" in data:
        _ensure_email_free(vendor.contact_email, exclude_id=vendor.id)
    vendor.updated_by = updated_by
    db.session.commit()
    logger.info("Vendor %s updated", vendor_id, extra={"vendor_id": vendor_id})
    return vendor


# ── Lifecycle ────────────────────────────────────────────────────────────────


def set_status(vendor_id: int, new_status: str, updated_by: str | None = None) -> Vendor:
    """Overwrite the vendor status. Any state may move to any state."""
    check_choice(new_status, VENDOR_STATUSES, "status")
    vendor = get_or_raise(Vendor, vendor_id)
    old_status = vendor.status
    vendor.status = new_status
    vendor.updated_by = updated_by
    db.session.commit()
    logger.info(
        "Vendor %s status %s → %s", vendor_id, old_status, new_status,
        extra={"vendor_id": vendor_id, "event_type": "status_changed"},
    )
    if old_status != new_status:
        notification_service.notify_status_changed(vendor, old_status)
    return vendor


def mark_verified(vendor_id: int, verified_by: str) -> Vendor:
    """Flag the vendor verified and promote approved → active.

    Any other status is left untouched. Re-running refreshes the verifier
    and timestamp.
    """
    vendor = get_or_raise(Vendor, vendor_id)
    vendor.is_verified = True
    vendor.verified_date = _utcnow()
    vendor.verified_by = verified_by
    promoted = vendor.status == "approved"
    if promoted:
        vendor.status = "active"
    vendor.updated_by = verified_by
    db.session.commit()
    logger.info(
        "Vendor %s verified by %s%s", vendor_id, verified_by, " (approved → active)" if promoted else "",
        extra={"vendor_id": vendor_id, "event_type": "vendor_verified"},
    )
    notification_service.notify_vendor_verified(vendor)
    return vendor


def delete_vendor(vendor_id: int, updated_by: str | None = None) -> Vendor:
    """Soft delete: vendors are never removed, only made inactive."""
    return set_status(vendor_id, "inactive", updated_by=updated_by)


def is_fully_verified(vendor_id: int) -> bool:
    """Vendor flag set, at least one verified document and one completed case."""
    vendor = get_or_raise(Vendor, vendor_id)
    if not vendor.is_verified:
        return False
    verified_docs = db.session.execute(
        select(func.count(VendorDocument.id)).where(
            VendorDocument.vendor_id == vendor_id,
            VendorDocument.verification_status == "verified",
        )
    ).scalar()
    if not verified_docs:
        return False
    completed_cases = db.session.execute(
        select(func.count(VendorVerification.id)).where(
            VendorVerification.vendor_id == vendor_id,
            VendorVerification.status == "completed",
        )
    ).scalar()
    return bool(completed_cases)


def can_sell(vendor_id: int) -> bool:
    return get_or_raise(Vendor, vendor_id).can_sell()


def verification_overview(vendor_id: int) -> dict:
    vendor = get_or_raise(Vendor, vendor_id)
    return {
        "vendor_id": vendor.id,
        "status": vendor.status,
        "is_verified": bool(vendor.is_verified),
        "verified_date": iso_or_none(vendor.verified_date),
        "verified_by": vendor.verified_by,
        "is_fully_verified": is_fully_verified(vendor_id),
        "can_sell": vendor.can_sell(),
    }


# ── Query ────────────────────────────────────────────────────────────────────


def list_vendors(
    status: str | None = None,
    category: str | None = None,
    city: str | None = None,
    state: str | None = None,
    min_rating=None,
    search: str | None = None,
    limit: int = 50,
    offset: int = 0,
):
    """Filtered vendor list, newest first.

    ``search`` matches name, email or description case-insensitively.

    Returns:
        (items, total) tuple.
    """
    q = Vendor.query
    if status:
        check_choice(status, VENDOR_STATUSES, "status")
        q = q.filter(Vendor.status == status)
    if category:
        q = q.filter(Vendor.business_category == category)
    if city:
        q = q.filter(func.lower(Vendor.city) == city.lower())
    if state:
        q = q.filter(func.lower(Vendor.state) == state.lower())
    rating = parse_decimal(min_rating, "min_rating")
    if rating is not None:
        q = q.filter(Vendor.average_rating >= rating)
    if search:
        pattern = f"%{search.strip().lower()}%"
        q = q.filter(
            or_(
                func.lower(Vendor.name).like(pattern),
                func.lower(Vendor.contact_email).like(pattern),
                func.lower(Vendor.business_description).like(pattern),
            )
        )
    total = q.count()
    items = q.order_by(Vendor.created_at.desc(), Vendor.id.desc()).offset(offset).limit(limit).all()
    return items, total


def list_recent_vendors(limit: int = 10) -> list[Vendor]:
    return Vendor.query.order_by(Vendor.created_at.desc(), Vendor.id.desc()).limit(limit).all()


def list_verified_vendors() -> list[Vendor]:
    return Vendor.query.filter(Vendor.is_verified.is_(True)).order_by(Vendor.name).all()


def list_top_rated_vendors(min_rating=Decimal("4.0")) -> list[Vendor]:
    rating = parse_decimal(min_rating, "min_rating")
    if rating is None:
        rating = Decimal("4.0")
    return (
        Vendor.query
        .filter(Vendor.status == "active", Vendor.average_rating >= rating)
        .order_by(Vendor.average_rating.desc(), Vendor.total_reviews.desc())
        .all()
    )


def list_top_performing_vendors(limit: int = 10) -> list[Vendor]:
    """Active and verified vendors by rating, then by sales."""
    return (
        Vendor.query
        .filter(Vendor.status == "active", Vendor.is_verified.is_(True))
        .order_by(Vendor.average_rating.desc(), Vendor.total_sales.desc())
        .limit(limit)
        .all()
    )


def list_vendors_needing_attention(days: int = 30) -> list[Vendor]:
    """Verified vendors whose verification is older than ``days``."""
    cutoff = _utcnow() - timedelta(days=days)
    return (
        Vendor.query
        .filter(Vendor.is_verified.is_(True), Vendor.verified_date < cutoff)
        .order_by(Vendor.verified_date.asc())
        .all()
    )


def category_distribution() -> dict:
    rows = db.session.execute(
        select(Vendor.business_category, func.count(Vendor.id))
        .where(Vendor.status == "active")
        .group_by(Vendor.business_category)
    ).all()
    return {(category or "uncategorized"): count for category, count in rows}


def status_distribution() -> dict:
    rows = db.session.execute(
        select(Vendor.status, func.count(Vendor.id)).group_by(Vendor.status)
    ).all()
    dist = {status: 0 for status in VENDOR_STATUSES}
    dist.update({status: count for status, count in rows})
    return dist


def geographic_distribution() -> list[dict]:
    rows = db.session.execute(
        select(Vendor.city, Vendor.state, func.count(Vendor.id))
        .where(Vendor.status == "active")
        .group_by(Vendor.city, Vendor.state)
        .order_by(func.count(Vendor.id).desc())
    ).all()
    return [{"city": city, "state": state, "count": count} for city, state, count in rows]


def vendor_counts() -> dict:
    total = db.session.execute(select(func.count(Vendor.id))).scalar() or 0
    active = db.session.execute(select(func.count(Vendor.id)).where(Vendor.status == "active")).scalar() or 0
    pending = db.session.execute(select(func.count(Vendor.id)).where(Vendor.status == "pending")).scalar() or 0
    verified = db.session.execute(
        select(func.count(Vendor.id)).where(Vendor.is_verified.is_(True))
    ).scalar() or 0
    return {"total": total, "active": active, "pending": pending, "verified": verified}
