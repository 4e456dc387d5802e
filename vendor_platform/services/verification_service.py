"""
Vendor verification case service.

A verification case is one review of a vendor (licence check, identity,
site visit, ...) worked by an assignee until it is completed or rejected.

Case state machine:
    pending ──assign──▶ in_progress ──complete──▶ completed | rejected
    pending | in_progress | on_hold ──cancel──▶ cancelled
    assign may be repeated (reassignment) and always lands in in_progress.

Rules:
  - Terminal cases (completed, failed, rejected, expired, cancelled) cannot be
    completed or cancelled again.
  - An approved completion marks the vendor verified via
    vendor_service.mark_verified AFTER the case commit. That call is
    idempotent, so re-running it repairs a crash between the two commits.
  - Cancelling keeps the assignee for the audit trail.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import case, func, select

from vendor_platform.core.exceptions import ValidationError
from vendor_platform.models import db
from vendor_platform.models._time import as_utc, utcnow as _utcnow
from vendor_platform.models.vendor import Vendor
from vendor_platform.models.verification import (
    OPEN_VERIFICATION_STATUSES,
    PRIORITY_RANK,
    TERMINAL_VERIFICATION_STATUSES,
    VERIFICATION_PRIORITIES,
    VendorVerification,
)
from vendor_platform.services import notification_service, vendor_service
from vendor_platform.services.helpers.lookups import get_or_raise
from vendor_platform.services.helpers.validation import (
    check_choice,
    clean_text,
    parse_datetime,
    parse_int,
)

logger = logging.getLogger(__name__)

_PRIORITY_ORDER = case(PRIORITY_RANK, value=VendorVerification.priority, else_=len(PRIORITY_RANK))


def _log_extra(case_: VendorVerification) -> dict:
    return {"vendor_id": case_.vendor_id, "entity_type": "verification", "entity_id": case_.id}


# ── Lifecycle ────────────────────────────────────────────────────────────────


def initiate_verification(
    vendor_id: int,
    verification_type: str,
    initiated_by: str | None = None,
    details: dict | None = None,
) -> VendorVerification:
    """Open a new ``pending`` case with ``medium`` priority.

    ``details`` may carry the optional descriptive fields: verification_method,
    external_reference, required_actions, expiry_date, next_review_date,
    estimated_completion_hours.
    """
    get_or_raise(Vendor, vendor_id)
    details = details or {}

    verification_type = clean_text({"verification_type": verification_type}, "verification_type", 50, required=True)
    case_ = VendorVerification(
        vendor_id=vendor_id,
        verification_type=verification_type,
        status="pending",
        priority="medium",
        initiated_by=initiated_by,
        initiated_date=_utcnow(),
        verification_method=clean_text(details, "verification_method", 100),
        external_reference=clean_text(details, "external_reference", 255),
        required_actions=clean_text(details, "required_actions", 1000),
        expiry_date=parse_datetime(details.get("expiry_date"), "expiry_date"),
        next_review_date=parse_datetime(details.get("next_review_date"), "next_review_date"),
        estimated_completion_hours=parse_int(
            details.get("estimated_completion_hours"), "estimated_completion_hours", minimum=0,
        ),
        updated_by=initiated_by,
    )
    db.session.add(case_)
    db.session.commit()
    logger.info(
        "Verification %s initiated vendor_id=%s type=%s by %s",
        case_.id, vendor_id, verification_type, initiated_by, extra=_log_extra(case_),
    )
    return case_


def get_verification(verification_id: int) -> VendorVerification:
    return get_or_raise(VendorVerification, verification_id)


def assign_verification(verification_id: int, assigned_to: str) -> VendorVerification:
    """Assign (or reassign) a case. Status always becomes ``in_progress``."""
    case_ = get_or_raise(VendorVerification, verification_id)
    assigned_to = clean_text({"assigned_to": assigned_to}, "assigned_to", 100, required=True)
    case_.assigned_to = assigned_to
    case_.assigned_date = _utcnow()
    case_.status = "in_progress"
    db.session.commit()
    logger.info("Verification %s assigned to %s", verification_id, assigned_to, extra=_log_extra(case_))
    return case_


def complete_verification(
    verification_id: int,
    approved: bool,
    verified_by: str,
    notes: str | None = None,
    score=None,
) -> VendorVerification:
    """Close a case as ``completed`` (approved) or ``rejected``.

    Raises:
        ValidationError: case already terminal, or score outside 0..100.
    """
    case_ = get_or_raise(VendorVerification, verification_id)
    if case_.status in TERMINAL_VERIFICATION_STATUSES:
        raise ValidationError(
            f"Verification {verification_id} is already {case_.status}",
            details={"status": case_.status},
        )
    score = parse_int(score, "verification_score", minimum=0, maximum=100)
    notes = clean_text({"notes": notes}, "notes", 2000)

    now = _utcnow()
    case_.status = "completed" if approved else "rejected"
    case_.completed_by = verified_by
    case_.completed_date = now
    case_.notes = notes
    if not approved:
        case_.rejection_reason = clean_text({"rejection_reason": notes}, "rejection_reason", 1000)
    if score is not None:
        case_.verification_score = score
    started = as_utc(case_.assigned_date) or as_utc(case_.initiated_date)
    if started is not None:
        case_.actual_completion_hours = int((now - started).total_seconds() // 3600)
    case_.updated_by = verified_by
    db.session.commit()
    logger.info(
        "Verification %s %s by %s", verification_id, case_.status, verified_by, extra=_log_extra(case_),
    )

    if approved:
        vendor_service.mark_verified(case_.vendor_id, verified_by)
    notification_service.notify_verification_completed(case_)
    return case_


def cancel_verification(verification_id: int, cancelled_by: str, reason: str | None = None) -> VendorVerification:
    """Cancel an open case. No effect on the vendor."""
    case_ = get_or_raise(VendorVerification, verification_id)
    if case_.status not in OPEN_VERIFICATION_STATUSES:
        raise ValidationError(
            f"Only open verifications can be cancelled (current: {case_.status})",
            details={"status": case_.status},
        )
    case_.status = "cancelled"
    case_.notes = clean_text({"notes": reason}, "notes", 2000)
    case_.updated_by = cancelled_by
    db.session.commit()
    logger.info("Verification %s cancelled by %s", verification_id, cancelled_by, extra=_log_extra(case_))
    notification_service.notify_verification_cancelled(case_)
    return case_


def update_priority(verification_id: int, priority: str) -> VendorVerification:
    if not priority:
        raise ValidationError("priority is required", details={"priority": "required"})
    check_choice(priority, VERIFICATION_PRIORITIES, "priority")
    case_ = get_or_raise(VendorVerification, verification_id)
    case_.priority = priority
    db.session.commit()
    return case_


# ── Query ────────────────────────────────────────────────────────────────────


def list_vendor_verifications(vendor_id: int) -> list[VendorVerification]:
    get_or_raise(Vendor, vendor_id)
    return (
        VendorVerification.query
        .filter_by(vendor_id=vendor_id)
        .order_by(VendorVerification.initiated_date.desc(), VendorVerification.id.desc())
        .all()
    )


def list_overdue_verifications() -> list[VendorVerification]:
    """Cases whose next review date has passed."""
    return (
        VendorVerification.query
        .filter(
            VendorVerification.next_review_date.isnot(None),
            VendorVerification.next_review_date <= _utcnow(),
        )
        .order_by(VendorVerification.next_review_date.asc())
        .all()
    )


def list_expiring_verifications(days: int = 30) -> list[VendorVerification]:
    now = _utcnow()
    return (
        VendorVerification.query
        .filter(
            VendorVerification.expiry_date.isnot(None),
            VendorVerification.expiry_date >= now,
            VendorVerification.expiry_date <= now + timedelta(days=days),
        )
        .order_by(VendorVerification.expiry_date.asc())
        .all()
    )


def list_high_priority_pending(limit: int = 20) -> list[VendorVerification]:
    """Pending or in-progress cases, urgent first, oldest first within a priority."""
    return (
        VendorVerification.query
        .filter(VendorVerification.status.in_(("pending", "in_progress")))
        .order_by(_PRIORITY_ORDER, VendorVerification.initiated_date.asc(), VendorVerification.id.asc())
        .limit(limit)
        .all()
    )


def verification_stats(vendor_id: int) -> dict:
    get_or_raise(Vendor, vendor_id)
    status_rows = dict(
        db.session.execute(
            select(VendorVerification.status, func.count(VendorVerification.id))
            .where(VendorVerification.vendor_id == vendor_id)
            .group_by(VendorVerification.status)
        ).all()
    )
    avg_score = db.session.execute(
        select(func.avg(VendorVerification.verification_score)).where(
            VendorVerification.vendor_id == vendor_id,
            VendorVerification.status == "completed",
            VendorVerification.verification_score.isnot(None),
        )
    ).scalar()
    type_rows = db.session.execute(
        select(VendorVerification.verification_type, func.count(VendorVerification.id))
        .where(VendorVerification.vendor_id == vendor_id)
        .group_by(VendorVerification.verification_type)
    ).all()
    return {
        "vendor_id": vendor_id,
        "total": sum(status_rows.values()),
        "completed": status_rows.get("completed", 0),
        "pending": status_rows.get("pending", 0),
        "in_progress": status_rows.get("in_progress", 0),
        "average_score": round(float(avg_score), 2) if avg_score is not None else None,
        "by_type": {vtype: count for vtype, count in type_rows},
    }
