"""
Vendor notification service.

Central service for creating, tracking and querying vendor notifications,
plus the workflow helpers (``notify_*``) that the document, review,
verification and vendor services call when something a vendor should hear
about happens.

Status machine (see models/notification.py):
    unread → read → archived
    deleted is terminal and reachable from any other state.

Rules:
  - mark_read is idempotent on an already-read notification.
  - mark_all_read touches only unread rows and stamps one shared read_date.
  - action_completed can only be set on action-required notifications.
  - Workflow helpers are no-ops when WORKFLOW_NOTIFICATIONS_ENABLED is off.
"""

from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy import case, func, select

from vendor_platform.core.exceptions import ValidationError
from vendor_platform.models import db
from vendor_platform.models._time import utcnow as _utcnow
from vendor_platform.models.notification import (
    NOTIFICATION_PRIORITIES,
    RELATED_ENTITY_TYPES,
    VendorNotification,
    validate_notification_transition,
)
from vendor_platform.models.vendor import Vendor
from vendor_platform.services.helpers.lookups import get_or_raise
from vendor_platform.services.helpers.validation import (
    check_choice,
    clean_text,
    parse_bool,
    parse_datetime,
    parse_int,
)

logger = logging.getLogger(__name__)

_PRIORITY_ORDER = case(
    (VendorNotification.priority == "urgent", 0),
    (VendorNotification.priority == "high", 1),
    (VendorNotification.priority == "normal", 2),
    else_=3,
)


# ── Create ───────────────────────────────────────────────────────────────────


def create_notification(vendor_id: int, data: dict, created_by: str | None = None) -> VendorNotification:
    """Create a notification for a vendor. Always starts ``unread``.

    Raises:
        NotFoundError: vendor does not exist.
        ValidationError: missing/oversized text, unknown priority, or
            ``action_completed`` without ``action_required``.
    """
    get_or_raise(Vendor, vendor_id)

    action_required = parse_bool(data.get("action_required"), "action_required")
    action_completed = parse_bool(data.get("action_completed"), "action_completed")
    if action_completed and not action_required:
        raise ValidationError(
            "action_completed requires action_required",
            details={"action_completed": "only allowed when action_required is true"},
        )

    notif = VendorNotification(
        vendor_id=vendor_id,
        type=clean_text(data, "type", 50, required=True),
        title=clean_text(data, "title", 200, required=True),
        message=clean_text(data, "message", 1000, required=True),
        priority=check_choice(data.get("priority") or "normal", NOTIFICATION_PRIORITIES, "priority"),
        status="unread",
        action_required=action_required,
        action_url=clean_text(data, "action_url", 500),
        action_deadline=parse_datetime(data.get("action_deadline"), "action_deadline"),
        action_completed=action_completed,
        action_completed_date=_utcnow() if action_completed else None,
        related_entity_type=check_choice(
            clean_text(data, "related_entity_type", 50), RELATED_ENTITY_TYPES, "related_entity_type"
        ),
        related_entity_id=parse_int(data.get("related_entity_id"), "related_entity_id", minimum=1),
        created_by=created_by,
    )
    db.session.add(notif)
    db.session.commit()
    logger.info(
        "Notification %s created vendor_id=%s type=%s priority=%s",
        notif.id, vendor_id, notif.type, notif.priority,
        extra={"vendor_id": vendor_id, "entity_type": "notification", "entity_id": notif.id},
    )
    return notif


def get_notification(notification_id: int) -> VendorNotification:
    return get_or_raise(VendorNotification, notification_id)


# ── Status transitions ───────────────────────────────────────────────────────


def _transition(notif: VendorNotification, new_status: str) -> None:
    if not validate_notification_transition(notif.status, new_status):
        raise ValidationError(
            f"Invalid transition: {notif.status} → {new_status}",
            details={"status": f"cannot move from {notif.status} to {new_status}"},
        )
    notif.status = new_status


def mark_read(notification_id: int) -> VendorNotification:
    """Mark a notification read. Calling it again on a read one is a no-op."""
    notif = get_or_raise(VendorNotification, notification_id)
    if notif.status == "read":
        return notif
    _transition(notif, "read")
    notif.mark_read()
    db.session.commit()
    return notif


def mark_all_read(vendor_id: int) -> int:
    """Mark every unread notification of a vendor read; return how many changed."""
    get_or_raise(Vendor, vendor_id)
    now = _utcnow()
    count = (
        VendorNotification.query
        .filter_by(vendor_id=vendor_id, status="unread")
        .update({"status": "read", "read_date": now}, synchronize_session="fetch")
    )
    db.session.commit()
    logger.info("Marked %d notification(s) read vendor_id=%s", count, vendor_id, extra={"vendor_id": vendor_id})
    return count


def archive(notification_id: int) -> VendorNotification:
    notif = get_or_raise(VendorNotification, notification_id)
    was_unread = notif.status == "unread"
    _transition(notif, "archived")
    if was_unread and notif.read_date is None:
        notif.read_date = _utcnow()
    db.session.commit()
    return notif


def discard(notification_id: int) -> VendorNotification:
    """Soft-delete: move to ``deleted`` but keep the row."""
    notif = get_or_raise(VendorNotification, notification_id)
    _transition(notif, "deleted")
    db.session.commit()
    return notif


def complete_action(notification_id: int) -> VendorNotification:
    notif = get_or_raise(VendorNotification, notification_id)
    if not notif.action_required:
        raise ValidationError(
            "Notification does not require an action",
            details={"action_required": "false"},
        )
    if not notif.action_completed:
        notif.action_completed = True
        notif.action_completed_date = _utcnow()
        db.session.commit()
    return notif


def delete_notification(notification_id: int) -> None:
    """Physically remove a notification row."""
    notif = get_or_raise(VendorNotification, notification_id)
    db.session.delete(notif)
    db.session.commit()
    logger.info("Notification %s deleted", notification_id)


# ── Query ────────────────────────────────────────────────────────────────────


def _vendor_query(vendor_id: int):
    return VendorNotification.query.filter(
        VendorNotification.vendor_id == vendor_id,
        VendorNotification.status != "deleted",
    )


def list_vendor_notifications(vendor_id: int, limit: int = 50, offset: int = 0):
    """Vendor notifications newest first, excluding deleted.

    Returns:
        (items, total) tuple.
    """
    q = _vendor_query(vendor_id)
    total = q.count()
    items = (
        q.order_by(VendorNotification.created_at.desc(), VendorNotification.id.desc())
        .offset(offset).limit(limit).all()
    )
    return items, total


def list_unread(vendor_id: int) -> list[VendorNotification]:
    """Unread notifications, urgent first then newest first."""
    return (
        VendorNotification.query
        .filter_by(vendor_id=vendor_id, status="unread")
        .order_by(_PRIORITY_ORDER, VendorNotification.created_at.desc(), VendorNotification.id.desc())
        .all()
    )


def list_pending_actions(vendor_id: int) -> list[VendorNotification]:
    return (
        _vendor_query(vendor_id)
        .filter(
            VendorNotification.action_required.is_(True),
            VendorNotification.action_completed.is_(False),
        )
        .order_by(VendorNotification.action_deadline.asc(), VendorNotification.id.asc())
        .all()
    )


def list_overdue_actions(vendor_id: int) -> list[VendorNotification]:
    return (
        _vendor_query(vendor_id)
        .filter(
            VendorNotification.action_required.is_(True),
            VendorNotification.action_completed.is_(False),
            VendorNotification.action_deadline.isnot(None),
            VendorNotification.action_deadline < _utcnow(),
        )
        .order_by(VendorNotification.action_deadline.asc())
        .all()
    )


def list_recent(vendor_id: int, limit: int = 10) -> list[VendorNotification]:
    return (
        _vendor_query(vendor_id)
        .order_by(VendorNotification.created_at.desc(), VendorNotification.id.desc())
        .limit(limit)
        .all()
    )


def list_by_related_entity(vendor_id: int, entity_type: str, entity_id: int) -> list[VendorNotification]:
    return (
        _vendor_query(vendor_id)
        .filter_by(related_entity_type=entity_type, related_entity_id=entity_id)
        .order_by(VendorNotification.created_at.desc())
        .all()
    )


def notification_stats(vendor_id: int) -> dict:
    get_or_raise(Vendor, vendor_id)
    unread = _vendor_query(vendor_id).filter_by(status="unread").count()
    urgent_unread = _vendor_query(vendor_id).filter_by(status="unread", priority="urgent").count()
    rows = db.session.execute(
        select(VendorNotification.type, func.count(VendorNotification.id))
        .where(VendorNotification.vendor_id == vendor_id, VendorNotification.status != "deleted")
        .group_by(VendorNotification.type)
    ).all()
    return {
        "vendor_id": vendor_id,
        "unread": unread,
        "urgent_unread": urgent_unread,
        "pending_actions": len(list_pending_actions(vendor_id)),
        "by_type": {row[0]: row[1] for row in rows},
    }


# ── Workflow helpers ─────────────────────────────────────────────────────────


def _emit(vendor_id: int, *, notification_type: str, title: str, message: str, priority: str = "normal",
          entity_type: str | None = None, entity_id: int | None = None,
          action_required: bool = False, created_by: str | None = None) -> VendorNotification | None:
    if not current_app.config.get("WORKFLOW_NOTIFICATIONS_ENABLED", True):
        return None
    notif = VendorNotification(
        vendor_id=vendor_id,
        type=notification_type,
        title=title[:200],
        message=message[:1000],
        priority=priority,
        status="unread",
        action_required=action_required,
        related_entity_type=entity_type,
        related_entity_id=entity_id,
        created_by=created_by,
    )
    db.session.add(notif)
    db.session.commit()
    logger.debug(
        "Workflow notification type=%s vendor_id=%s", notification_type, vendor_id,
        extra={"vendor_id": vendor_id, "event_type": notification_type, "entity_type": entity_type, "entity_id": entity_id},
    )
    return notif


def notify_document_verified(document):
    """Create notification when a document passes verification."""
    return _emit(
        document.vendor_id,
        notification_type="document_verified",
        title=f"Document verified: {document.document_name}",
        message=f"Your {document.document_type} document has been verified.",
        entity_type="document",
        entity_id=document.id,
        created_by=document.verified_by,
    )


def notify_document_rejected(document, reason: str | None = None):
    """Create notification when a document is rejected; the vendor must re-upload."""
    return _emit(
        document.vendor_id,
        notification_type="document_rejected",
        title=f"Document rejected: {document.document_name}",
        message=f"Your {document.document_type} document was rejected. Reason: {reason or 'not given'}.",
        priority="high",
        entity_type="document",
        entity_id=document.id,
        action_required=True,
        created_by=document.verified_by,
    )


def notify_review_approved(review):
    """Create notification when a customer review is published."""
    return _emit(
        review.vendor_id,
        notification_type="review_approved",
        title="New review published",
        message=f"A review rated {review.rating} is now visible on your profile.",
        priority="low",
        entity_type="review",
        entity_id=review.id,
        created_by=review.moderated_by,
    )


def notify_verification_completed(case_):
    """Create notification when a verification case closes (approved or rejected)."""
    approved = case_.status == "completed"
    return _emit(
        case_.vendor_id,
        notification_type="verification_completed" if approved else "verification_rejected",
        title=f"{case_.verification_type} verification {'completed' if approved else 'rejected'}",
        message=(
            "Your verification was approved."
            if approved
            else f"Your verification was rejected. Reason: {case_.rejection_reason or 'not given'}."
        ),
        priority="normal" if approved else "high",
        entity_type="verification",
        entity_id=case_.id,
        action_required=not approved,
        created_by=case_.completed_by,
    )


def notify_verification_cancelled(case_):
    return _emit(
        case_.vendor_id,
        notification_type="verification_cancelled",
        title=f"{case_.verification_type} verification cancelled",
        message=f"The verification case was cancelled. Reason: {case_.notes or 'not given'}.",
        entity_type="verification",
        entity_id=case_.id,
        created_by=case_.updated_by,
    )


def notify_vendor_verified(vendor):
    return _emit(
        vendor.id,
        notification_type="vendor_verified",
        title="Your vendor account is verified",
        message=f"Verification confirmed by {vendor.verified_by}. Current status: {vendor.status}.",
        priority="high",
        entity_type="vendor",
        entity_id=vendor.id,
        created_by=vendor.verified_by,
    )


def notify_status_changed(vendor, old_status: str):
    priority = "urgent" if vendor.status in ("suspended", "blacklisted") else "normal"
    return _emit(
        vendor.id,
        notification_type="status_changed",
        title=f"Account status changed to {vendor.status}",
        message=f"Your vendor account moved from {old_status} to {vendor.status}.",
        priority=priority,
        entity_type="vendor",
        entity_id=vendor.id,
        created_by=vendor.updated_by,
    )
