"""
Vendor document service.

Upload, verification and housekeeping for vendor supporting documents
(business licence, tax certificate, insurance, ...).

Verification state machine (status / verification_status move together):
    pending / not_verified  →  approved / verified    (verify_document)
    pending / not_verified  →  rejected / failed      (reject_document)

Rules:
  - verify/reject overwrite each other freely; re-verifying is not an error.
  - Expiry is derived from expiry_date on read (``VendorDocument.is_expired``),
    never written back by a background job.
  - Bytes live in the blob store; a failed blob write persists nothing.
  - A failed blob delete never blocks removing the document record.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import current_app
from sqlalchemy import func, select

from vendor_platform.core.exceptions import StorageError, ValidationError
from vendor_platform.integrations.blob_store import get_blob_store
from vendor_platform.models import db
from vendor_platform.models._time import utcnow as _utcnow
from vendor_platform.models.document import VendorDocument
from vendor_platform.models.vendor import Vendor
from vendor_platform.services import notification_service
from vendor_platform.services.helpers.lookups import get_or_raise
from vendor_platform.services.helpers.validation import clean_text, parse_datetime

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"document_name", "document_type", "expiry_date", "notes"}


# ── Upload / download ────────────────────────────────────────────────────────


def upload_document(
    vendor_id: int,
    content: bytes,
    filename: str,
    document_type: str,
    mime_type: str | None = None,
    expiry_date=None,
    created_by: str | None = None,
) -> VendorDocument:
    """Store the file and create a ``pending`` / ``not_verified`` record.

    Raises:
        NotFoundError: vendor does not exist.
        ValidationError: empty or oversized file, missing document_type.
        StorageError: the blob store rejected the write.
    """
    get_or_raise(Vendor, vendor_id)

    fields = {
        "document_type": document_type,
        "document_name": filename,
        "mime_type": mime_type,
    }
    document_type = clean_text(fields, "document_type", 50, required=True)
    document_name = clean_text(fields, "document_name", 255, required=True)
    mime_type = clean_text(fields, "mime_type", 100)
    expiry = parse_datetime(expiry_date, "expiry_date")

    if not content:
        raise ValidationError("Uploaded file is empty", details={"file": "empty"})
    max_bytes = current_app.config.get("DOCUMENT_MAX_BYTES", 10 * 1024 * 1024)
    if len(content) > max_bytes:
        raise ValidationError(
            f"File exceeds the {max_bytes} byte limit",
            details={"file": f"{len(content)} bytes > {max_bytes}"},
        )

    reference = get_blob_store().put(content, document_name)

    doc = VendorDocument(
        vendor_id=vendor_id,
        document_type=document_type,
        document_name=document_name,
        blob_ref=reference,
        file_size=len(content),
        mime_type=mime_type,
        status="pending",
        verification_status="not_verified",
        expiry_date=expiry,
        created_by=created_by,
        updated_by=created_by,
    )
    db.session.add(doc)
    db.session.commit()
    logger.info(
        "Document %s uploaded vendor_id=%s type=%s size=%d",
        doc.id, vendor_id, document_type, doc.file_size,
        extra={"vendor_id": vendor_id, "entity_type": "document", "entity_id": doc.id},
    )
    return doc


def get_document(document_id: int) -> VendorDocument:
    return get_or_raise(VendorDocument, document_id)


def download_document(document_id: int) -> tuple[VendorDocument, bytes]:
    """Return the record together with its stored bytes."""
    doc = get_or_raise(VendorDocument, document_id)
    if not doc.blob_ref:
        raise StorageError("Document has no stored file")
    return doc, get_blob_store().get(doc.blob_ref)


# ── Verification ─────────────────────────────────────────────────────────────


def verify_document(document_id: int, verified_by: str, notes: str | None = None) -> VendorDocument:
    doc = get_or_raise(VendorDocument, document_id)
    notes = clean_text({"notes": notes}, "notes", 1000)
    doc.status = "approved"
    doc.verification_status = "verified"
    doc.verified_by = verified_by
    doc.verified_date = _utcnow()
    doc.notes = notes
    doc.updated_by = verified_by
    db.session.commit()
    logger.info(
        "Document %s verified by %s", document_id, verified_by,
        extra={"vendor_id": doc.vendor_id, "entity_type": "document", "entity_id": doc.id},
    )
    notification_service.notify_document_verified(doc)
    return doc


def reject_document(document_id: int, rejected_by: str, reason: str | None = None) -> VendorDocument:
    doc = get_or_raise(VendorDocument, document_id)
    reason = clean_text({"notes": reason}, "notes", 1000)
    doc.status = "rejected"
    doc.verification_status = "failed"
    doc.verified_by = rejected_by
    doc.verified_date = _utcnow()
    doc.notes = reason
    doc.updated_by = rejected_by
    db.session.commit()
    logger.info(
        "Document %s rejected by %s", document_id, rejected_by,
        extra={"vendor_id": doc.vendor_id, "entity_type": "document", "entity_id": doc.id},
    )
    notification_service.notify_document_rejected(doc, reason)
    return doc


# ── Update / delete ──────────────────────────────────────────────────────────


def update_document(document_id: int, data: dict, updated_by: str | None = None) -> VendorDocument:
    """Edit descriptive fields. Status and verification fields are not editable here."""
    doc = get_or_raise(VendorDocument, document_id)
    if "document_name" in data:
        doc.document_name = clean_text(data, "document_name", 255, required=True)
    if "document_type" in data:
        doc.document_type = clean_text(data, "document_type", 50, required=True)
    if "expiry_date" in data:
        doc.expiry_date = parse_datetime(data.get("expiry_date"), "expiry_date")
    if "notes" in data:
        doc.notes = clean_text(data, "notes", 1000)
    doc.updated_by = updated_by
    db.session.commit()
    return doc


def delete_document(document_id: int) -> None:
    """Remove the record; the stored file is removed best-effort."""
    doc = get_or_raise(VendorDocument, document_id)
    vendor_id, reference = doc.vendor_id, doc.blob_ref

    if reference:
        try:
            get_blob_store().delete(reference)
        except StorageError as exc:
            logger.warning(
                "Blob delete failed for document %s ref=%s: %s (record removed anyway)",
                document_id, reference, exc,
                extra={"vendor_id": vendor_id, "entity_type": "document", "entity_id": document_id},
            )

    db.session.delete(doc)
    db.session.commit()
    logger.info("Document %s deleted", document_id, extra={"vendor_id": vendor_id})


# ── Query ────────────────────────────────────────────────────────────────────


def list_vendor_documents(vendor_id: int, document_type: str | None = None) -> list[VendorDocument]:
    get_or_raise(Vendor, vendor_id)
    q = VendorDocument.query.filter_by(vendor_id=vendor_id)
    if document_type:
        q = q.filter_by(document_type=document_type)
    return q.order_by(VendorDocument.created_at.desc(), VendorDocument.id.desc()).all()


def list_pending_documents(limit: int = 50, offset: int = 0):
    """Documents awaiting verification, oldest first.

    Returns:
        (items, total) tuple.
    """
    q = VendorDocument.query.filter_by(verification_status="not_verified")
    total = q.count()
    items = q.order_by(VendorDocument.created_at.asc(), VendorDocument.id.asc()).offset(offset).limit(limit).all()
    return items, total


def list_expiring_documents(days: int = 30) -> list[VendorDocument]:
    """Documents whose expiry_date falls within the next ``days`` days."""
    now = _utcnow()
    return (
        VendorDocument.query
        .filter(
            VendorDocument.expiry_date.isnot(None),
            VendorDocument.expiry_date >= now,
            VendorDocument.expiry_date <= now + timedelta(days=days),
        )
        .order_by(VendorDocument.expiry_date.asc())
        .all()
    )


def list_expired_documents() -> list[VendorDocument]:
    return (
        VendorDocument.query
        .filter(VendorDocument.expiry_date.isnot(None), VendorDocument.expiry_date <= _utcnow())
        .order_by(VendorDocument.expiry_date.asc())
        .all()
    )


def vendor_document_stats(vendor_id: int) -> dict:
    get_or_raise(Vendor, vendor_id)
    rows = dict(
        db.session.execute(
            select(VendorDocument.verification_status, func.count(VendorDocument.id))
            .where(VendorDocument.vendor_id == vendor_id)
            .group_by(VendorDocument.verification_status)
        ).all()
    )
    return {
        "vendor_id": vendor_id,
        "total": sum(rows.values()),
        "verified": rows.get("verified", 0),
        "pending": rows.get("not_verified", 0),
        "rejected": rows.get("failed", 0),
    }


def verification_stats() -> dict:
    rows = dict(
        db.session.execute(
            select(VendorDocument.verification_status, func.count(VendorDocument.id))
            .group_by(VendorDocument.verification_status)
        ).all()
    )
    return {
        "pending": rows.get("not_verified", 0),
        "verified": rows.get("verified", 0),
        "rejected": rows.get("failed", 0),
        "total": sum(rows.values()),
    }
