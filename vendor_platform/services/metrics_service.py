"""
Vendor rating aggregates.

``recompute_vendor_metrics`` is the only writer of ``Vendor.average_rating``
and ``Vendor.total_reviews``. It always recomputes from scratch over the
vendor's approved reviews, so it is idempotent and can be re-run at any time
to repair drift (e.g. after a crash between a review commit and the
recompute that should follow it).
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import func, select

from vendor_platform.models import db
from vendor_platform.models.review import VendorReview
from vendor_platform.models.vendor import Vendor
from vendor_platform.services.helpers.lookups import get_or_raise

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


def compute_rating_summary(vendor_id: int) -> tuple[Decimal, int]:
    """Return (average, count) over the vendor's approved reviews.

    The average is rounded half-up to two decimals; 0.00 when there are no
    approved reviews.
    """
    avg, count = db.session.execute(
        select(func.avg(VendorReview.rating), func.count(VendorReview.id)).where(
            VendorReview.vendor_id == vendor_id,
            VendorReview.status == "approved",
        )
    ).one()
    if not count or avg is None:
        return Decimal("0.00"), 0
    return Decimal(str(avg)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP), int(count)


def recompute_vendor_metrics(vendor_id: int) -> Vendor:
    """Write the approved-review average and count onto the vendor and commit."""
    vendor = get_or_raise(Vendor, vendor_id)
    average, total = compute_rating_summary(vendor_id)
    vendor.average_rating = average
    vendor.total_reviews = total
    db.session.commit()
    logger.info(
        "Vendor metrics recomputed vendor_id=%s average=%s total=%d",
        vendor_id, average, total,
        extra={"vendor_id": vendor_id},
    )
    return vendor
