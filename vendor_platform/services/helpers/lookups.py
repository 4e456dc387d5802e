"""
Get-by-id helper.

Every service lookup goes through ``get_or_raise`` so a missing row surfaces
as ``NotFoundError`` (HTTP 404) with the same message shape everywhere,
instead of ``None`` leaking into business logic.

Usage:
    vendor = get_or_raise(Vendor, vendor_id)
"""

import logging

from sqlalchemy import select

from vendor_platform.core.exceptions import NotFoundError
from vendor_platform.models import db

logger = logging.getLogger(__name__)


def get_or_raise(model, pk: int):
    """Fetch a single entity by PK.

    Args:
        model: SQLAlchemy model class with an ``id`` PK column.
        pk: Primary key value to look up.

    Raises:
        NotFoundError: If the entity does not exist.
    """
    result = db.session.execute(select(model).where(model.id == pk)).scalar_one_or_none()
    if result is None:
        logger.debug("get_or_raise: %s id=%s not found", model.__name__, pk)
        raise NotFoundError(resource=model.__name__, resource_id=pk)
    return result
