"""
Vendor Onboarding Platform
Blueprint registry and shared request helpers.
"""

import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from vendor_platform.core.exceptions import (
    ConflictError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def pagination_args(default_limit: int = 50, max_limit: int = 1000) -> tuple[int, int]:
    """Parse limit/offset pagination query parameters from the current request.

    Returns:
        Tuple of (limit, offset).
    """
    try:
        limit = max(min(int(request.args.get("limit", default_limit)), max_limit), 1)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return limit, offset


def actor(data: dict | None = None, field: str | None = None) -> str:
    """Who is acting: an explicit body field wins, then the X-User header."""
    if data and field and data.get(field):
        return str(data[field])
    return request.headers.get("X-User", "system")


def json_body() -> tuple[dict | None, tuple | None]:
    """Return (body, None) or (None, 400 response) when the body is not a JSON object."""
    data = request.get_json(silent=True)
    if data is None:
        data = {} if not request.data else None
    if not isinstance(data, dict):
        return None, (jsonify({"error": "Request body must be a JSON object"}), 400)
    return data, None


def list_response(items, total: int | None = None, **extra):
    payload = {"items": [i.to_dict() for i in items], "total": len(items) if total is None else total}
    payload.update(extra)
    return jsonify(payload), 200


def register_error_handlers(bp):
    """Map service-layer exceptions to HTTP responses for one blueprint."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        return jsonify({"error": str(error)}), 404

    @bp.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return jsonify({"error": str(error), "details": error.details}), 422

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return jsonify({"error": str(error)}), 409

    @bp.errorhandler(StorageError)
    def _handle_storage(error: StorageError):
        logger.error("Storage failure in %s endpoint=%s: %s", bp.name, request.endpoint, error)
        return jsonify({"error": str(error)}), 502

    @bp.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description}), error.code
        logger.exception("Unexpected error in %s endpoint=%s", bp.name, request.endpoint)
        return jsonify({"error": "Internal server error"}), 500

    return bp
