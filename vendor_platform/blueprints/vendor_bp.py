"""
Vendor blueprint.

Endpoint groups:
  CRUD            POST/GET /api/v1/vendors
                  GET/PUT/DELETE /api/v1/vendors/<id>
  Lifecycle       PATCH /api/v1/vendors/<id>/status
                  PUT   /api/v1/vendors/<id>/verify
                  GET   /api/v1/vendors/<id>/verification-status
                  POST  /api/v1/vendors/<id>/update-metrics
  Listings        GET /api/v1/vendors/recent|verified|top-rated|top-performing|needing-attention
  Analytics       GET /api/v1/vendors/stats
                  GET /api/v1/vendors/analytics/<dimension>-distribution

DELETE is a soft delete (status → inactive). Service layer owns all business
logic and commits.
"""

import logging

from flask import Blueprint, current_app, jsonify, request

from vendor_platform.blueprints import (
    actor,
    json_body,
    list_response,
    pagination_args,
    register_error_handlers,
)
from vendor_platform.services import metrics_service, vendor_service

logger = logging.getLogger(__name__)

vendor_bp = Blueprint("vendor", __name__, url_prefix="/api/v1/vendors")
register_error_handlers(vendor_bp)


# ═════════════════════════════════════════════════════════════════════════
# CRUD
# ═════════════════════════════════════════════════════════════════════════


@vendor_bp.route("", methods=["POST"])
def create_vendor():
    """Register a vendor.

    Body: {name, contact_email, phone?, website?, address fields?, ...}
    Returns: created vendor (201).
    """
    data, err = json_body()
    if err:
        return err
    vendor = vendor_service.create_vendor(data, created_by=actor(data, "created_by"))
    return jsonify(vendor.to_dict()), 201


@vendor_bp.route("", methods=["GET"])
def list_vendors():
    """List vendors.

    Query params: status, category, city, state, min_rating, search, limit, offset
    """
    limit, offset = pagination_args()
    items, total = vendor_service.list_vendors(
        status=request.args.get("status"),
        category=request.args.get("category"),
        city=request.args.get("city"),
        state=request.args.get("state"),
        min_rating=request.args.get("min_rating"),
        search=request.args.get("search"),
        limit=limit,
        offset=offset,
    )
    return list_response(items, total, limit=limit, offset=offset)


@vendor_bp.route("/<int:vendor_id>", methods=["GET"])
def get_vendor(vendor_id):
    return jsonify(vendor_service.get_vendor(vendor_id).to_dict()), 200


@vendor_bp.route("/<int:vendor_id>", methods=["PUT"])
def update_vendor(vendor_id):
    data, err = json_body()
    if err:
        return err
    vendor = vendor_service.update_vendor(vendor_id, data, updated_by=actor(data, "updated_by"))
    return jsonify(vendor.to_dict()), 200


@vendor_bp.route("/<int:vendor_id>", methods=["DELETE"])
def delete_vendor(vendor_id):
    vendor = vendor_service.delete_vendor(vendor_id, updated_by=actor())
    return jsonify({"message": "Vendor deactivated", "vendor": vendor.to_dict()}), 200


# ═════════════════════════════════════════════════════════════════════════
# Lifecycle
# ═════════════════════════════════════════════════════════════════════════


@vendor_bp.route("/<int:vendor_id>/status", methods=["PATCH"])
def update_status(vendor_id):
    """Body: {status, updated_by?}"""
    data, err = json_body()
    if err:
        return err
    status = data.get("status")
    if not status:
        return jsonify({"error": "status is required"}), 400
    vendor = vendor_service.set_status(vendor_id, status, updated_by=actor(data, "updated_by"))
    return jsonify(vendor.to_dict()), 200


@vendor_bp.route("/<int:vendor_id>/verify", methods=["PUT"])
def verify_vendor(vendor_id):
    """Body: {verified_by?}; falls back to the X-User header."""
    data, err = json_body()
    if err:
        return err
    vendor = vendor_service.mark_verified(vendor_id, actor(data, "verified_by"))
    return jsonify(vendor.to_dict()), 200


@vendor_bp.route("/<int:vendor_id>/verification-status", methods=["GET"])
def verification_status(vendor_id):
    return jsonify(vendor_service.verification_overview(vendor_id)), 200


@vendor_bp.route("/<int:vendor_id>/update-metrics", methods=["POST"])
def update_metrics(vendor_id):
    vendor = metrics_service.recompute_vendor_metrics(vendor_id)
    return jsonify(vendor.to_dict()), 200


# ═════════════════════════════════════════════════════════════════════════
# Listings
# ═════════════════════════════════════════════════════════════════════════


@vendor_bp.route("/recent", methods=["GET"])
def recent_vendors():
    limit = request.args.get("limit", 10, type=int)
    return list_response(vendor_service.list_recent_vendors(limit))


@vendor_bp.route("/verified", methods=["GET"])
def verified_vendors():
    return list_response(vendor_service.list_verified_vendors())


@vendor_bp.route("/top-rated", methods=["GET"])
def top_rated_vendors():
    return list_response(vendor_service.list_top_rated_vendors(request.args.get("min_rating", "4.0")))


@vendor_bp.route("/top-performing", methods=["GET"])
def top_performing_vendors():
    limit = request.args.get("limit", 10, type=int)
    return list_response(vendor_service.list_top_performing_vendors(limit))


@vendor_bp.route("/needing-attention", methods=["GET"])
def vendors_needing_attention():
    days = request.args.get("days", current_app.config.get("REVERIFICATION_AFTER_DAYS", 30), type=int)
    return list_response(vendor_service.list_vendors_needing_attention(days), days=days)


# ═════════════════════════════════════════════════════════════════════════
# Analytics
# ═════════════════════════════════════════════════════════════════════════


@vendor_bp.route("/stats", methods=["GET"])
def vendor_stats():
    return jsonify(vendor_service.vendor_counts()), 200


_DISTRIBUTIONS = {
    "category": vendor_service.category_distribution,
    "status": vendor_service.status_distribution,
    "geographic": vendor_service.geographic_distribution,
}


@vendor_bp.route("/analytics/<dimension>-distribution", methods=["GET"])
def distribution(dimension):
    fn = _DISTRIBUTIONS.get(dimension)
    if fn is None:
        return jsonify({"error": f"Unknown distribution: {dimension}"}), 404
    return jsonify({"dimension": dimension, "distribution": fn()}), 200
