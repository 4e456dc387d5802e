"""
Vendor verification case blueprint.

Endpoints:
    POST /api/v1/vendor-verifications/vendor/<vendor_id>     initiate
    GET  /api/v1/vendor-verifications/vendor/<vendor_id>     list for vendor
    GET  /api/v1/vendor-verifications/<id>
    PUT  /api/v1/vendor-verifications/<id>/assign            {assigned_to}
    PUT  /api/v1/vendor-verifications/<id>/complete          {approved, verified_by?, notes?, score?}
    PUT  /api/v1/vendor-verifications/<id>/priority          {priority}
    PUT  /api/v1/vendor-verifications/<id>/cancel            {reason?, cancelled_by?}
    GET  /api/v1/vendor-verifications/overdue
    GET  /api/v1/vendor-verifications/expiring?days=30
    GET  /api/v1/vendor-verifications/high-priority?limit=20
    GET  /api/v1/vendor-verifications/stats/vendor/<vendor_id>
"""

import logging

from flask import Blueprint, jsonify, request

from vendor_platform.blueprints import actor, json_body, list_response, register_error_handlers
from vendor_platform.services import verification_service

logger = logging.getLogger(__name__)

verification_bp = Blueprint("vendor_verification", __name__, url_prefix="/api/v1/vendor-verifications")
register_error_handlers(verification_bp)


@verification_bp.route("/vendor/<int:vendor_id>", methods=["POST"])
def initiate_verification(vendor_id):
    data, err = json_body()
    if err:
        return err
    case_ = verification_service.initiate_verification(
        vendor_id,
        data.get("verification_type"),
        initiated_by=actor(data, "initiated_by"),
        details=data,
    )
    return jsonify(case_.to_dict()), 201


@verification_bp.route("/vendor/<int:vendor_id>", methods=["GET"])
def vendor_verifications(vendor_id):
    return list_response(verification_service.list_vendor_verifications(vendor_id))


@verification_bp.route("/<int:verification_id>", methods=["GET"])
def get_verification(verification_id):
    return jsonify(verification_service.get_verification(verification_id).to_dict()), 200


@verification_bp.route("/<int:verification_id>/assign", methods=["PUT"])
def assign_verification(verification_id):
    data, err = json_body()
    if err:
        return err
    if not data.get("assigned_to"):
        return jsonify({"error": "assigned_to is required"}), 400
    case_ = verification_service.assign_verification(verification_id, data["assigned_to"])
    return jsonify(case_.to_dict()), 200


@verification_bp.route("/<int:verification_id>/complete", methods=["PUT"])
def complete_verification(verification_id):
    data, err = json_body()
    if err:
        return err
    if not isinstance(data.get("approved"), bool):
        return jsonify({"error": "approved must be true or false"}), 400
    case_ = verification_service.complete_verification(
        verification_id,
        data["approved"],
        actor(data, "verified_by"),
        notes=data.get("notes"),
        score=data.get("score"),
    )
    return jsonify(case_.to_dict()), 200


@verification_bp.route("/<int:verification_id>/priority", methods=["PUT"])
def update_priority(verification_id):
    data, err = json_body()
    if err:
        return err
    case_ = verification_service.update_priority(verification_id, data.get("priority"))
    return jsonify(case_.to_dict()), 200


@verification_bp.route("/<int:verification_id>/cancel", methods=["PUT"])
def cancel_verification(verification_id):
    data, err = json_body()
    if err:
        return err
    case_ = verification_service.cancel_verification(
        verification_id, actor(data, "cancelled_by"), data.get("reason"),
    )
    return jsonify(case_.to_dict()), 200


@verification_bp.route("/overdue", methods=["GET"])
def overdue_verifications():
    return list_response(verification_service.list_overdue_verifications())


@verification_bp.route("/expiring", methods=["GET"])
def expiring_verifications():
    days = request.args.get("days", 30, type=int)
    return list_response(verification_service.list_expiring_verifications(days), days=days)


@verification_bp.route("/high-priority", methods=["GET"])
def high_priority_verifications():
    limit = request.args.get("limit", 20, type=int)
    return list_response(verification_service.list_high_priority_pending(limit))


@verification_bp.route("/stats/vendor/<int:vendor_id>", methods=["GET"])
def verification_stats(vendor_id):
    return jsonify(verification_service.verification_stats(vendor_id)), 200
