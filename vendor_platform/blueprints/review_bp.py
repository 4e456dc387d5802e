"""
Vendor review blueprint.

Endpoint groups:
  Submit / read   POST /api/v1/vendor-reviews
                  GET/DELETE /api/v1/vendor-reviews/<id>
  Moderation      PUT /api/v1/vendor-reviews/<id>/approve|reject|flag|hide
  Engagement      POST /api/v1/vendor-reviews/<id>/helpful|not-helpful
                  PUT  /api/v1/vendor-reviews/<id>/vendor-response
  Per vendor      GET /api/v1/vendor-reviews/vendor/<vendor_id>
                  GET .../positive|negative|most-helpful|date-range|pending-response|stats
"""

import logging

from flask import Blueprint, jsonify, request

from vendor_platform.blueprints import (
    actor,
    json_body,
    list_response,
    pagination_args,
    register_error_handlers,
)
from vendor_platform.services import review_service

logger = logging.getLogger(__name__)

review_bp = Blueprint("vendor_review", __name__, url_prefix="/api/v1/vendor-reviews")
register_error_handlers(review_bp)


@review_bp.route("", methods=["POST"])
def create_review():
    """Body: {vendor_id, rating, customer_email?, customer_name?, title?, comment?, ...}"""
    data, err = json_body()
    if err:
        return err
    vendor_id = data.get("vendor_id")
    if not isinstance(vendor_id, int) or isinstance(vendor_id, bool):
        return jsonify({"error": "vendor_id is required"}), 400
    review = review_service.create_review(vendor_id, data)
    return jsonify(review.to_dict()), 201


@review_bp.route("/<int:review_id>", methods=["GET"])
def get_review(review_id):
    return jsonify(review_service.get_review(review_id).to_dict()), 200


@review_bp.route("/<int:review_id>", methods=["DELETE"])
def delete_review(review_id):
    review_service.delete_review(review_id)
    return jsonify({"message": "Review deleted"}), 200


# ── Moderation ───────────────────────────────────────────────────────────────


@review_bp.route("/<int:review_id>/approve", methods=["PUT"])
def approve_review(review_id):
    data, err = json_body()
    if err:
        return err
    review = review_service.approve_review(review_id, actor(data, "moderated_by"))
    return jsonify(review.to_dict()), 200


def _moderate(review_id, fn):
    data, err = json_body()
    if err:
        return err
    review = fn(review_id, data.get("reason"), actor(data, "moderated_by"))
    return jsonify(review.to_dict()), 200


@review_bp.route("/<int:review_id>/reject", methods=["PUT"])
def reject_review(review_id):
    """Body: {reason?, moderated_by?}"""
    return _moderate(review_id, review_service.reject_review)


@review_bp.route("/<int:review_id>/flag", methods=["PUT"])
def flag_review(review_id):
    return _moderate(review_id, review_service.flag_review)


@review_bp.route("/<int:review_id>/hide", methods=["PUT"])
def hide_review(review_id):
    return _moderate(review_id, review_service.hide_review)


# ── Engagement ───────────────────────────────────────────────────────────────


@review_bp.route("/<int:review_id>/helpful", methods=["POST"])
def mark_helpful(review_id):
    return jsonify(review_service.mark_helpful(review_id).to_dict()), 200


@review_bp.route("/<int:review_id>/not-helpful", methods=["POST"])
def mark_not_helpful(review_id):
    return jsonify(review_service.mark_not_helpful(review_id).to_dict()), 200


@review_bp.route("/<int:review_id>/vendor-response", methods=["PUT"])
def vendor_response(review_id):
    """Body: {response}"""
    data, err = json_body()
    if err:
        return err
    review = review_service.add_vendor_response(review_id, data.get("response"))
    return jsonify(review.to_dict()), 200


# ── Per vendor ───────────────────────────────────────────────────────────────


@review_bp.route("/vendor/<int:vendor_id>", methods=["GET"])
def vendor_reviews(vendor_id):
    """Query params: status, limit, offset"""
    limit, offset = pagination_args()
    items, total = review_service.list_vendor_reviews(
        vendor_id, status=request.args.get("status"), limit=limit, offset=offset,
    )
    return list_response(items, total, limit=limit, offset=offset)


@review_bp.route("/vendor/<int:vendor_id>/positive", methods=["GET"])
def positive_reviews(vendor_id):
    return list_response(review_service.list_positive_reviews(vendor_id, request.args.get("min_rating", "4.0")))


@review_bp.route("/vendor/<int:vendor_id>/negative", methods=["GET"])
def negative_reviews(vendor_id):
    return list_response(review_service.list_negative_reviews(vendor_id, request.args.get("max_rating", "3.0")))


@review_bp.route("/vendor/<int:vendor_id>/most-helpful", methods=["GET"])
def most_helpful_reviews(vendor_id):
    limit = request.args.get("limit", 10, type=int)
    return list_response(review_service.list_most_helpful_reviews(vendor_id, limit))


@review_bp.route("/vendor/<int:vendor_id>/date-range", methods=["GET"])
def reviews_in_range(vendor_id):
    """Query params: start_date, end_date (ISO-8601)"""
    items = review_service.list_reviews_in_range(
        vendor_id, request.args.get("start_date"), request.args.get("end_date"),
    )
    return list_response(items)


@review_bp.route("/vendor/<int:vendor_id>/pending-response", methods=["GET"])
def pending_response_reviews(vendor_id):
    return list_response(review_service.list_pending_response_reviews(vendor_id))


@review_bp.route("/vendor/<int:vendor_id>/stats", methods=["GET"])
def review_stats(vendor_id):
    return jsonify(review_service.review_stats(vendor_id)), 200
