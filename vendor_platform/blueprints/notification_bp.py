"""
Vendor notification blueprint.

Endpoints:
    POST   /api/v1/vendor-notifications                          create
    GET    /api/v1/vendor-notifications/<id>
    DELETE /api/v1/vendor-notifications/<id>                     physical delete
    PUT    /api/v1/vendor-notifications/<id>/read|archive|discard|complete-action
    GET    /api/v1/vendor-notifications/vendor/<vendor_id>       paginated, excludes deleted
    GET    /api/v1/vendor-notifications/vendor/<vendor_id>/unread|pending-actions|overdue-actions|recent
    PUT    /api/v1/vendor-notifications/vendor/<vendor_id>/read-all
    GET    /api/v1/vendor-notifications/stats/vendor/<vendor_id>
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
from vendor_platform.services import notification_service

logger = logging.getLogger(__name__)

notification_bp = Blueprint("vendor_notification", __name__, url_prefix="/api/v1/vendor-notifications")
register_error_handlers(notification_bp)


@notification_bp.route("", methods=["POST"])
def create_notification():
    """Body: {vendor_id, type, title, message, priority?, action_required?, ...}"""
    data, err = json_body()
    if err:
        return err
    vendor_id = data.get("vendor_id")
    if not isinstance(vendor_id, int) or isinstance(vendor_id, bool):
        return jsonify({"error": "vendor_id is required"}), 400
    notif = notification_service.create_notification(vendor_id, data, created_by=actor(data, "created_by"))
    return jsonify(notif.to_dict()), 201


@notification_bp.route("/<int:notification_id>", methods=["GET"])
def get_notification(notification_id):
    return jsonify(notification_service.get_notification(notification_id).to_dict()), 200


@notification_bp.route("/<int:notification_id>", methods=["DELETE"])
def delete_notification(notification_id):
    notification_service.delete_notification(notification_id)
    return jsonify({"message": "Notification deleted"}), 200


_ACTIONS = {
    "read": notification_service.mark_read,
    "archive": notification_service.archive,
    "discard": notification_service.discard,
    "complete-action": notification_service.complete_action,
}


@notification_bp.route("/<int:notification_id>/<action>", methods=["PUT"])
def notification_action(notification_id, action):
    fn = _ACTIONS.get(action)
    if fn is None:
        return jsonify({"error": f"Unknown action: {action}"}), 404
    return jsonify(fn(notification_id).to_dict()), 200


@notification_bp.route("/vendor/<int:vendor_id>", methods=["GET"])
def vendor_notifications(vendor_id):
    limit, offset = pagination_args()
    items, total = notification_service.list_vendor_notifications(vendor_id, limit, offset)
    return list_response(items, total, limit=limit, offset=offset)


@notification_bp.route("/vendor/<int:vendor_id>/unread", methods=["GET"])
def unread_notifications(vendor_id):
    return list_response(notification_service.list_unread(vendor_id))


@notification_bp.route("/vendor/<int:vendor_id>/pending-actions", methods=["GET"])
def pending_actions(vendor_id):
    return list_response(notification_service.list_pending_actions(vendor_id))


@notification_bp.route("/vendor/<int:vendor_id>/overdue-actions", methods=["GET"])
def overdue_actions(vendor_id):
    return list_response(notification_service.list_overdue_actions(vendor_id))


@notification_bp.route("/vendor/<int:vendor_id>/recent", methods=["GET"])
def recent_notifications(vendor_id):
    limit = request.args.get("limit", 10, type=int)
    return list_response(notification_service.list_recent(vendor_id, limit))


@notification_bp.route("/vendor/<int:vendor_id>/related/<entity_type>/<int:entity_id>", methods=["GET"])
def related_notifications(vendor_id, entity_type, entity_id):
    return list_response(notification_service.list_by_related_entity(vendor_id, entity_type, entity_id))


@notification_bp.route("/vendor/<int:vendor_id>/read-all", methods=["PUT"])
def mark_all_read(vendor_id):
    count = notification_service.mark_all_read(vendor_id)
    return jsonify({"updated": count}), 200


@notification_bp.route("/stats/vendor/<int:vendor_id>", methods=["GET"])
def notification_stats(vendor_id):
    return jsonify(notification_service.notification_stats(vendor_id)), 200
