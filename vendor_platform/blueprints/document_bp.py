"""
Vendor document blueprint.

Endpoints:
    POST   /api/v1/vendor-documents/upload                      multipart upload
    GET    /api/v1/vendor-documents/<id>
    PUT    /api/v1/vendor-documents/<id>                        name/type/expiry/notes
    DELETE /api/v1/vendor-documents/<id>
    GET    /api/v1/vendor-documents/<id>/download
    PUT    /api/v1/vendor-documents/<id>/verify
    PUT    /api/v1/vendor-documents/<id>/reject
    GET    /api/v1/vendor-documents/vendor/<vendor_id>
    GET    /api/v1/vendor-documents/pending-verification
    GET    /api/v1/vendor-documents/expiring?days=30
    GET    /api/v1/vendor-documents/expired
    GET    /api/v1/vendor-documents/stats/verification
    GET    /api/v1/vendor-documents/stats/vendor/<vendor_id>
"""

import io
import logging

from flask import Blueprint, jsonify, request, send_file

from vendor_platform.blueprints import (
    actor,
    json_body,
    list_response,
    pagination_args,
    register_error_handlers,
)
from vendor_platform.services import document_service

logger = logging.getLogger(__name__)

document_bp = Blueprint("vendor_document", __name__, url_prefix="/api/v1/vendor-documents")
register_error_handlers(document_bp)


@document_bp.route("/upload", methods=["POST"])
def upload_document():
    """Multipart form: file, vendor_id, document_type, expiry_date?"""
    upload = request.files.get("file")
    if upload is None or not upload.filename:
        return jsonify({"error": "file is required"}), 400
    vendor_id = request.form.get("vendor_id", type=int)
    if not vendor_id:
        return jsonify({"error": "vendor_id is required"}), 400

    doc = document_service.upload_document(
        vendor_id,
        upload.read(),
        upload.filename,
        request.form.get("document_type", ""),
        mime_type=upload.mimetype,
        expiry_date=request.form.get("expiry_date"),
        created_by=actor(request.form, "created_by"),
    )
    return jsonify(doc.to_dict()), 201


@document_bp.route("/<int:document_id>", methods=["GET"])
def get_document(document_id):
    return jsonify(document_service.get_document(document_id).to_dict()), 200


@document_bp.route("/<int:document_id>", methods=["PUT"])
def update_document(document_id):
    data, err = json_body()
    if err:
        return err
    doc = document_service.update_document(document_id, data, updated_by=actor(data, "updated_by"))
    return jsonify(doc.to_dict()), 200


@document_bp.route("/<int:document_id>", methods=["DELETE"])
def delete_document(document_id):
    document_service.delete_document(document_id)
    return jsonify({"message": "Document deleted"}), 200


@document_bp.route("/<int:document_id>/download", methods=["GET"])
def download_document(document_id):
    doc, content = document_service.download_document(document_id)
    return send_file(
        io.BytesIO(content),
        mimetype=doc.mime_type or "application/octet-stream",
        as_attachment=True,
        download_name=doc.document_name,
    )


@document_bp.route("/<int:document_id>/verify", methods=["PUT"])
def verify_document(document_id):
    """Body: {verified_by?, notes?}"""
    data, err = json_body()
    if err:
        return err
    doc = document_service.verify_document(document_id, actor(data, "verified_by"), data.get("notes"))
    return jsonify(doc.to_dict()), 200


@document_bp.route("/<int:document_id>/reject", methods=["PUT"])
def reject_document(document_id):
    """Body: {rejected_by?, reason}"""
    data, err = json_body()
    if err:
        return err
    doc = document_service.reject_document(document_id, actor(data, "rejected_by"), data.get("reason"))
    return jsonify(doc.to_dict()), 200


@document_bp.route("/vendor/<int:vendor_id>", methods=["GET"])
def vendor_documents(vendor_id):
    docs = document_service.list_vendor_documents(vendor_id, request.args.get("document_type"))
    return list_response(docs)


@document_bp.route("/pending-verification", methods=["GET"])
def pending_documents():
    limit, offset = pagination_args()
    items, total = document_service.list_pending_documents(limit, offset)
    return list_response(items, total, limit=limit, offset=offset)


@document_bp.route("/expiring", methods=["GET"])
def expiring_documents():
    days = request.args.get("days", 30, type=int)
    return list_response(document_service.list_expiring_documents(days), days=days)


@document_bp.route("/expired", methods=["GET"])
def expired_documents():
    return list_response(document_service.list_expired_documents())


@document_bp.route("/stats/verification", methods=["GET"])
def verification_stats():
    return jsonify(document_service.verification_stats()), 200


@document_bp.route("/stats/vendor/<int:vendor_id>", methods=["GET"])
def vendor_document_stats(vendor_id):
    return jsonify(document_service.vendor_document_stats(vendor_id)), 200
