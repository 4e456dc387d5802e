"""vendor_onboarding_tables

Creates the vendor onboarding tables:
  - vendors               : seller accounts, lifecycle status and rating aggregates
  - vendor_documents      : uploaded supporting documents (bytes live in the blob store)
  - vendor_reviews        : customer reviews and moderation state
  - vendor_verifications  : verification cases
  - vendor_notifications  : per-vendor notifications with follow-up actions

Tables created conditionally (IF NOT EXISTS semantics) so the migration can run
against databases that already received them via db.create_all().

Revision ID: 0a1b2c3d4e01
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect as sa_inspect


# revision identifiers, used by Alembic.
revision = '0a1b2c3d4e01'
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns(with_created_by=True):
    cols = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]
    if with_created_by:
        cols.append(sa.Column("created_by", sa.String(length=100), nullable=True))
    return cols


def upgrade():
    bind = op.get_bind()
    inspector = sa_inspect(bind)
    existing = set(inspector.get_table_names())

    # ── Vendor ────────────────────────────────────────────────────────────
    if "vendors" not in existing:
        op.create_table(
            "vendors",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("contact_email", sa.String(length=100), nullable=False),
            sa.Column("phone", sa.String(length=20), nullable=True),
            sa.Column("website", sa.String(length=255), nullable=True),
            sa.Column("street_address", sa.String(length=255), nullable=True),
            sa.Column("city", sa.String(length=100), nullable=True),
            sa.Column("state", sa.String(length=100), nullable=True),
            sa.Column("country", sa.String(length=100), nullable=True),
            sa.Column("postal_code", sa.String(length=20), nullable=True),
            sa.Column("business_description", sa.String(length=1000), nullable=True),
            sa.Column("business_category", sa.String(length=50), nullable=True),
            sa.Column("founding_date", sa.Date(), nullable=True),
            sa.Column("license_number", sa.String(length=100), nullable=True),
            sa.Column("tax_id", sa.String(length=50), nullable=True),
            sa.Column("facebook_url", sa.String(length=255), nullable=True),
            sa.Column("instagram_url", sa.String(length=255), nullable=True),
            sa.Column("twitter_url", sa.String(length=255), nullable=True),
            sa.Column(
                "status", sa.String(length=20), nullable=False, server_default="pending",
                comment="pending | under_review | approved | active | suspended | inactive | rejected | blacklisted",
            ),
            sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("verified_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("verified_by", sa.String(length=100), nullable=True),
            sa.Column("average_rating", sa.Numeric(3, 2), nullable=False, server_default="0.00"),
            sa.Column("total_reviews", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_sales", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("total_revenue", sa.Numeric(15, 2), nullable=False, server_default="0.00"),
            *_audit_columns(),
            sa.Column("updated_by", sa.String(length=100), nullable=True),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("contact_email"),
        )
        op.create_index("ix_vendors_contact_email", "vendors", ["contact_email"])
        op.create_index("ix_vendors_city", "vendors", ["city"])
        op.create_index("ix_vendors_business_category", "vendors", ["business_category"])
        op.create_index("ix_vendors_status", "vendors", ["status"])

    # ── VendorDocument ────────────────────────────────────────────────────
    if "vendor_documents" not in existing:
        op.create_table(
            "vendor_documents",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("vendor_id", sa.Integer(), nullable=False),
            sa.Column("document_type", sa.String(length=50), nullable=False),
            sa.Column("document_name", sa.String(length=255), nullable=False),
            sa.Column("blob_ref", sa.String(length=500), nullable=True),
            sa.Column("file_size", sa.BigInteger(), nullable=True),
            sa.Column("mime_type", sa.String(length=100), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column(
                "verification_status", sa.String(length=20), nullable=False, server_default="not_verified",
            ),
            sa.Column("verified_by", sa.String(length=100), nullable=True),
            sa.Column("verified_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("notes", sa.String(length=1000), nullable=True),
            *_audit_columns(),
            sa.Column("updated_by", sa.String(length=100), nullable=True),
            sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_vendor_documents_vendor_id", "vendor_documents", ["vendor_id"])
        op.create_index("ix_vendor_documents_verification_status", "vendor_documents", ["verification_status"])
        op.create_index("ix_vendor_documents_expiry_date", "vendor_documents", ["expiry_date"])
        op.create_index("idx_vdoc_vendor_type", "vendor_documents", ["vendor_id", "document_type"])

    # ── VendorReview ──────────────────────────────────────────────────────
    if "vendor_reviews" not in existing:
        op.create_table(
            "vendor_reviews",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("vendor_id", sa.Integer(), nullable=False),
            sa.Column("customer_id", sa.Integer(), nullable=True),
            sa.Column("customer_name", sa.String(length=100), nullable=True),
            sa.Column("customer_email", sa.String(length=100), nullable=True),
            sa.Column("rating", sa.Numeric(2, 1), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=True),
            sa.Column("comment", sa.String(length=2000), nullable=True),
            sa.Column("order_id", sa.Integer(), nullable=True),
            sa.Column("product_id", sa.Integer(), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("is_verified_purchase", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("helpful_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("not_helpful_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("vendor_response", sa.String(length=1000), nullable=True),
            sa.Column("vendor_response_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("moderated_by", sa.String(length=100), nullable=True),
            sa.Column("moderated_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("moderation_notes", sa.String(length=500), nullable=True),
            *_audit_columns(with_created_by=False),
            sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_vendor_reviews_vendor_id", "vendor_reviews", ["vendor_id"])
        op.create_index("idx_vreview_vendor_email", "vendor_reviews", ["vendor_id", "customer_email"])
        op.create_index("idx_vreview_vendor_status", "vendor_reviews", ["vendor_id", "status"])

    # ── VendorVerification ────────────────────────────────────────────────
    if "vendor_verifications" not in existing:
        op.create_table(
            "vendor_verifications",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("vendor_id", sa.Integer(), nullable=False),
            sa.Column("verification_type", sa.String(length=50), nullable=False),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("priority", sa.String(length=10), nullable=False, server_default="medium"),
            sa.Column("initiated_by", sa.String(length=100), nullable=True),
            sa.Column("initiated_date", sa.DateTime(timezone=True), nullable=False),
            sa.Column("assigned_to", sa.String(length=100), nullable=True),
            sa.Column("assigned_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("completed_by", sa.String(length=100), nullable=True),
            sa.Column("completed_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("verification_method", sa.String(length=100), nullable=True),
            sa.Column("external_reference", sa.String(length=255), nullable=True),
            sa.Column("verification_score", sa.Integer(), nullable=True),
            sa.Column("notes", sa.String(length=2000), nullable=True),
            sa.Column("rejection_reason", sa.String(length=1000), nullable=True),
            sa.Column("required_actions", sa.String(length=1000), nullable=True),
            sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("next_review_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("estimated_completion_hours", sa.Integer(), nullable=True),
            sa.Column("actual_completion_hours", sa.Integer(), nullable=True),
            *_audit_columns(with_created_by=False),
            sa.Column("updated_by", sa.String(length=100), nullable=True),
            sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_vendor_verifications_vendor_id", "vendor_verifications", ["vendor_id"])
        op.create_index("idx_vverif_vendor_status", "vendor_verifications", ["vendor_id", "status"])

    # ── VendorNotification ────────────────────────────────────────────────
    if "vendor_notifications" not in existing:
        op.create_table(
            "vendor_notifications",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("vendor_id", sa.Integer(), nullable=False),
            sa.Column("type", sa.String(length=50), nullable=False),
            sa.Column("title", sa.String(length=200), nullable=False),
            sa.Column("message", sa.String(length=1000), nullable=False),
            sa.Column("priority", sa.String(length=20), nullable=False, server_default="normal"),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="unread"),
            sa.Column("read_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("action_required", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("action_url", sa.String(length=500), nullable=True),
            sa.Column("action_deadline", sa.DateTime(timezone=True), nullable=True),
            sa.Column("action_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("action_completed_date", sa.DateTime(timezone=True), nullable=True),
            sa.Column("related_entity_type", sa.String(length=50), nullable=True),
            sa.Column("related_entity_id", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("created_by", sa.String(length=100), nullable=True),
            sa.ForeignKeyConstraint(["vendor_id"], ["vendors.id"], ondelete="CASCADE"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_vendor_notifications_vendor_id", "vendor_notifications", ["vendor_id"])
        op.create_index("idx_vnotif_vendor_status", "vendor_notifications", ["vendor_id", "status"])


def downgrade():
    for table in (
        "vendor_notifications",
        "vendor_verifications",
        "vendor_reviews",
        "vendor_documents",
        "vendors",
    ):
        op.drop_table(table)
