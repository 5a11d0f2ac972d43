"""Initial schema — users, universities, students, vendors, catalog, payments, notifications.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _fk(table: str, ondelete: str | None = None) -> sa.ForeignKey:
    return sa.ForeignKey(f"{table}.id", ondelete=ondelete)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("verification_status", sa.String(20), nullable=False, server_default="unverified"),
        sa.Column("password_reset_otp", sa.String(6), nullable=True),
        sa.Column("password_reset_otp_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("ndpr_consent", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("consent_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "universities",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("domain", sa.String(255), nullable=True, unique=True),
        sa.Column("country", sa.String(100), nullable=True, server_default="Nigeria"),
        sa.Column("portal_url", sa.Text, nullable=True),
        sa.Column("database_api_url", sa.Text, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("email_domains", sa.JSON, nullable=False, server_default="[]"),
        sa.Column("segment", sa.String(20), nullable=True),
        sa.Column("shortcode", sa.String(50), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_universities_shortcode", "universities", ["shortcode"])

    op.create_table(
        "university_verification_methods",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("university_id", UUID(as_uuid=True), _fk("universities", "CASCADE"), nullable=False),
        sa.Column("method_type", sa.String(20), nullable=False),
        sa.Column("api_endpoint", sa.Text, nullable=True),
        sa.Column("api_config", sa.JSON, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("priority_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint("university_id", "method_type", name="uq_university_method"),
    )

    op.create_table(
        "students",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), _fk("users", "CASCADE"), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("university", sa.String(255), nullable=False, server_default=""),
        sa.Column("university_id", UUID(as_uuid=True), _fk("universities", "SET NULL"), nullable=True),
        sa.Column("registration_number", sa.String(100), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=True),
        sa.Column("verification_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
    )

    op.create_table(
        "vendors",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), _fk("users", "CASCADE"), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False, server_default="0.00"),
        sa.Column("paystack_subaccount_code", sa.String(100), nullable=True),
        sa.Column("company_name", sa.String(255), nullable=True),
        sa.Column("phone_number", sa.String(20), nullable=True),
        sa.Column("business_category", sa.String(100), nullable=True),
        sa.Column("business_website", sa.Text, nullable=True),
        sa.Column("logo_url", sa.Text, nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=False, server_default="awoof"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "categories",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False, unique=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        *_timestamps(),
    )

    op.create_table(
        "products",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("vendor_id", UUID(as_uuid=True), _fk("vendors", "CASCADE"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("student_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("category_id", UUID(as_uuid=True), _fk("categories", "SET NULL"), nullable=True),
        sa.Column("image_url", sa.Text, nullable=True),
        sa.Column("api_id", sa.String(255), nullable=True),
        sa.Column("stock", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_products_vendor_id", "products", ["vendor_id"])

    op.create_table(
        "verifications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), _fk("students", "CASCADE"), nullable=False),
        sa.Column("method", sa.String(20), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("university_data", sa.JSON, nullable=True),
        sa.Column("registration_number", sa.String(100), nullable=True),
        sa.Column("ndpr_consent", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("consent_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("magic_link_token", sa.String(255), nullable=True),
        sa.Column("magic_link_sent_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("otp_code", sa.String(6), nullable=True),
        sa.Column("otp_sent_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_verifications_student_id", "verifications", ["student_id"])
    op.create_index("ix_verifications_magic_link_token", "verifications", ["magic_link_token"])

    op.create_table(
        "verification_tokens",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), _fk("students", "CASCADE"), nullable=False),
        sa.Column("vendor_id", UUID(as_uuid=True), _fk("vendors", "CASCADE"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), _fk("products", "SET NULL"), nullable=True),
        sa.Column("token", sa.String(255), nullable=False, unique=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("used_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "transactions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), _fk("students"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), _fk("products"), nullable=False),
        sa.Column("vendor_id", UUID(as_uuid=True), _fk("vendors"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("commission", sa.Numeric(10, 2), nullable=False, server_default="0.00"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("paystack_reference", sa.String(255), nullable=True),
        sa.Column("verification_token", sa.String(255), nullable=True),
        sa.Column("payment_source", sa.String(20), nullable=False, server_default="awoof"),
        sa.Column("vendor_payment_reference", sa.String(255), nullable=True),
        sa.Column("verified_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "vendor_id", "vendor_payment_reference", name="uq_vendor_payment_reference",
        ),
    )
    op.create_index("ix_transactions_student_id", "transactions", ["student_id"])
    op.create_index("ix_transactions_vendor_id", "transactions", ["vendor_id"])
    op.create_index(
        "ix_transactions_vendor_payment_reference", "transactions", ["vendor_payment_reference"],
    )

    op.create_table(
        "savings_stats",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), _fk("students", "CASCADE"), nullable=False, unique=True),
        sa.Column("total_savings", sa.Numeric(12, 2), nullable=False, server_default="0.00"),
        sa.Column("total_purchases", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "api_keys",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("vendor_id", UUID(as_uuid=True), _fk("vendors", "CASCADE"), nullable=False),
        sa.Column("key_hash", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("rate_limit", sa.Integer, nullable=False, server_default="1000"),
        sa.Column("usage_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        *_timestamps(),
    )
    op.create_index("ix_api_keys_vendor_id", "api_keys", ["vendor_id"])

    op.create_table(
        "notifications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), _fk("students", "CASCADE"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("type", sa.String(20), nullable=False, server_default="info"),
        sa.Column("read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("metadata", sa.JSON, nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_notifications_student_id", "notifications", ["student_id"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("api_keys")
    op.drop_table("savings_stats")
    op.drop_table("transactions")
    op.drop_table("verification_tokens")
    op.drop_table("verifications")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("vendors")
    op.drop_table("students")
    op.drop_table("university_verification_methods")
    op.drop_table("universities")
    op.drop_table("users")
