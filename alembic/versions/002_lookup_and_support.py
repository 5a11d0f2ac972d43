"""API key lookup slice, website visits and support desks.

Revision ID: 002_lookup_and_support
Revises: 001_initial
Create Date: 2026-10-25

Adds api_keys.key_lookup (indexed, non-secret slice of the key). Keys issued before
this revision have no slice and cannot be matched, so they are revoked here and
vendors regenerate from the dashboard. Also creates website_visits and the student
and vendor support ticket tables.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


# revision identifiers, used by Alembic.
revision: str = "002_lookup_and_support"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def _fk(table: str, ondelete: str | None = None) -> sa.ForeignKey:
    return sa.ForeignKey(f"{table}.id", ondelete=ondelete)


def _ticket_table(name: str, owner_column: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        owner_column,
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("category", sa.String(50), nullable=False, server_default="general"),
        sa.Column("status", sa.String(20), nullable=False, server_default="open"),
        sa.Column("priority", sa.String(20), nullable=False, server_default="normal"),
        sa.Column("admin_notes", sa.Text, nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(f"ix_{name}_{owner_column.name}", name, [owner_column.name])
    op.create_index(f"ix_{name}_status", name, ["status"])


def _response_table(name: str, ticket_table: str) -> None:
    op.create_table(
        name,
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("ticket_id", UUID(as_uuid=True), _fk(ticket_table, "CASCADE"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), _fk("users", "SET NULL"), nullable=True),
        sa.Column("user_role", sa.String(20), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("is_internal", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
    )
    op.create_index(f"ix_{name}_ticket_id", name, ["ticket_id"])


def upgrade() -> None:
    op.add_column("api_keys", sa.Column("key_lookup", sa.String(16), nullable=True))
    op.create_index("ix_api_keys_key_lookup", "api_keys", ["key_lookup"])
    op.execute(
        "UPDATE api_keys SET status = 'revoked', updated_at = now() "
        "WHERE key_lookup IS NULL AND status = 'active'"
    )

    op.create_table(
        "website_visits",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("student_id", UUID(as_uuid=True), _fk("students", "CASCADE"), nullable=False),
        sa.Column("product_id", UUID(as_uuid=True), _fk("products", "SET NULL"), nullable=True),
        sa.Column("vendor_id", UUID(as_uuid=True), _fk("vendors", "CASCADE"), nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.Column("product_name", sa.String(255), nullable=True),
        sa.Column("vendor_name", sa.String(255), nullable=True),
        sa.Column("category_id", UUID(as_uuid=True), _fk("categories", "SET NULL"), nullable=True),
        sa.Column("visited_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_website_visits_student_id", "website_visits", ["student_id"])
    op.create_index("ix_website_visits_vendor_id", "website_visits", ["vendor_id"])

    _ticket_table(
        "support_tickets",
        sa.Column("student_id", UUID(as_uuid=True), _fk("students", "CASCADE"), nullable=False),
    )
    _response_table("support_ticket_responses", "support_tickets")
    _ticket_table(
        "vendor_support_tickets",
        sa.Column("vendor_id", UUID(as_uuid=True), _fk("vendors", "CASCADE"), nullable=False),
    )
    _response_table("vendor_support_ticket_responses", "vendor_support_tickets")


def downgrade() -> None:
    op.drop_table("vendor_support_ticket_responses")
    op.drop_table("vendor_support_tickets")
    op.drop_table("support_ticket_responses")
    op.drop_table("support_tickets")
    op.drop_table("website_visits")
    op.drop_index("ix_api_keys_key_lookup", table_name="api_keys")
    op.drop_column("api_keys", "key_lookup")
