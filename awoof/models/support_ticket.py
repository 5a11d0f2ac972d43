"""Support Ticket ORM — student and vendor help-desk threads.

Invariants:
    - Students and vendors have separate ticket tables; a ticket belongs to exactly one owner
    - Responses marked is_internal are admin notes and are hidden from the ticket owner
    - user_role on a response records who wrote it (owner role or 'admin')

Design Decisions:
    - Shared column mixins: both desks have the same shape, only the owner FK differs
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from awoof.core.domain_types import TicketCategory, TicketPriority, TicketStatus
from awoof.db.base import Base, IdTimestampMixin


class _TicketColumns(IdTimestampMixin):
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(
        String(50), nullable=False, default=TicketCategory.GENERAL.value,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TicketStatus.OPEN.value, index=True,
    )
    priority: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TicketPriority.NORMAL.value,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class _ResponseColumns(IdTimestampMixin):
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True,
    )
    user_role: Mapped[str] = mapped_column(String(20), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_internal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class SupportTicket(_TicketColumns, Base):
    __tablename__ = "support_tickets"

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


class SupportTicketResponse(_ResponseColumns, Base):
    __tablename__ = "support_ticket_responses"

    ticket_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("support_tickets.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


class VendorSupportTicket(_TicketColumns, Base):
    __tablename__ = "vendor_support_tickets"

    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


class VendorSupportTicketResponse(_ResponseColumns, Base):
    __tablename__ = "vendor_support_ticket_responses"

    ticket_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vendor_support_tickets.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
