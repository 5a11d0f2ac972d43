"""Notification ORM — in-app messages for students (purchases, milestones, verification)."""

import uuid
from datetime import datetime

from sqlalchemy import String, Text, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from awoof.core.domain_types import NotificationType
from awoof.db.base import Base, IdTimestampMixin


class Notification(IdTimestampMixin, Base):
    __tablename__ = "notifications"

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=NotificationType.INFO.value,
    )
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # "metadata" is reserved on declarative classes
    extra: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
