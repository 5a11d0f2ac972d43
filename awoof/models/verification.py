"""Verification ORM — verification attempts and vendor-facing purchase tokens.

Invariants:
    - A pending email verification carries magic_link_token; verifying flips it to 'verified'
    - expires_at bounds how long a verified record counts toward isVerified
    - VerificationToken.used_at set means consumed: a token is single-use
    - VerificationToken is bound to exactly one vendor (and optionally one product)

Design Decisions:
    - One verifications table for all methods: method column + nullable method-specific fields
    - university_data as JSON: registry payloads differ per institution
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Boolean, DateTime, JSON, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from awoof.core.domain_types import VerificationStatus
from awoof.db.base import Base, IdTimestampMixin


class Verification(IdTimestampMixin, Base):
    __tablename__ = "verifications"

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=VerificationStatus.PENDING.value,
    )
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    university_data: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    registration_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    ndpr_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    consent_timestamp: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    magic_link_token: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    magic_link_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    otp_code: Mapped[str | None] = mapped_column(String(6), nullable=True)
    otp_sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class VerificationToken(IdTimestampMixin, Base):
    __tablename__ = "verification_tokens"

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False,
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vendors.id", ondelete="CASCADE"), nullable=False,
    )
    product_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id", ondelete="SET NULL"), nullable=True,
    )
    token: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
