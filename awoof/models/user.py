"""User ORM — login identity shared by students, vendors and admins.

Invariants:
    - email is unique and stored lowercase
    - password_hash is NULL for students created through verification flows (passwordless)
    - deleted_at set means soft-deleted: login refused, row kept for audit
    - password_reset_otp and its expiry are set together and cleared together

Design Decisions:
    - One users table with a role column instead of per-role auth tables
    - Profiles (students, vendors) hang off user_id: a user has at most one of each
"""

from datetime import datetime

from sqlalchemy import String, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from awoof.core.domain_types import UserVerificationStatus
from awoof.db.base import Base, IdTimestampMixin


class User(IdTimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True,
    )
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    verification_status: Mapped[str] = mapped_column(
        String(20), nullable=False,
        default=UserVerificationStatus.UNVERIFIED.value,
    )
    password_reset_otp: Mapped[str | None] = mapped_column(String(6), nullable=True)
    password_reset_otp_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    ndpr_consent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    consent_timestamp: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
