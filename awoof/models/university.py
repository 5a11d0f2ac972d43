"""University ORM — institutions and their per-method verification configuration.

Invariants:
    - name and domain are unique
    - shortcode is derived from the first label of domain
    - email_domains is a JSON list of accepted email domains (defaults to [domain])
    - A method row with is_active=False switches that method off for the university

Design Decisions:
    - api_config as JSON: each registry has its own auth scheme (apiKey, headers)
    - priority_order per row, lower first: admins reorder without code changes
"""

import uuid

from sqlalchemy import String, Text, Boolean, Integer, JSON, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from awoof.db.base import Base, IdTimestampMixin


class University(IdTimestampMixin, Base):
    __tablename__ = "universities"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    domain: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True, default="Nigeria")
    portal_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    database_api_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_domains: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    segment: Mapped[str | None] = mapped_column(String(20), nullable=True)
    shortcode: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)

    verification_methods: Mapped[list["UniversityVerificationMethod"]] = relationship(
        "UniversityVerificationMethod", back_populates="university",
        cascade="all, delete-orphan", lazy="selectin",
    )


class UniversityVerificationMethod(IdTimestampMixin, Base):
    __tablename__ = "university_verification_methods"
    __table_args__ = (
        UniqueConstraint("university_id", "method_type", name="uq_university_method"),
    )

    university_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("universities.id", ondelete="CASCADE"),
        nullable=False,
    )
    method_type: Mapped[str] = mapped_column(String(20), nullable=False)
    api_endpoint: Mapped[str | None] = mapped_column(Text, nullable=True)
    api_config: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    priority_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    university: Mapped["University"] = relationship(
        "University", back_populates="verification_methods",
    )
