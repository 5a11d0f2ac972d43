"""Transaction ORM — purchases, commissions and per-student savings totals.

Invariants:
    - commission = amount * vendor.commission_rate / 100 at the time of the sale
    - vendor_payment_reference is unique per vendor (duplicate reports rejected)
    - SavingsStats has exactly one row per student (student_id unique)

Design Decisions:
    - SavingsStats is a denormalized running total: students' dashboards avoid
      aggregating the whole transactions table
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from awoof.core.domain_types import TransactionStatus, PaymentSource
from awoof.db.base import Base, IdTimestampMixin


class Transaction(IdTimestampMixin, Base):
    __tablename__ = "transactions"
    __table_args__ = (
        UniqueConstraint(
            "vendor_id", "vendor_payment_reference", name="uq_vendor_payment_reference",
        ),
    )

    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True,
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("products.id"), nullable=False,
    )
    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vendors.id"), nullable=False, index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    commission: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0.00"),
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=TransactionStatus.PENDING.value,
    )
    paystack_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    verification_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    payment_source: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PaymentSource.AWOOF.value,
    )
    vendor_payment_reference: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True,
    )
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class SavingsStats(Base):
    __tablename__ = "savings_stats"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"),
        unique=True, nullable=False,
    )
    total_savings: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0.00"),
    )
    total_purchases: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
