"""ApiKey ORM — hashed vendor keys for server-to-server transaction reporting.

Invariants:
    - key_hash stores "<pbkdf2_hex>:<salt_hex>", never the plaintext key
    - key_lookup holds a non-secret slice of the key for indexed candidate lookup
    - At most one 'active' key per vendor: generating a new key revokes the old one
"""

import uuid
from datetime import datetime

from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from awoof.core.domain_types import ApiKeyStatus
from awoof.db.base import Base, IdTimestampMixin


class ApiKey(IdTimestampMixin, Base):
    __tablename__ = "api_keys"

    vendor_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    key_hash: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    key_lookup: Mapped[str | None] = mapped_column(String(16), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rate_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=1000)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ApiKeyStatus.ACTIVE.value,
    )
