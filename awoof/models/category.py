"""Category ORM — product categories managed by admins."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from awoof.db.base import Base, IdTimestampMixin


class Category(IdTimestampMixin, Base):
    """Invariant: slug is always slugify(name)."""
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
