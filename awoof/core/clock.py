"""Clock Helpers — timezone-aware UTC arithmetic for every expiry check.

Invariants:
    - utcnow() always returns an aware datetime in UTC
    - as_utc() treats naive datetimes as UTC (SQLite drops tzinfo on read)
    - is_expired() is strict: a token expiring exactly now is still valid

Design Decisions:
    - `now` passed explicitly where possible: pure functions stay deterministic in tests
"""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """Normalize a datetime read from the DB to aware UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def expiry_from_now(minutes: int, now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(minutes=minutes)


def is_expired(expires_at: datetime | None, now: datetime | None = None) -> bool:
    """True when expires_at is set and already in the past."""
    if expires_at is None:
        return False
    return (now or utcnow()) > as_utc(expires_at)
