"""Commission Math — amounts, commissions, savings milestones and monthly rollups.

Invariants:
    - Gateways report kobo; everything stored and compared is naira
    - Two amounts match when they differ by at most AMOUNT_TOLERANCE (1 kobo)
    - commission = amount * rate / 100, rate in percent
    - A savings milestone m fires while m <= total < 2m, first match wins
    - monthly_summary() only counts completed transactions toward money totals

Design Decisions:
    - Decimal in, float out: DB Numeric columns arrive as Decimal, JSON wants numbers
    - Monthly rollup computed in Python instead of DATE_TRUNC so SQLite and
      PostgreSQL behave the same
"""

from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable

from awoof.core.clock import as_utc, utcnow
from awoof.core.domain_types import TransactionStatus

AMOUNT_TOLERANCE = 0.01
SAVINGS_MILESTONES = (1000, 5000, 10000, 25000, 50000, 100000)


def to_float(value: Decimal | float | int | None) -> float:
    return float(value) if value is not None else 0.0


def kobo_to_naira(amount_kobo: float | int) -> float:
    return amount_kobo / 100


def amounts_match(expected: float, actual: float, tolerance: float = AMOUNT_TOLERANCE) -> bool:
    # Rounded to absorb float noise such as 0.1 + 0.2 on naira values
    return round(abs(expected - actual), 6) <= tolerance


def compute_commission(amount: float, rate_percent: float) -> float:
    return amount * rate_percent / 100


def savings_milestone(total_savings: float) -> int | None:
    for milestone in SAVINGS_MILESTONES:
        if milestone <= total_savings < milestone * 2:
            return milestone
    return None


def months_back(now: datetime, months: int) -> tuple[int, int]:
    """(year, month) of the first month inside the window."""
    index = now.year * 12 + (now.month - 1) - months
    return index // 12, index % 12 + 1


def monthly_summary(
    transactions: Iterable[Any], now: datetime | None = None, months: int = 6,
) -> list[dict[str, Any]]:
    """Group transactions from the last `months` months, newest month first.

    Each item needs `created_at`, `status`, `amount` and `commission` attributes.
    """
    now = now or utcnow()
    start_year, start_month = months_back(now, months)
    window_start = datetime(start_year, start_month, 1, tzinfo=now.tzinfo)

    buckets: "OrderedDict[str, dict[str, Any]]" = OrderedDict()
    rows = sorted(transactions, key=lambda t: as_utc(t.created_at), reverse=True)
    for tx in rows:
        created = as_utc(tx.created_at)
        if created < window_start:
            continue
        key = f"{created.year:04d}-{created.month:02d}"
        bucket = buckets.setdefault(key, {
            "month": key, "count": 0, "revenue": 0.0, "commission": 0.0, "earnings": 0.0,
        })
        bucket["count"] += 1
        if tx.status == TransactionStatus.COMPLETED.value:
            amount = to_float(tx.amount)
            commission = to_float(tx.commission)
            bucket["revenue"] += amount
            bucket["commission"] += commission
            bucket["earnings"] += amount - commission
    return list(buckets.values())
