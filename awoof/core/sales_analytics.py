"""Sales Analytics — vendor dashboard rollups over plain transaction rows.

Invariants:
    - Money totals (revenue, commission, earnings, average order value) count completed
      transactions only; order and customer counts include every status
    - conversionRate = completed / total * 100, rounded to 2 decimals, 0 with no orders
    - A repeat customer has more than one transaction with the vendor, any status
    - Daily series covers the last DAILY_WINDOW_DAYS days, oldest first; monthly series
      the last MONTHLY_WINDOW months, newest first

Design Decisions:
    - Rollups in Python over rows fetched once, like core.commission.monthly_summary, so
      SQLite and PostgreSQL produce identical dashboards
"""

from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Iterable

from awoof.core.clock import as_utc
from awoof.core.commission import months_back, to_float
from awoof.core.domain_types import TransactionStatus

DAILY_WINDOW_DAYS = 30
MONTHLY_WINDOW = 6
TOP_PRODUCTS = 10


def _completed(tx: Any) -> bool:
    return tx.status == TransactionStatus.COMPLETED.value


def _money(txs: list[Any]) -> tuple[float, float]:
    revenue = sum(to_float(t.amount) for t in txs if _completed(t))
    commission = sum(to_float(t.commission) for t in txs if _completed(t))
    return revenue, commission


def overall_metrics(transactions: Iterable[Any]) -> dict[str, Any]:
    txs = list(transactions)
    completed = [t for t in txs if _completed(t)]
    revenue, commission = _money(txs)
    conversion = len(completed) / len(txs) * 100 if txs else 0.0
    return {
        "totalOrders": len(txs),
        "completedOrders": len(completed),
        "totalRevenue": revenue,
        "totalCommission": commission,
        "totalEarnings": revenue - commission,
        "uniqueCustomers": len({t.student_id for t in txs}),
        "averageOrderValue": revenue / len(completed) if completed else 0.0,
        "conversionRate": round(conversion, 2),
    }


def student_metrics(transactions: Iterable[Any]) -> dict[str, int]:
    txs = list(transactions)
    per_student = Counter(t.student_id for t in txs)
    return {
        "totalStudents": len(per_student),
        "verifiedStudents": len({t.student_id for t in txs if _completed(t)}),
        "repeatCustomers": sum(1 for n in per_student.values() if n > 1),
    }


def _bucket(txs: list[Any]) -> dict[str, Any]:
    revenue, commission = _money(txs)
    return {
        "orders": len(txs),
        "completedOrders": sum(1 for t in txs if _completed(t)),
        "revenue": revenue,
        "commission": commission,
        "earnings": revenue - commission,
        "uniqueCustomers": len({t.student_id for t in txs}),
    }


def daily_series(
    transactions: Iterable[Any], now: datetime, days: int = DAILY_WINDOW_DAYS,
) -> list[dict[str, Any]]:
    since = now - timedelta(days=days)
    groups: dict[str, list[Any]] = {}
    for tx in transactions:
        created = as_utc(tx.created_at)
        if created >= since:
            groups.setdefault(created.date().isoformat(), []).append(tx)
    series = []
    for day in sorted(groups):
        bucket = _bucket(groups[day])
        del bucket["commission"], bucket["earnings"]
        series.append({"date": day, **bucket})
    return series


def monthly_series(
    transactions: Iterable[Any], now: datetime, months: int = MONTHLY_WINDOW,
) -> list[dict[str, Any]]:
    start_year, start_month = months_back(now, months)
    window_start = datetime(start_year, start_month, 1, tzinfo=now.tzinfo)
    groups: dict[str, list[Any]] = {}
    for tx in transactions:
        created = as_utc(tx.created_at)
        if created >= window_start:
            groups.setdefault(f"{created.year:04d}-{created.month:02d}", []).append(tx)
    return [{"month": month, **_bucket(groups[month])} for month in sorted(groups, reverse=True)]


def product_breakdown(
    products: Iterable[Any], transactions: Iterable[Any],
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Per-product rows sorted by revenue then orders, plus the top sellers.

    Products need `id`, `name`, `price`, `student_price`, `status` and `image_url`.
    """
    by_product: dict[Any, list[Any]] = {}
    for tx in transactions:
        by_product.setdefault(tx.product_id, []).append(tx)

    rows = []
    for p in products:
        bucket = _bucket(by_product.get(p.id, []))
        rows.append({
            "id": str(p.id),
            "name": p.name,
            "imageUrl": p.image_url,
            "price": to_float(p.price),
            "studentPrice": to_float(p.student_price),
            "status": p.status,
            "totalOrders": bucket["orders"],
            "completedOrders": bucket["completedOrders"],
            "revenue": bucket["revenue"],
            "commission": bucket["commission"],
            "earnings": bucket["earnings"],
            "uniqueCustomers": bucket["uniqueCustomers"],
        })
    rows.sort(key=lambda r: (r["revenue"], r["totalOrders"]), reverse=True)

    top = [
        {
            "id": r["id"],
            "name": r["name"],
            "imageUrl": r["imageUrl"],
            "orders": r["completedOrders"],
            "revenue": r["revenue"],
        }
        for r in sorted(rows, key=lambda r: r["revenue"], reverse=True)[:TOP_PRODUCTS]
    ]
    for r in rows:
        del r["imageUrl"]
    return rows, top
