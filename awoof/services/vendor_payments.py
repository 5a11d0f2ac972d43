"""Vendor Payment Handlers — settings, history, commission rollups and API keys.

The transaction reporting pipeline lives in services/transaction_reporting.py.

Invariants:
    - Every handler is scoped to one vendor resolved by the route (never a vendor id
      taken from the request body)
    - Money totals count completed transactions only; order counts include every status
    - earnings = amount - commission
    - A vendor holds at most one active API key: generating revokes the previous one
    - Plaintext API keys leave this module exactly once, in generate_api_key()'s return
    - Key authentication hashes at most the rows sharing the key's lookup slice, never
      every active key; PBKDF2 runs in the threadpool, off the event loop

Design Decisions:
    - Payout settings are validated and echoed, not persisted: bank details are collected
      by the payment provider's onboarding, not stored here
    - Statistics aggregated in SQL with CASE sums; the monthly rollup runs in Python
      (core.commission.monthly_summary) so SQLite and PostgreSQL agree
"""

import logging
from datetime import timedelta
from typing import Any

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import case, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.api_keys import generate_api_key, hash_api_key, key_lookup, verify_api_key
from awoof.core.clock import is_expired, utcnow
from awoof.core.commission import monthly_summary, to_float
from awoof.core.domain_types import ApiKeyStatus, TransactionStatus
from awoof.core.errors import UnauthorizedError
from awoof.models.api_key import ApiKey
from awoof.models.product import Product
from awoof.models.transaction import Transaction
from awoof.models.vendor import Vendor

logger = logging.getLogger(__name__)

API_KEY_NAME = "Transaction Reporting API Key"
API_KEY_RATE_LIMIT = 1000
API_KEY_NOTE = "Store this key securely. It will not be shown again."
SUMMARY_MONTHS = 6


def _iso(value) -> str | None:
    return value.isoformat() if value else None


class PaymentHandlers:
    def __init__(self, db: AsyncSession, vendor: Vendor):
        self.db = db
        self.vendor = vendor

    async def settings(self) -> dict[str, Any]:
        completed = Transaction.status == TransactionStatus.COMPLETED.value
        result = await self.db.execute(
            select(
                func.count(Transaction.id),
                func.coalesce(func.sum(case((completed, 1), else_=0)), 0),
                func.coalesce(func.sum(case((completed, Transaction.amount), else_=0)), 0),
                func.coalesce(func.sum(case((completed, Transaction.commission), else_=0)), 0),
            ).where(Transaction.vendor_id == self.vendor.id),
        )
        total_orders, completed_orders, revenue, commission = result.one()
        revenue, commission = to_float(revenue), to_float(commission)

        return {
            "settings": {
                "commissionRate": to_float(self.vendor.commission_rate),
                "paystackSubaccountCode": self.vendor.paystack_subaccount_code,
                "paymentMethod": self.vendor.payment_method,
                "payoutSettings": {
                    "bankName": None,
                    "accountNumber": None,
                    "accountName": None,
                    "bankCode": None,
                },
            },
            "statistics": {
                "totalOrders": int(total_orders or 0),
                "completedOrders": int(completed_orders or 0),
                "totalRevenue": revenue,
                "totalCommission": commission,
                "totalEarnings": revenue - commission,
            },
        }

    async def history(
        self, page: int = 1, limit: int = 20, status: str | None = None,
    ) -> dict[str, Any]:
        query = (
            select(Transaction, Product.name)
            .join(Product, Product.id == Transaction.product_id)
            .where(Transaction.vendor_id == self.vendor.id)
        )
        count_query = select(func.count(Transaction.id)).where(
            Transaction.vendor_id == self.vendor.id,
        )
        if status:
            query = query.where(Transaction.status == status)
            count_query = count_query.where(Transaction.status == status)

        total = (await self.db.execute(count_query)).scalar_one()
        rows = (await self.db.execute(
            query.order_by(Transaction.created_at.desc())
            .limit(limit).offset((page - 1) * limit),
        )).all()

        payments = []
        for tx, product_name in rows:
            amount, commission = to_float(tx.amount), to_float(tx.commission)
            payments.append({
                "id": str(tx.id),
                "amount": amount,
                "commission": commission,
                "earnings": amount - commission,
                "status": tx.status,
                "paystackReference": tx.paystack_reference or tx.vendor_payment_reference,
                "productName": product_name,
                "createdAt": _iso(tx.created_at),
            })
        return {
            "payments": payments,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": (total + limit - 1) // limit,
            },
        }

    async def commission_summary(self) -> dict[str, Any]:
        breakdown_rows = (await self.db.execute(
            select(
                Transaction.status,
                func.count(Transaction.id),
                func.coalesce(func.sum(Transaction.amount), 0),
                func.coalesce(func.sum(Transaction.commission), 0),
            )
            .where(Transaction.vendor_id == self.vendor.id)
            .group_by(Transaction.status)
            .order_by(Transaction.status),
        )).all()

        now = utcnow()
        # Over-fetch by a month; monthly_summary trims to whole calendar months
        since = now - timedelta(days=31 * (SUMMARY_MONTHS + 1))
        recent = (await self.db.execute(
            select(Transaction)
            .where(Transaction.vendor_id == self.vendor.id)
            .where(Transaction.created_at >= since),
        )).scalars().all()

        breakdown = []
        for status, count, amount, commission in breakdown_rows:
            amount, commission = to_float(amount), to_float(commission)
            breakdown.append({
                "status": status,
                "count": int(count),
                "totalAmount": amount,
                "totalCommission": commission,
                "totalEarnings": amount - commission,
            })
        return {
            "commissionRate": to_float(self.vendor.commission_rate),
            "breakdown": breakdown,
            "monthlySummary": monthly_summary(recent, now, SUMMARY_MONTHS),
        }

    async def update_payment_method(self, payment_method: str) -> dict[str, Any]:
        self.vendor.payment_method = payment_method
        await self.db.commit()
        return {"paymentMethod": payment_method}

    async def update_paystack_subaccount(self, code: str) -> dict[str, Any]:
        self.vendor.paystack_subaccount_code = code
        await self.db.commit()
        return {"paystackSubaccountCode": code}

    # ─── API keys ────────────────────────────────────────────────

    async def _active_key(self) -> ApiKey | None:
        result = await self.db.execute(
            select(ApiKey)
            .where(ApiKey.vendor_id == self.vendor.id)
            .where(ApiKey.status == ApiKeyStatus.ACTIVE.value)
            .order_by(ApiKey.created_at.desc())
            .limit(1),
        )
        return result.scalar_one_or_none()

    async def generate_api_key(self) -> dict[str, Any]:
        await self.db.execute(
            update(ApiKey)
            .where(ApiKey.vendor_id == self.vendor.id)
            .where(ApiKey.status == ApiKeyStatus.ACTIVE.value)
            .values(status=ApiKeyStatus.REVOKED.value, updated_at=utcnow()),
        )
        api_key = generate_api_key()
        self.db.add(ApiKey(
            vendor_id=self.vendor.id,
            key_hash=await run_in_threadpool(hash_api_key, api_key),
            key_lookup=key_lookup(api_key),
            name=API_KEY_NAME,
            rate_limit=API_KEY_RATE_LIMIT,
            status=ApiKeyStatus.ACTIVE.value,
        ))
        await self.db.commit()
        logger.info("API key generated", extra={"vendor_id": str(self.vendor.id)})
        return {"apiKey": api_key, "note": API_KEY_NOTE}

    async def api_key_info(self) -> dict[str, Any]:
        key = await self._active_key()
        if not key:
            return {"hasApiKey": False}
        return {
            "hasApiKey": True,
            "keyInfo": {
                "name": key.name,
                "rateLimit": key.rate_limit,
                "usageCount": key.usage_count,
                "createdAt": _iso(key.created_at),
                "expiresAt": _iso(key.expires_at),
                "status": key.status,
            },
        }


async def authenticate_api_key(db: AsyncSession, api_key: str) -> Vendor:
    """Resolve the vendor owning an active, unexpired key and record the use.

    Stored hashes are salted, so candidates are narrowed by the clear lookup slice
    before any PBKDF2 work.
    """
    lookup = key_lookup(api_key)
    if lookup is None:
        raise UnauthorizedError("Invalid API key")
    result = await db.execute(
        select(ApiKey, Vendor)
        .join(Vendor, Vendor.id == ApiKey.vendor_id)
        .where(ApiKey.key_lookup == lookup)
        .where(ApiKey.status == ApiKeyStatus.ACTIVE.value)
        .where(Vendor.deleted_at.is_(None)),
    )
    for key, vendor in result.all():
        if not await run_in_threadpool(verify_api_key, api_key, key.key_hash):
            continue
        if is_expired(key.expires_at):
            raise UnauthorizedError("API key has expired")
        key.usage_count = (key.usage_count or 0) + 1
        key.last_used_at = utcnow()
        await db.flush()
        return vendor
    raise UnauthorizedError("Invalid API key")
