"""Transaction Reporting — vendors report purchases paid on their own websites.

Invariants:
    - Steps run in order and the first failure wins: consume verification token, load the
      vendor's product, match the reported amount to student_price, verify with Paystack
      (paystack gateway only), reject duplicate references
    - Reported amounts arrive in kobo; everything stored is naira
    - The transaction row, the token consumption, the savings upsert and the API key usage
      commit together or not at all
    - Notifications run after the commit and never fail the report

Design Decisions:
    - Duplicate references checked up front AND guarded by a unique constraint: two
      concurrent reports of the same reference cannot both land
    - A token minted for a specific product only pays for that product
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import utcnow
from awoof.core.commission import (
    amounts_match, compute_commission, kobo_to_naira, to_float,
)
from awoof.core.domain_types import PaymentSource, TransactionStatus
from awoof.core.errors import BadRequestError, NotFoundError
from awoof.core.repository_protocols import PaymentVerifier
from awoof.models.product import Product
from awoof.models.transaction import SavingsStats, Transaction
from awoof.models.vendor import Vendor
from awoof.schemas.payment import ReportTransactionRequest
from awoof.services.notification_service import NotificationService
from awoof.services.verification_tokens import VerificationTokenService

logger = logging.getLogger(__name__)

PAYSTACK_GATEWAY = "paystack"


def _fmt_amount(value: float) -> str:
    """2500.0 -> "2500", 2500.5 -> "2500.5"."""
    return str(int(value)) if value == int(value) else str(value)


class TransactionReporter:
    def __init__(
        self,
        db: AsyncSession,
        vendor: Vendor,
        payment_verifier: PaymentVerifier | None = None,
    ):
        self.db = db
        self.vendor = vendor
        self.payment_verifier = payment_verifier

    async def report(self, body: ReportTransactionRequest) -> dict[str, Any]:
        consumed = await VerificationTokenService(self.db).consume(
            body.verification_token, self.vendor.id,
        )
        if consumed.product_id is not None and consumed.product_id != body.product_id:
            raise BadRequestError("Verification token was issued for a different product")

        result = await self.db.execute(
            select(Product)
            .where(Product.id == body.product_id)
            .where(Product.vendor_id == self.vendor.id)
            .where(Product.deleted_at.is_(None)),
        )
        product = result.scalar_one_or_none()
        if not product:
            raise NotFoundError("Product not found or does not belong to vendor")

        expected = to_float(product.student_price)
        reported = kobo_to_naira(body.amount)
        if not amounts_match(expected, reported):
            raise BadRequestError(
                f"Payment amount ({_fmt_amount(reported)}) does not match "
                f"product price ({_fmt_amount(expected)})",
            )

        gateway = body.payment_gateway.lower()
        if gateway == PAYSTACK_GATEWAY:
            await self._verify_paystack(body.payment_reference, reported)

        duplicate = await self.db.execute(
            select(Transaction.id)
            .where(Transaction.vendor_id == self.vendor.id)
            .where(Transaction.vendor_payment_reference == body.payment_reference),
        )
        if duplicate.first() is not None:
            raise BadRequestError("Payment reference has already been used")

        discount = to_float(product.price) - reported
        stats = await self._add_savings(consumed.student_id, discount)
        total_savings = to_float(stats.total_savings)

        commission = compute_commission(reported, to_float(self.vendor.commission_rate))
        now = utcnow()
        transaction = Transaction(
            student_id=consumed.student_id,
            product_id=product.id,
            vendor_id=self.vendor.id,
            amount=round(reported, 2),
            commission=round(commission, 2),
            status=TransactionStatus.COMPLETED.value,
            verification_token=body.verification_token,
            payment_source=(
                PaymentSource.VENDOR_PAYSTACK.value if gateway == PAYSTACK_GATEWAY
                else PaymentSource.VENDOR_OTHER.value
            ),
            vendor_payment_reference=body.payment_reference,
            paystack_reference=body.payment_reference if gateway == PAYSTACK_GATEWAY else None,
            verified_at=now,
        )
        self.db.add(transaction)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BadRequestError("Payment reference has already been used")

        logger.info(
            "Transaction reported",
            extra={"vendor_id": str(self.vendor.id), "reference": body.payment_reference},
        )
        response = {
            "transactionId": str(transaction.id),
            "status": transaction.status,
            "amount": reported,
            "commission": commission,
            "earnings": reported - commission,
            "createdAt": transaction.created_at.isoformat(),
        }

        notifications = NotificationService(self.db)
        await notifications.notify_purchase_confirmation(
            consumed.student_id, product.name, to_float(product.price), discount,
            response["transactionId"],
        )
        await notifications.notify_savings_milestone(consumed.student_id, total_savings)
        return response

    async def _verify_paystack(self, reference: str, reported: float) -> None:
        if not self.payment_verifier:
            raise BadRequestError("Paystack is not configured")
        verification = await self.payment_verifier.verify(reference)
        if not verification.verified:
            raise BadRequestError(verification.error or "Payment verification failed")
        if verification.amount is not None and not amounts_match(verification.amount, reported):
            raise BadRequestError(
                f"Paystack payment amount ({_fmt_amount(verification.amount)}) does not "
                f"match reported amount ({_fmt_amount(reported)})",
            )

    async def _add_savings(self, student_id, discount: float) -> SavingsStats:
        result = await self.db.execute(
            select(SavingsStats).where(SavingsStats.student_id == student_id),
        )
        stats = result.scalar_one_or_none()
        now = utcnow()
        if stats is None:
            stats = SavingsStats(
                student_id=student_id, total_savings=round(discount, 2),
                total_purchases=1, last_updated=now,
            )
            self.db.add(stats)
        else:
            stats.total_savings = round(to_float(stats.total_savings) + discount, 2)
            stats.total_purchases = (stats.total_purchases or 0) + 1
            stats.last_updated = now
        return stats
