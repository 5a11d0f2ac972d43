"""Verification Tokens — single-use proofs that a verified student is buying from a vendor.

Invariants:
    - Tokens are `awoof_` + 64 hex chars and expire 30 minutes after creation
    - Only an active, verified student can mint one; the vendor must exist (not deleted);
      an optional product must belong to that vendor
    - consume() checks in order: exists (404), expired (400), already used (400),
      vendor matches (401); then stamps used_at

Design Decisions:
    - consume() stamps used_at without committing: the transaction report commits it
      together with the purchase, so a rejected report leaves the token usable
    - check() is the read-only twin for widgets that want to pre-validate
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import expiry_from_now, is_expired, utcnow
from awoof.core.domain_types import StudentStatus, UserVerificationStatus
from awoof.core.errors import AwoofError, BadRequestError, NotFoundError, UnauthorizedError
from awoof.core.otp import VERIFICATION_TOKEN_EXPIRY_MINUTES, generate_verification_token
from awoof.models.product import Product
from awoof.models.student import Student
from awoof.models.vendor import Vendor
from awoof.models.verification import VerificationToken

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsumedToken:
    student_id: UUID
    vendor_id: UUID
    product_id: UUID | None


class VerificationTokenService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self, student_id: UUID, vendor_id: UUID, product_id: UUID | None = None,
    ) -> tuple[str, datetime]:
        student = await self.db.get(Student, student_id)
        if not student or student.status != StudentStatus.ACTIVE.value:
            raise NotFoundError("Student not found")
        if student.user.verification_status != UserVerificationStatus.VERIFIED.value:
            raise UnauthorizedError("Student is not verified")

        vendor = await self.db.get(Vendor, vendor_id)
        if not vendor or vendor.deleted_at is not None:
            raise NotFoundError("Vendor not found")

        if product_id is not None:
            result = await self.db.execute(
                select(Product.id)
                .where(Product.id == product_id)
                .where(Product.vendor_id == vendor_id)
                .where(Product.deleted_at.is_(None)),
            )
            if result.scalar_one_or_none() is None:
                raise NotFoundError("Product not found or does not belong to vendor")

        token = generate_verification_token()
        expires_at = expiry_from_now(VERIFICATION_TOKEN_EXPIRY_MINUTES)
        self.db.add(VerificationToken(
            student_id=student_id, vendor_id=vendor_id, product_id=product_id,
            token=token, expires_at=expires_at,
        ))
        await self.db.commit()
        logger.info("Verification token issued", extra={"student_id": str(student_id)})
        return token, expires_at

    async def _load_valid(self, token: str, vendor_id: UUID) -> VerificationToken:
        result = await self.db.execute(
            select(VerificationToken).where(VerificationToken.token == token),
        )
        row = result.scalar_one_or_none()
        if not row:
            raise NotFoundError("Invalid verification token")
        if is_expired(row.expires_at):
            raise BadRequestError("Verification token has expired")
        if row.used_at is not None:
            raise BadRequestError("Verification token has already been used")
        if row.vendor_id != vendor_id:
            raise UnauthorizedError("Verification token does not belong to this vendor")
        return row

    async def consume(self, token: str, vendor_id: UUID) -> ConsumedToken:
        row = await self._load_valid(token, vendor_id)
        row.used_at = utcnow()
        await self.db.flush()
        return ConsumedToken(row.student_id, row.vendor_id, row.product_id)

    async def check(self, token: str, vendor_id: UUID) -> dict:
        try:
            row = await self._load_valid(token, vendor_id)
        except AwoofError as e:
            return {"valid": False, "error": e.message}
        return {
            "valid": True,
            "studentId": str(row.student_id),
            "productId": str(row.product_id) if row.product_id else None,
        }
