"""Vendor Accounts — profile lookup shared by every vendor route, and profile editing.

Invariants:
    - Soft-deleted vendors are invisible: lookups answer 404 "Vendor profile not found"
    - companyName, phoneNumber and businessCategory can be changed but never cleared;
      an empty businessWebsite or description clears the column
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import utcnow
from awoof.core.commission import to_float
from awoof.core.errors import BadRequestError, NotFoundError
from awoof.models.user import User
from awoof.models.vendor import Vendor
from awoof.schemas.vendor import CompleteRegistrationRequest, VendorProfileUpdate

logger = logging.getLogger(__name__)

_REQUIRED_PROFILE_FIELDS = ("company_name", "phone_number", "business_category")


async def get_vendor_for_user(db: AsyncSession, user_id: UUID) -> Vendor:
    """The caller's non-deleted vendor profile, or 404."""
    result = await db.execute(
        select(Vendor).where(Vendor.user_id == user_id).where(Vendor.deleted_at.is_(None)),
    )
    vendor = result.scalar_one_or_none()
    if not vendor:
        raise NotFoundError("Vendor profile not found")
    return vendor


def vendor_profile_to_dict(vendor: Vendor, email: str | None) -> dict[str, Any]:
    return {
        "id": str(vendor.id),
        "userId": str(vendor.user_id),
        "email": email,
        "name": vendor.name,
        "companyName": vendor.company_name,
        "phoneNumber": vendor.phone_number,
        "businessCategory": vendor.business_category,
        "businessWebsite": vendor.business_website,
        "description": vendor.description,
        "status": vendor.status,
        "logoUrl": vendor.logo_url,
        "commissionRate": to_float(vendor.commission_rate),
        "paymentMethod": vendor.payment_method,
        "createdAt": vendor.created_at.isoformat() if vendor.created_at else None,
        "updatedAt": vendor.updated_at.isoformat() if vendor.updated_at else None,
    }


class VendorProfileHandlers:
    """Business profile of the signed-in vendor."""

    def __init__(self, db: AsyncSession, vendor: Vendor):
        self.db = db
        self.vendor = vendor

    async def _email(self) -> str | None:
        return (await self.db.execute(
            select(User.email).where(User.id == self.vendor.user_id),
        )).scalar_one_or_none()

    async def get(self) -> dict[str, Any]:
        return {"vendor": vendor_profile_to_dict(self.vendor, await self._email())}

    async def update(self, body: VendorProfileUpdate) -> dict[str, Any]:
        changes = body.model_dump(exclude_unset=True)
        if not changes:
            raise BadRequestError("No fields to update")
        for field in _REQUIRED_PROFILE_FIELDS:
            if field in changes and changes[field] is None:
                raise BadRequestError(f"{field} cannot be null")

        for field, value in changes.items():
            setattr(self.vendor, field, value or None)
        self.vendor.updated_at = utcnow()
        await self.db.commit()
        return await self.get()

    async def complete_registration(self, body: CompleteRegistrationRequest) -> dict[str, Any]:
        self.vendor.company_name = body.company_name
        self.vendor.phone_number = body.phone_number
        self.vendor.business_category = body.business_category
        self.vendor.business_website = body.business_website or None
        self.vendor.description = body.description or None
        self.vendor.updated_at = utcnow()
        await self.db.commit()
        logger.info("Vendor registration completed", extra={"vendor_id": str(self.vendor.id)})
        return await self.get()
