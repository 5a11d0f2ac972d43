"""Verification Orchestrator — picks the verification channel a student should use.

Invariants:
    - Method rows are read for the university and reduced to MethodInfo; the policy lives
      in core.method_selection
    - Rows with an unknown method_type are ignored (logged), never fatal
    - initiate() requires NDPR consent before anything else is evaluated
    - Status reads the latest *verified* verification only

Design Decisions:
    - Unknown or inactive universities answer 404 instead of silently offering defaults:
      every later step needs a real university row
    - Email validity uses the university's email_domains, falling back to its domain
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.domain_types import VerificationMethod, VerificationStatus
from awoof.core.email_domains import is_valid_student_email
from awoof.core.errors import BadRequestError, NotFoundError
from awoof.core.method_selection import (
    MethodInfo, choose_best_method, merge_methods, next_step_for_method, summarize_status,
)
from awoof.models.student import Student
from awoof.models.university import University
from awoof.models.user import User
from awoof.models.verification import Verification

logger = logging.getLogger(__name__)


def accepted_email_domains(university: University | None) -> list[str]:
    if university is None:
        return []
    domains = list(university.email_domains or [])
    if not domains and university.domain:
        domains = [university.domain]
    return domains


def email_valid_for(email: str | None, university: University | None) -> bool:
    return bool(email) and is_valid_student_email(email, accepted_email_domains(university))


def configured_methods(university: University) -> list[MethodInfo]:
    infos = []
    for row in university.verification_methods:
        try:
            method = VerificationMethod(row.method_type)
        except ValueError:
            logger.warning(f"Ignoring unknown verification method '{row.method_type}'")
            continue
        infos.append(MethodInfo(method, row.is_active, row.priority_order, configured=True))
    return infos


async def get_active_university(db: AsyncSession, university_id: UUID) -> University:
    university = await db.get(University, university_id)
    if not university or not university.is_active:
        raise NotFoundError("University not found")
    return university


class VerificationOrchestrator:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def available_methods(self, university_id: UUID) -> list[MethodInfo]:
        university = await get_active_university(self.db, university_id)
        return merge_methods(configured_methods(university))

    async def get_methods(self, university_id: UUID) -> dict[str, Any]:
        methods = await self.available_methods(university_id)
        return {
            "universityId": str(university_id),
            "methods": [m.to_dict() for m in methods],
        }

    async def initiate(
        self,
        university_id: UUID,
        ndpr_consent: bool,
        email: str | None = None,
        registration_number: str | None = None,
        phone_number: str | None = None,
    ) -> dict[str, Any]:
        if ndpr_consent is not True:
            raise BadRequestError("NDPR consent is required to proceed with verification")

        university = await get_active_university(self.db, university_id)
        methods = merge_methods(configured_methods(university))
        best = choose_best_method(
            methods,
            email_valid=email_valid_for(email, university),
            has_registration_number=bool(registration_number),
            has_phone_number=bool(phone_number),
        )
        if best is None:
            raise BadRequestError(
                "No suitable verification method available. "
                "Please provide email, registration number, or phone number.",
            )

        next_step = next_step_for_method(best, email, registration_number, phone_number)
        if best is VerificationMethod.PORTAL and university.portal_url:
            next_step["portalUrl"] = university.portal_url
        return {
            "recommendedMethod": best.value,
            "availableMethods": [m.method_type.value for m in methods if m.is_available],
            "nextStep": next_step,
        }

    async def status(self, student_id: UUID) -> dict[str, Any]:
        result = await self.db.execute(
            select(User.verification_status, Student.verification_date)
            .join(Student, Student.user_id == User.id)
            .where(Student.id == student_id)
            .where(User.deleted_at.is_(None)),
        )
        row = result.first()
        if row is None:
            return summarize_status(None)

        latest = await self.db.execute(
            select(Verification.method, Verification.expires_at)
            .where(Verification.student_id == student_id)
            .where(Verification.status == VerificationStatus.VERIFIED.value)
            .order_by(Verification.verified_at.desc())
            .limit(1),
        )
        verification = latest.first()
        return summarize_status(
            row.verification_status,
            row.verification_date,
            verification.method if verification else None,
            verification.expires_at if verification else None,
        )
