"""Student Verification — email magic link, registration lookup and WhatsApp OTP channels.

Invariants:
    - Every successful channel, in one DB transaction: find or create the student, record
      a 'verified' verification row, stamp student.verification_date, flip the user to
      'verified'; then issue a token pair and notify the student
    - Magic links: one pending email verification per link, 64 hex chars, 15-minute expiry
    - WhatsApp OTPs live only in the KV store (whatsapp_otp:{phone}, 5 minutes) and are
      deleted on first successful use
    - Registration lookups never raise for registry failures: the registry's error text
      becomes a 401

Design Decisions:
    - Outbound delivery (email, WhatsApp) goes through Protocol-typed senders injected by
      the route: tests substitute in-memory fakes (ADR: no network in tests)
    - A WhatsApp gateway that is not configured is not an error: the OTP is still stored
      and the response carries a note, so the flow stays testable end to end
    - Verification records expire after 15 minutes; the user row keeps 'verified'
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import expiry_from_now, is_expired, utcnow
from awoof.core.domain_types import VerificationMethod, VerificationStatus
from awoof.core.email_templates import magic_link_email, whatsapp_otp_message
from awoof.core.errors import BadRequestError, UnauthorizedError
from awoof.core.otp import (
    MAGIC_LINK_EXPIRY_MINUTES, VERIFICATION_RECORD_EXPIRY_MINUTES,
    WHATSAPP_OTP_EXPIRY_MINUTES, generate_magic_link_token, generate_otp, otp_matches,
)
from awoof.core.phone import phone_to_email
from awoof.core.repository_protocols import (
    EmailSender, KeyValueStore, RegistryLookup, WhatsAppSender,
)
from awoof.infrastructure.redis_store import whatsapp_otp_key
from awoof.infrastructure.security import TokenService
from awoof.models.student import Student
from awoof.models.university import University
from awoof.models.user import User
from awoof.models.verification import Verification
from awoof.services.auth_service import issue_session
from awoof.services.notification_service import NotificationService
from awoof.services.student_accounts import find_or_create_student, mark_verified
from awoof.services.verification_orchestrator import email_valid_for, get_active_university

logger = logging.getLogger(__name__)


def registry_endpoint(university: University) -> tuple[str | None, dict | None]:
    """Active registration method endpoint first, then the university-wide API URL."""
    for row in university.verification_methods:
        if row.method_type == VerificationMethod.REGISTRATION.value and row.is_active:
            if row.api_endpoint:
                return row.api_endpoint, row.api_config
            return university.database_api_url, row.api_config
    return university.database_api_url, None


class StudentVerificationHandlers:
    """One handler per verification channel."""

    def __init__(
        self,
        db: AsyncSession,
        kv: KeyValueStore,
        tokens: TokenService,
        email_sender: EmailSender | None = None,
        whatsapp_sender: WhatsAppSender | None = None,
        registry: RegistryLookup | None = None,
        frontend_url: str = "http://localhost:3000",
    ):
        self.db = db
        self.kv = kv
        self.tokens = tokens
        self.email_sender = email_sender
        self.whatsapp_sender = whatsapp_sender
        self.registry = registry
        self.frontend_url = frontend_url.rstrip("/")

    async def _complete(
        self, user: User, student: Student, verification: Verification,
    ) -> dict[str, str]:
        """Commit the verified state, then issue tokens and notify."""
        now = utcnow()
        verification.status = VerificationStatus.VERIFIED.value
        verification.verified_at = now
        mark_verified(user, student, now)
        await self.db.commit()

        logger.info(
            f"Student verified via {verification.method}",
            extra={"student_id": str(student.id), "method": verification.method},
        )
        tokens = await issue_session(user, self.tokens, self.kv)
        await NotificationService(self.db).notify_verification_success(student.id)
        return tokens

    # ─── Email magic link ────────────────────────────────────────

    async def send_magic_link(self, email: str, university_id: UUID) -> dict[str, Any]:
        university = await get_active_university(self.db, university_id)
        if not email_valid_for(email, university):
            raise BadRequestError(
                "Invalid student email domain. Please use your university email (.edu, .edu.ng)",
            )

        user, student = await find_or_create_student(
            self.db, email,
            name=university.name or "Student",
            university_name=university.name,
            university_id=university.id,
        )
        now = utcnow()
        token = generate_magic_link_token()
        self.db.add(Verification(
            student_id=student.id,
            method=VerificationMethod.EMAIL.value,
            status=VerificationStatus.PENDING.value,
            magic_link_token=token,
            magic_link_sent_at=now,
            expires_at=expiry_from_now(MAGIC_LINK_EXPIRY_MINUTES, now),
            ndpr_consent=True,
            consent_timestamp=now,
        ))
        await self.db.commit()

        if self.email_sender:
            link = f"{self.frontend_url}/verify/email?token={token}"
            subject, html, text = magic_link_email(link, university.name)
            result = await self.email_sender.send(email, subject, html, text)
            if not result.success:
                logger.error(
                    f"Failed to send magic link: {result.error}",
                    extra={"student_id": str(student.id)},
                )
        return {"email": email, "expiresInMinutes": MAGIC_LINK_EXPIRY_MINUTES}

    async def verify_magic_link(self, token: str | None) -> dict[str, Any]:
        if not token:
            raise BadRequestError("Token is required")

        result = await self.db.execute(
            select(Verification)
            .where(Verification.magic_link_token == token)
            .where(Verification.method == VerificationMethod.EMAIL.value)
            .where(Verification.status == VerificationStatus.PENDING.value)
            .limit(1),
        )
        verification = result.scalar_one_or_none()
        if not verification:
            raise UnauthorizedError("Invalid or expired verification token")
        if is_expired(verification.expires_at):
            raise UnauthorizedError("Verification token has expired")

        student = await self.db.get(Student, verification.student_id)
        if not student or not student.user or student.user.deleted_at is not None:
            raise UnauthorizedError("Invalid or expired verification token")

        tokens = await self._complete(student.user, student, verification)
        return {"verified": True, "tokens": tokens}

    # ─── Registration number ─────────────────────────────────────

    async def verify_registration(
        self,
        university_id: UUID,
        registration_number: str,
        student_name: str,
        student_email: str | None = None,
    ) -> dict[str, Any]:
        university = await get_active_university(self.db, university_id)
        endpoint, api_config = registry_endpoint(university)
        if not endpoint or not self.registry:
            raise UnauthorizedError("Registration lookup not available for this university")

        lookup = await self.registry.lookup(
            endpoint, registration_number, api_config, student_name, student_email,
        )
        if not lookup.verified:
            raise UnauthorizedError(lookup.error or "Registration number verification failed")

        email = student_email or f"{registration_number}@university.edu"
        user, student = await find_or_create_student(
            self.db, email,
            name=lookup.student_data.get("name") or student_name,
            university_name=university.name,
            university_id=university.id,
            registration_number=registration_number,
        )
        now = utcnow()
        verification = Verification(
            student_id=student.id,
            method=VerificationMethod.REGISTRATION.value,
            registration_number=registration_number,
            university_data=lookup.student_data,
            expires_at=expiry_from_now(VERIFICATION_RECORD_EXPIRY_MINUTES, now),
            ndpr_consent=True,
            consent_timestamp=now,
        )
        self.db.add(verification)

        tokens = await self._complete(user, student, verification)
        return {"verified": True, "studentData": lookup.student_data, "tokens": tokens}

    # ─── WhatsApp OTP ────────────────────────────────────────────

    async def request_whatsapp_otp(self, phone_number: str, university_id: UUID) -> dict[str, Any]:
        if not phone_number or not university_id:
            raise BadRequestError("Phone number and university ID are required")
        await get_active_university(self.db, university_id)

        otp = generate_otp()
        await self.kv.set(
            whatsapp_otp_key(phone_number), otp, WHATSAPP_OTP_EXPIRY_MINUTES * 60,
        )

        data: dict[str, Any] = {
            "phoneNumber": phone_number,
            "expiresInMinutes": WHATSAPP_OTP_EXPIRY_MINUTES,
        }
        if not self.whatsapp_sender:
            data["note"] = "WhatsApp service not configured. OTP is available for testing."
            return data

        result = await self.whatsapp_sender.send(
            phone_number, whatsapp_otp_message(otp, WHATSAPP_OTP_EXPIRY_MINUTES),
        )
        if result.not_configured:
            data["note"] = "WhatsApp service not configured. OTP is available for testing."
        elif not result.success:
            raise BadRequestError(result.error or "Failed to send WhatsApp OTP")
        return data

    async def verify_whatsapp_otp(
        self, phone_number: str, otp: str, student_name: str | None = None,
    ) -> dict[str, Any]:
        key = whatsapp_otp_key(phone_number)
        stored = await self.kv.get(key)
        if not otp_matches(stored, otp):
            raise UnauthorizedError("Invalid or expired OTP")
        await self.kv.delete(key)

        user, student = await find_or_create_student(
            self.db, phone_to_email(phone_number),
            name=student_name or "Student",
            phone_number=phone_number,
        )
        now = utcnow()
        verification = Verification(
            student_id=student.id,
            method=VerificationMethod.WHATSAPP.value,
            otp_code=otp,
            otp_sent_at=now,
            expires_at=expiry_from_now(VERIFICATION_RECORD_EXPIRY_MINUTES, now),
            ndpr_consent=True,
            consent_timestamp=now,
        )
        self.db.add(verification)

        tokens = await self._complete(user, student, verification)
        return {"verified": True, "tokens": tokens}
