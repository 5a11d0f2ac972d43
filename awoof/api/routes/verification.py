"""Verification Routes — method discovery and the four student verification channels.

Invariants:
    - Every channel that succeeds answers with a fresh token pair
    - Widget tokens are minted only for the calling student
    - Token checks are read-only: a checked token stays usable for the report
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.api.dependencies import (
    get_current_student, get_email_sender, get_frontend_url, get_registry_lookup,
    get_reporting_vendor, get_token_service, get_whatsapp_sender,
)
from awoof.api.responses import success
from awoof.core.repository_protocols import (
    EmailSender, KeyValueStore, RegistryLookup, WhatsAppSender,
)
from awoof.infrastructure.database import get_db
from awoof.infrastructure.redis_store import get_kv_store
from awoof.infrastructure.security import TokenService
from awoof.models.student import Student
from awoof.models.vendor import Vendor
from awoof.schemas.verification import (
    EmailVerificationRequest, InitiateVerificationRequest,
    RegistrationVerificationRequest, TokenCheckRequest, WhatsAppOtpRequest,
    WhatsAppVerifyRequest, WidgetTokenRequest,
)
from awoof.services.student_verification import StudentVerificationHandlers
from awoof.services.verification_orchestrator import VerificationOrchestrator
from awoof.services.verification_tokens import VerificationTokenService

router = APIRouter(prefix="/api/v1/verification", tags=["verification"])


def get_handlers(
    db: AsyncSession = Depends(get_db),
    kv: KeyValueStore = Depends(get_kv_store),
    tokens: TokenService = Depends(get_token_service),
    email_sender: EmailSender = Depends(get_email_sender),
    whatsapp_sender: WhatsAppSender = Depends(get_whatsapp_sender),
    registry: RegistryLookup = Depends(get_registry_lookup),
    frontend_url: str = Depends(get_frontend_url),
) -> StudentVerificationHandlers:
    return StudentVerificationHandlers(
        db, kv, tokens,
        email_sender=email_sender,
        whatsapp_sender=whatsapp_sender,
        registry=registry,
        frontend_url=frontend_url,
    )


@router.get("/methods/{university_id}")
async def get_methods(university_id: UUID, db: AsyncSession = Depends(get_db)):
    data = await VerificationOrchestrator(db).get_methods(university_id)
    return success(data, "Verification methods retrieved successfully")


@router.post("/initiate")
async def initiate(body: InitiateVerificationRequest, db: AsyncSession = Depends(get_db)):
    data = await VerificationOrchestrator(db).initiate(
        body.university_id,
        body.ndpr_consent,
        email=body.email,
        registration_number=body.registration_number,
        phone_number=body.phone_number,
    )
    return success(data, "Verification method determined")


@router.post("/email")
async def send_email_link(
    body: EmailVerificationRequest,
    handlers: StudentVerificationHandlers = Depends(get_handlers),
):
    data = await handlers.send_magic_link(body.email, body.university_id)
    return success(data, "Magic link sent to your email. Please check your inbox.")


@router.get("/email/verify")
async def verify_email_link(
    token: str | None = Query(None),
    handlers: StudentVerificationHandlers = Depends(get_handlers),
):
    data = await handlers.verify_magic_link(token)
    return success(data, "Email verified successfully")


@router.post("/registration")
async def verify_registration(
    body: RegistrationVerificationRequest,
    handlers: StudentVerificationHandlers = Depends(get_handlers),
):
    data = await handlers.verify_registration(
        body.university_id,
        body.registration_number.strip(),
        body.student_name.strip(),
        body.student_email.lower() if body.student_email else None,
    )
    return success(data, "Registration number verified successfully")


@router.post("/whatsapp/request")
async def request_whatsapp_otp(
    body: WhatsAppOtpRequest,
    handlers: StudentVerificationHandlers = Depends(get_handlers),
):
    data = await handlers.request_whatsapp_otp(body.phone_number, body.university_id)
    return success(data, "OTP sent to your WhatsApp. Please check your messages.")


@router.post("/whatsapp/verify")
async def verify_whatsapp_otp(
    body: WhatsAppVerifyRequest,
    handlers: StudentVerificationHandlers = Depends(get_handlers),
):
    data = await handlers.verify_whatsapp_otp(body.phone_number, body.otp, body.student_name)
    return success(data, "WhatsApp OTP verified successfully")


@router.get("/status/{student_id}")
async def verification_status(student_id: UUID, db: AsyncSession = Depends(get_db)):
    data = await VerificationOrchestrator(db).status(student_id)
    return success(data, "Verification status retrieved successfully")


@router.post("/widget/token", status_code=status.HTTP_201_CREATED)
async def create_widget_token(
    body: WidgetTokenRequest,
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db),
):
    token, expires_at = await VerificationTokenService(db).create(
        student.id, body.vendor_id, body.product_id,
    )
    return success(
        {"token": token, "expiresAt": expires_at.isoformat()},
        "Verification token created successfully",
    )


@router.post("/widget/token/check")
async def check_widget_token(
    body: TokenCheckRequest,
    vendor: Vendor = Depends(get_reporting_vendor),
    db: AsyncSession = Depends(get_db),
):
    data = await VerificationTokenService(db).check(body.verification_token, vendor.id)
    # persists API key usage recorded during authentication
    await db.commit()
    return success(data)
