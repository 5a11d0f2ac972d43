"""Auth Routes — registration, login, token refresh and password recovery.

Invariants:
    - Routes parse, delegate to AuthService and wrap the result; no business logic here
    - forgot-password answers the same message whether or not the email exists
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.api.dependencies import (
    AuthUser, get_current_user, get_email_sender, get_token_service,
)
from awoof.api.responses import success
from awoof.config import get_settings
from awoof.core.repository_protocols import EmailSender, KeyValueStore
from awoof.infrastructure.database import get_db
from awoof.infrastructure.redis_store import get_kv_store
from awoof.infrastructure.security import TokenService
from awoof.schemas.auth import (
    ForgotPasswordRequest, LoginRequest, RefreshRequest, RegisterRequest,
    ResetPasswordRequest, UpdatePasswordRequest, VerifyResetOtpRequest,
)
from awoof.services.auth_service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

FORGOT_PASSWORD_MESSAGE = "If the email exists, an OTP has been sent"


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    kv: KeyValueStore = Depends(get_kv_store),
    tokens: TokenService = Depends(get_token_service),
    email_sender: EmailSender = Depends(get_email_sender),
) -> AuthService:
    return AuthService(db, kv, tokens, email_sender, get_settings().bcrypt_rounds)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    data = await auth.register(body.email, body.password, body.role, body.name)
    return success(data, "User registered successfully")


@router.post("/login")
async def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    data = await auth.login(body.email, body.password)
    return success(data, "Login successful")


@router.post("/refresh")
async def refresh(body: RefreshRequest, auth: AuthService = Depends(get_auth_service)):
    data = await auth.refresh(body.refresh_token)
    return success(data, "Token refreshed successfully")


@router.post("/logout")
async def logout(
    user: AuthUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.logout(str(user.id))
    return success(None, "Logged out successfully")


@router.get("/me")
async def me(
    user: AuthUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    return success(await auth.me(str(user.id)), "User retrieved successfully")


@router.post("/forgot-password")
async def forgot_password(
    body: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service),
):
    await auth.forgot_password(body.email)
    return success(None, FORGOT_PASSWORD_MESSAGE)


@router.post("/verify-reset-otp")
async def verify_reset_otp(
    body: VerifyResetOtpRequest, auth: AuthService = Depends(get_auth_service),
):
    data = await auth.verify_reset_otp(body.email, body.otp)
    return success(data, "OTP verified successfully")


@router.post("/reset-password")
async def reset_password(
    body: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service),
):
    await auth.reset_password(body.reset_token, body.new_password)
    return success(None, "Password reset successfully")


@router.post("/update-password")
async def update_password(
    body: UpdatePasswordRequest,
    user: AuthUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    await auth.update_password(str(user.id), body.old_password, body.new_password)
    return success(None, "Password updated successfully")
