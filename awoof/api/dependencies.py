"""API Dependencies — authentication, role guards and outbound-client providers.

Invariants:
    - A bearer token must look like a JWT and be at most 4096 characters before it
      reaches PyJWT; every decode failure answers 401 "Authentication failed"
    - Role guards answer 403 "Insufficient permissions"
    - Transaction reports authenticate with X-API-Key when present, else a vendor JWT
    - Outbound clients are process-wide singletons built from settings; tests replace
      them through app.dependency_overrides

Design Decisions:
    - Token payload trusted after signature check (no user lookup per request): role and
      identity are in the claims, handlers that need the row load it themselves
    - require_role() is a dependency factory, same shape as the route-level guards in the
      rest of the codebase: Depends(require_role(UserRole.ADMIN))
"""

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Callable
from uuid import UUID

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.config import get_settings
from awoof.core.domain_types import UserRole, as_uuid
from awoof.core.errors import ForbiddenError, NotFoundError, UnauthorizedError
from awoof.infrastructure.database import get_db
from awoof.infrastructure.email_client import BrevoEmailClient
from awoof.infrastructure.paystack_client import PaystackClient
from awoof.infrastructure.security import TokenService
from awoof.infrastructure.university_registry_client import UniversityRegistryClient
from awoof.infrastructure.whatsapp_client import WhatsAppClient
from awoof.models.student import Student
from awoof.models.vendor import Vendor
from awoof.services.vendor_payments import authenticate_api_key
from awoof.services.vendor_accounts import get_vendor_for_user

logger = logging.getLogger(__name__)

MAX_TOKEN_LENGTH = 4096
_JWT_SHAPE = re.compile(r"^[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*$")

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthUser:
    """Identity carried by a verified access token."""
    id: UUID
    email: str
    role: str


# ─── Providers ───────────────────────────────────────────────────

@lru_cache
def get_token_service() -> TokenService:
    settings = get_settings()
    return TokenService(
        settings.jwt_secret,
        settings.jwt_refresh_secret,
        algorithm=settings.jwt_algorithm,
        access_ttl=timedelta(minutes=settings.jwt_expires_in_minutes),
        refresh_ttl=timedelta(days=settings.jwt_refresh_expires_in_days),
    )


@lru_cache
def get_email_sender() -> BrevoEmailClient:
    settings = get_settings()
    return BrevoEmailClient(
        settings.brevo_api_key,
        settings.email_from,
        sender_name=settings.brevo_from_name,
        api_url=settings.brevo_api_url,
        max_attempts=settings.email_max_retries,
        base_delay_ms=settings.email_base_delay_ms,
    )


@lru_cache
def get_whatsapp_sender() -> WhatsAppClient:
    settings = get_settings()
    return WhatsAppClient(settings.whatsapp_api_key, settings.whatsapp_api_url)


@lru_cache
def get_payment_verifier() -> PaystackClient:
    settings = get_settings()
    return PaystackClient(
        settings.paystack_secret_key,
        base_url=settings.paystack_base_url,
        timeout_seconds=settings.paystack_timeout_seconds,
    )


@lru_cache
def get_registry_lookup() -> UniversityRegistryClient:
    return UniversityRegistryClient(get_settings().university_api_timeout_seconds)


def get_frontend_url() -> str:
    return get_settings().frontend_url


async def close_clients() -> None:
    """Close every client that was built during the process lifetime."""
    for provider in (
        get_email_sender, get_whatsapp_sender, get_payment_verifier, get_registry_lookup,
    ):
        if provider.cache_info().currsize:
            await provider().aclose()
            provider.cache_clear()


# ─── Authentication ──────────────────────────────────────────────

def _decode_bearer(token: str, tokens: TokenService) -> AuthUser:
    if len(token) > MAX_TOKEN_LENGTH or not _JWT_SHAPE.match(token):
        raise UnauthorizedError("Authentication failed")
    try:
        payload = tokens.decode_access_token(token)
        return AuthUser(
            id=as_uuid(payload["userId"]),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
        )
    except (UnauthorizedError, ValueError, KeyError) as e:
        logger.warning(f"Access token rejected: {e}")
        raise UnauthorizedError("Authentication failed")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> AuthUser:
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("No token provided")
    return _decode_bearer(credentials.credentials, tokens)


def require_role(*roles: UserRole) -> Callable:
    """Dependency factory: the caller must hold one of ``roles``."""
    allowed = {r.value for r in roles}

    async def dependency(user: AuthUser = Depends(get_current_user)) -> AuthUser:
        if user.role not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return user

    return dependency


async def get_current_vendor(
    user: AuthUser = Depends(require_role(UserRole.VENDOR)),
    db: AsyncSession = Depends(get_db),
) -> Vendor:
    return await get_vendor_for_user(db, user.id)


async def get_current_student(
    user: AuthUser = Depends(require_role(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db),
) -> Student:
    result = await db.execute(
        select(Student).where(Student.user_id == user.id),
    )
    student = result.scalar_one_or_none()
    if not student:
        raise NotFoundError("Student profile not found")
    return student


async def get_reporting_vendor(
    x_api_key: str | None = Header(None, alias="X-API-Key"),
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
    db: AsyncSession = Depends(get_db),
) -> Vendor:
    """Vendor behind an X-API-Key (vendor websites) or a vendor JWT (dashboard)."""
    if x_api_key:
        return await authenticate_api_key(db, x_api_key)
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("No token provided")
    user = _decode_bearer(credentials.credentials, tokens)
    if user.role != UserRole.VENDOR.value:
        raise ForbiddenError("Insufficient permissions")
    return await get_vendor_for_user(db, user.id)
