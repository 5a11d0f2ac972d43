"""Auth Service — registration, login, refresh rotation and password recovery.

Invariants:
    - One refresh token per user, stored at refresh_token:{user_id} with the refresh TTL;
      refresh succeeds only when the presented token equals the stored one
    - Logout, password reset and password update all delete the stored refresh token
    - Login failures are indistinguishable ("Invalid email or password") except for
      soft-deleted accounts
    - forgot_password never reveals whether an email is registered

Design Decisions:
    - Reset flow is two-step: the OTP buys a short-lived reset JWT which must also match
      password_reset:{user_id}, so one OTP cannot be replayed after a reset
    - Email delivery failures are logged, not raised: the OTP stays valid on the user row
    - bcrypt runs in the threadpool so a login burst never stalls the event loop
"""

import logging
from datetime import timedelta

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import is_expired
from awoof.core.domain_types import UserRole, StudentStatus, VendorStatus, as_uuid
from awoof.core.email_templates import password_reset_email
from awoof.core.errors import (
    BadRequestError, ConflictError, UnauthorizedError,
)
from awoof.core.otp import generate_otp, otp_expiry, otp_matches, OTP_EXPIRY_MINUTES
from awoof.core.password_policy import validate_password_strength
from awoof.core.repository_protocols import EmailSender, KeyValueStore
from awoof.infrastructure.redis_store import password_reset_key, refresh_token_key
from awoof.infrastructure.security import (
    TokenService, hash_password, verify_password,
)
from awoof.models.student import Student
from awoof.models.user import User
from awoof.models.vendor import Vendor

logger = logging.getLogger(__name__)

RESET_TOKEN_TTL = timedelta(minutes=OTP_EXPIRY_MINUTES)


def user_summary(user: User) -> dict:
    return {
        "id": str(user.id),
        "email": user.email,
        "role": user.role,
        "verificationStatus": user.verification_status,
    }


def ensure_strong_password(password: str) -> None:
    failures = validate_password_strength(password)
    if failures:
        raise BadRequestError(", ".join(failures))


async def issue_session(
    user: User, tokens: TokenService, kv: KeyValueStore,
) -> dict[str, str]:
    """Mint an access/refresh pair and remember the refresh token."""
    pair = tokens.create_token_pair(str(user.id), user.email, user.role)
    await kv.set(
        refresh_token_key(user.id), pair["refreshToken"],
        int(tokens.refresh_ttl.total_seconds()),
    )
    return pair


async def find_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


class AuthService:
    """Account lifecycle handlers for every role."""

    def __init__(
        self,
        db: AsyncSession,
        kv: KeyValueStore,
        tokens: TokenService,
        email_sender: EmailSender | None = None,
        bcrypt_rounds: int = 12,
    ):
        self.db = db
        self.kv = kv
        self.tokens = tokens
        self.email_sender = email_sender
        self.bcrypt_rounds = bcrypt_rounds

    async def register(self, email: str, password: str, role: str, name: str) -> dict:
        ensure_strong_password(password)
        if await find_user_by_email(self.db, email):
            raise ConflictError("User with this email already exists")

        user = User(
            email=email.lower(),
            password_hash=await run_in_threadpool(hash_password, password, self.bcrypt_rounds),
            role=role,
        )
        self.db.add(user)
        await self.db.flush()

        if role == UserRole.STUDENT.value:
            self.db.add(Student(
                user_id=user.id, name=name, university="",
                status=StudentStatus.ACTIVE.value,
            ))
        elif role == UserRole.VENDOR.value:
            self.db.add(Vendor(
                user_id=user.id, name=name, status=VendorStatus.PENDING.value,
            ))
        await self.db.commit()
        logger.info("User registered", extra={"user_id": str(user.id)})

        tokens = await issue_session(user, self.tokens, self.kv)
        return {"user": user_summary(user), "tokens": tokens}

    async def login(self, email: str, password: str) -> dict:
        user = await find_user_by_email(self.db, email)
        if not user or not user.password_hash:
            raise UnauthorizedError("Invalid email or password")
        if user.deleted_at is not None:
            raise UnauthorizedError("Account has been deleted")
        if not await run_in_threadpool(verify_password, password, user.password_hash):
            raise UnauthorizedError("Invalid email or password")

        tokens = await issue_session(user, self.tokens, self.kv)
        return {"user": user_summary(user), "tokens": tokens}

    async def refresh(self, refresh_token: str) -> dict:
        payload = self.tokens.decode_refresh_token(refresh_token)
        stored = await self.kv.get(refresh_token_key(payload["userId"]))
        if not stored or stored != refresh_token:
            raise UnauthorizedError("Refresh token not found or invalid")
        access = self.tokens.create_access_token(
            payload["userId"], payload.get("email", ""), payload.get("role", ""),
        )
        return {"accessToken": access}

    async def logout(self, user_id: str) -> None:
        await self.kv.delete(refresh_token_key(user_id))

    async def me(self, user_id: str) -> dict:
        user = await self.db.get(User, as_uuid(user_id))
        if not user:
            raise UnauthorizedError("User not found")

        profile = None
        if user.role == UserRole.STUDENT.value:
            result = await self.db.execute(select(Student).where(Student.user_id == user.id))
            student = result.scalar_one_or_none()
            if student:
                profile = {
                    "id": str(student.id),
                    "name": student.name,
                    "university": student.university,
                    "registrationNumber": student.registration_number,
                }
        elif user.role == UserRole.VENDOR.value:
            result = await self.db.execute(select(Vendor).where(Vendor.user_id == user.id))
            vendor = result.scalar_one_or_none()
            if vendor:
                profile = {"id": str(vendor.id), "name": vendor.name, "status": vendor.status}

        return {
            "user": {
                **user_summary(user),
                "createdAt": user.created_at.isoformat() if user.created_at else None,
                "profile": profile,
            },
        }

    async def forgot_password(self, email: str) -> None:
        user = await find_user_by_email(self.db, email)
        if not user or user.deleted_at is not None:
            logger.info("Password reset requested for unknown email")
            return

        otp = generate_otp()
        user.password_reset_otp = otp
        user.password_reset_otp_expires_at = otp_expiry()
        await self.db.commit()

        if not self.email_sender:
            return
        subject, html, text = password_reset_email(otp)
        result = await self.email_sender.send(user.email, subject, html, text)
        if not result.success:
            logger.error(
                f"Password reset email not delivered: {result.error}",
                extra={"user_id": str(user.id)},
            )

    async def verify_reset_otp(self, email: str, otp: str) -> dict:
        user = await find_user_by_email(self.db, email)
        if (
            not user
            or not otp_matches(user.password_reset_otp, otp)
            or is_expired(user.password_reset_otp_expires_at)
        ):
            raise BadRequestError("Invalid or expired OTP")

        reset_token = self.tokens.create_reset_token(str(user.id), user.email, RESET_TOKEN_TTL)
        await self.kv.set(
            password_reset_key(user.id), reset_token, int(RESET_TOKEN_TTL.total_seconds()),
        )
        return {"resetToken": reset_token}

    async def reset_password(self, reset_token: str, new_password: str) -> None:
        try:
            payload = self.tokens.decode_reset_token(reset_token)
        except UnauthorizedError:
            raise BadRequestError("Invalid or expired reset token")

        user_id = payload["userId"]
        stored = await self.kv.get(password_reset_key(user_id))
        if not stored or stored != reset_token:
            raise BadRequestError("Invalid or expired reset token")
        ensure_strong_password(new_password)

        user = await self.db.get(User, as_uuid(user_id))
        if not user:
            raise BadRequestError("Invalid or expired reset token")
        user.password_hash = await run_in_threadpool(
            hash_password, new_password, self.bcrypt_rounds,
        )
        user.password_reset_otp = None
        user.password_reset_otp_expires_at = None
        await self.db.commit()

        await self.kv.delete(password_reset_key(user_id))
        await self.kv.delete(refresh_token_key(user_id))
        logger.info("Password reset", extra={"user_id": user_id})

    async def update_password(self, user_id: str, old_password: str, new_password: str) -> None:
        user = await self.db.get(User, as_uuid(user_id))
        if not user:
            raise UnauthorizedError("User not found")
        if not await run_in_threadpool(verify_password, old_password, user.password_hash):
            raise BadRequestError("Old password is incorrect")
        ensure_strong_password(new_password)

        user.password_hash = await run_in_threadpool(
            hash_password, new_password, self.bcrypt_rounds,
        )
        await self.db.commit()
        await self.kv.delete(refresh_token_key(user_id))
