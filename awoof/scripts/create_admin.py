"""CLI to create an admin account, or promote an existing user to admin.

Usage: python -m awoof.scripts.create_admin --email admin@awoof.com --password 'S3curePass'
"""

import argparse
import asyncio
import logging
import sys

from fastapi.concurrency import run_in_threadpool
from pydantic import TypeAdapter, EmailStr, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.config import get_settings
from awoof.core.clock import utcnow
from awoof.core.domain_types import UserRole, UserVerificationStatus
from awoof.core.password_policy import validate_password_strength
from awoof.infrastructure.database import close_db, init_db
from awoof.infrastructure.observability import setup_logging
from awoof.infrastructure.security import hash_password
from awoof.models.user import User
from awoof.services.auth_service import find_user_by_email

logger = logging.getLogger(__name__)


async def upsert_admin(db: AsyncSession, email: str, password: str, rounds: int = 12) -> str:
    """Create or promote; returns "created", "promoted" or "updated"."""
    email = email.strip().lower()
    password_hash = await run_in_threadpool(hash_password, password, rounds)
    user = await find_user_by_email(db, email)

    if user is None:
        db.add(User(
            email=email,
            password_hash=password_hash,
            role=UserRole.ADMIN.value,
            verification_status=UserVerificationStatus.VERIFIED.value,
        ))
        outcome = "created"
    else:
        outcome = "updated" if user.role == UserRole.ADMIN.value else "promoted"
        user.role = UserRole.ADMIN.value
        user.password_hash = password_hash
        user.verification_status = UserVerificationStatus.VERIFIED.value
        user.deleted_at = None
        user.updated_at = utcnow()
    await db.commit()
    return outcome


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", required=True)
    parser.add_argument("--password", required=True)
    return parser.parse_args(argv)


async def _run(email: str, password: str) -> str:
    settings = get_settings()
    manager = init_db(settings.database_url)
    try:
        async with manager.session() as db:
            return await upsert_admin(db, email, password, settings.bcrypt_rounds)
    finally:
        await close_db()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level, "text")

    try:
        TypeAdapter(EmailStr).validate_python(args.email)
    except ValidationError:
        logger.error("Invalid email format")
        return 1
    failures = validate_password_strength(args.password)
    if failures:
        logger.error(f"Password validation failed: {', '.join(failures)}")
        return 1

    outcome = asyncio.run(_run(args.email, args.password))
    logger.info(f"Admin {outcome}: {args.email.strip().lower()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
