"""Student Accounts — passwordless student identities created by verification flows.

Invariants:
    - A verification flow never creates a second user for the same email
    - Users created here are students, unverified, with NDPR consent recorded
    - Soft-deleted users are refused, never resurrected
    - An email already owned by a vendor or admin cannot be claimed by a student flow
    - mark_verified() stamps student.verification_date and flips the user to 'verified'
      in the caller's transaction; the caller commits
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import utcnow
from awoof.core.domain_types import (
    StudentStatus, UserRole, UserVerificationStatus,
)
from awoof.core.errors import ConflictError, UnauthorizedError
from awoof.models.student import Student
from awoof.models.user import User

logger = logging.getLogger(__name__)


async def find_or_create_student(
    db: AsyncSession,
    email: str,
    name: str,
    university_name: str = "",
    university_id: UUID | None = None,
    registration_number: str | None = None,
    phone_number: str | None = None,
) -> tuple[User, Student]:
    """Return the (user, student) pair for ``email``, creating either side if missing."""
    email = email.lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        now = utcnow()
        user = User(
            email=email,
            role=UserRole.STUDENT.value,
            verification_status=UserVerificationStatus.UNVERIFIED.value,
            ndpr_consent=True,
            consent_timestamp=now,
        )
        db.add(user)
        await db.flush()
        logger.info("Student user created by verification", extra={"user_id": str(user.id)})
    elif user.deleted_at is not None:
        raise UnauthorizedError("Account has been deleted")
    elif user.role != UserRole.STUDENT.value:
        raise ConflictError("This email belongs to a non-student account")
    else:
        user.ndpr_consent = True
        user.consent_timestamp = utcnow()

    result = await db.execute(select(Student).where(Student.user_id == user.id))
    student = result.scalar_one_or_none()
    if student is None:
        student = Student(
            user_id=user.id,
            name=name,
            university=university_name,
            university_id=university_id,
            registration_number=registration_number,
            phone_number=phone_number,
            status=StudentStatus.ACTIVE.value,
        )
        db.add(student)
        await db.flush()
    else:
        # A successful lookup is authoritative for the identifier it checked
        if registration_number:
            student.registration_number = registration_number
        if phone_number:
            student.phone_number = phone_number
        if university_id and not student.university_id:
            student.university_id = university_id
            student.university = university_name or student.university
    return user, student


def mark_verified(user: User, student: Student, now: datetime | None = None) -> None:
    now = now or utcnow()
    student.verification_date = now
    user.verification_status = UserVerificationStatus.VERIFIED.value
