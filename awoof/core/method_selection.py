"""Verification Method Selection — pure policy for the multi-method student verification.

Invariants:
    - DEFAULT_METHOD_ORDER is portal, email, registration, whatsapp
    - merge_methods() always returns all four methods, sorted by priority
    - Configured rows override defaults; unconfigured methods fall back to priority = default index
    - choose_best_method() returns the first available method whose precondition holds, else None
    - Portal is only chosen when the university explicitly configured it

Design Decisions:
    - Pure functions over DB rows reduced to MethodInfo: the orchestrator service does IO,
      this module decides (ADR: functional core, imperative shell)
    - Inactive configured rows are kept as unavailable instead of being re-filled as
      available defaults, so an admin can switch a method off for one university
    - Portal without configuration is not selectable: there is no portal URL to redirect to
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from awoof.core.clock import as_utc, utcnow
from awoof.core.domain_types import VerificationMethod, UserVerificationStatus

DEFAULT_METHOD_ORDER: tuple[VerificationMethod, ...] = (
    VerificationMethod.PORTAL,
    VerificationMethod.EMAIL,
    VerificationMethod.REGISTRATION,
    VerificationMethod.WHATSAPP,
)


@dataclass(frozen=True)
class MethodInfo:
    """One verification method as seen by a university."""
    method_type: VerificationMethod
    is_available: bool
    priority: int
    configured: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "methodType": self.method_type.value,
            "isAvailable": self.is_available,
            "priority": self.priority,
        }


def merge_methods(configured: list[MethodInfo]) -> list[MethodInfo]:
    """Overlay configured methods onto the default order.

    An inactive configured row stays in the list as unavailable; it is not replaced
    by the default entry.
    """
    by_type = {m.method_type: m for m in configured}
    merged = [
        by_type.get(method) or MethodInfo(method, True, index)
        for index, method in enumerate(DEFAULT_METHOD_ORDER)
    ]
    return sorted(merged, key=lambda m: m.priority)


def choose_best_method(
    methods: list[MethodInfo],
    email_valid: bool = False,
    has_registration_number: bool = False,
    has_phone_number: bool = False,
) -> VerificationMethod | None:
    """Walk methods in priority order and pick the first one the student can use."""
    for info in methods:
        if not info.is_available:
            continue
        if info.method_type is VerificationMethod.PORTAL and info.configured:
            return info.method_type
        if info.method_type is VerificationMethod.EMAIL and email_valid:
            return info.method_type
        if info.method_type is VerificationMethod.REGISTRATION and has_registration_number:
            return info.method_type
        if info.method_type is VerificationMethod.WHATSAPP and has_phone_number:
            return info.method_type
    return None


def next_step_for_method(
    method: VerificationMethod,
    email: str | None = None,
    registration_number: str | None = None,
    phone_number: str | None = None,
) -> dict[str, Any]:
    """Client instruction for the chosen method."""
    if method is VerificationMethod.EMAIL:
        return {"action": "sendEmail", "email": email}
    if method is VerificationMethod.REGISTRATION:
        return {"action": "verifyRegistration", "registrationNumber": registration_number}
    if method is VerificationMethod.WHATSAPP:
        return {"action": "sendOTP", "phoneNumber": phone_number}
    return {"action": "redirectToPortal"}


def summarize_status(
    user_status: str | None,
    verification_date: datetime | None = None,
    method: str | None = None,
    expires_at: datetime | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Student verification status; user_status None means the student is unknown."""
    if user_status is None:
        return {
            "isVerified": False,
            "verificationStatus": UserVerificationStatus.UNVERIFIED.value,
        }
    expires = as_utc(expires_at) if expires_at else None
    expired = bool(expires and (now or utcnow()) > expires)
    verified = user_status == UserVerificationStatus.VERIFIED.value

    result: dict[str, Any] = {
        "isVerified": verified and not expired,
        "verificationStatus": (
            UserVerificationStatus.EXPIRED.value if expired
            else user_status or UserVerificationStatus.UNVERIFIED.value
        ),
    }
    if verification_date:
        result["lastVerificationDate"] = as_utc(verification_date).isoformat()
    if method:
        result["verificationMethod"] = method
    if expires:
        result["expiresAt"] = expires.isoformat()
    return result
