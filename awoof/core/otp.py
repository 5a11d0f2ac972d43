"""One-Time Codes — numeric OTPs and their lifetimes.

Invariants:
    - OTPs are exactly OTP_LENGTH decimal digits (leading zeros allowed)
    - Generated with `secrets` (CSPRNG), never `random`

Design Decisions:
    - Lifetimes live here, next to the generator, so services never hardcode minutes
"""

import secrets
from datetime import datetime

from awoof.core.clock import expiry_from_now

OTP_LENGTH = 6
OTP_EXPIRY_MINUTES = 10
WHATSAPP_OTP_EXPIRY_MINUTES = 5
MAGIC_LINK_EXPIRY_MINUTES = 15
VERIFICATION_RECORD_EXPIRY_MINUTES = 15
VERIFICATION_TOKEN_EXPIRY_MINUTES = 30


def generate_otp() -> str:
    """Return a zero-padded 6-digit code."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


def otp_expiry(now: datetime | None = None) -> datetime:
    return expiry_from_now(OTP_EXPIRY_MINUTES, now)


def generate_magic_link_token() -> str:
    """64 hex chars of entropy for emailed links."""
    return secrets.token_hex(32)


def generate_verification_token() -> str:
    """Vendor-facing one-time purchase token."""
    return f"awoof_{secrets.token_hex(32)}"


def otp_matches(expected: str | None, candidate: str) -> bool:
    if not expected:
        return False
    return secrets.compare_digest(expected, candidate)
