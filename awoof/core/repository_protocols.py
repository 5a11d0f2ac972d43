"""Boundary Protocols — contracts between core/services and the infrastructure shell.

Invariants:
    - Services depend on these Protocols, never on redis or httpx directly
    - Outbound calls return result dataclasses instead of raising for expected failures
      (not configured, not found, declined); only programming errors propagate
    - Implementations provided by infrastructure via FastAPI dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance (ADR: ExMA anti-pattern)
    - Result dataclasses carry `error` strings verbatim so routes can surface them to clients
"""

from dataclasses import dataclass, field
from typing import Any, Protocol


# ─── Result Types ────────────────────────────────────────────────

@dataclass
class SendResult:
    """Outcome of an outbound message (email, WhatsApp)."""
    success: bool
    error: str | None = None
    message_id: str | None = None
    not_configured: bool = False


@dataclass
class PaymentVerification:
    """Outcome of a gateway reference lookup; amount already in naira."""
    verified: bool
    amount: float | None = None
    reference: str | None = None
    error: str | None = None


@dataclass
class RegistryResult:
    """Outcome of a registration-number lookup against a university system."""
    verified: bool
    student_data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None


# ─── Protocols ───────────────────────────────────────────────────

class KeyValueStore(Protocol):
    """Contract for TTL'd string storage (refresh tokens, OTPs)."""
    async def get(self, key: str) -> str | None: ...
    async def set(self, key: str, value: str, ttl_seconds: int) -> None: ...
    async def delete(self, key: str) -> None: ...
    async def ping(self) -> bool: ...


class EmailSender(Protocol):
    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> SendResult: ...


class WhatsAppSender(Protocol):
    async def send(self, phone_number: str, message: str) -> SendResult: ...


class PaymentVerifier(Protocol):
    async def verify(self, reference: str) -> PaymentVerification: ...


class RegistryLookup(Protocol):
    async def lookup(
        self,
        endpoint: str,
        registration_number: str,
        api_config: dict[str, Any] | None = None,
        student_name: str | None = None,
        student_email: str | None = None,
    ) -> RegistryResult: ...
