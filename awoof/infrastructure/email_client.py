"""Resilient Brevo Email Client — transactional email with retry, backoff, and error mapping.

Invariants:
    - Implements core.repository_protocols.EmailSender
    - No API key: returns SendResult(success=False, not_configured=True), no network call
    - Transient failures (timeouts, connection errors, 429, 5xx): retried up to max_attempts
      with exponential backoff and jitter
    - Client errors (4xx except 429): immediate failure, no retry
    - Never raises for delivery problems: callers decide whether email failure matters

Design Decisions:
    - Brevo REST API over the vendor SDK: one POST, httpx already in the stack
    - ±25% jitter on backoff: prevents thundering herd when the provider recovers
    - httpx.AsyncClient injectable: tests use httpx.MockTransport (ADR: no network in tests)
"""

import asyncio
import random
import logging

import httpx

from awoof.core.repository_protocols import SendResult

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class BrevoEmailClient:
    """Sends transactional email through Brevo's SMTP API."""

    def __init__(
        self,
        api_key: str | None,
        sender_email: str,
        sender_name: str = "Awoof",
        api_url: str = "https://api.brevo.com/v3/smtp/email",
        max_attempts: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.api_url = api_url
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._client = http_client or httpx.AsyncClient(timeout=10.0)

    async def send(
        self, to: str, subject: str, html: str, text: str | None = None,
    ) -> SendResult:
        """Send one email, retrying transient failures."""
        if not self.api_key:
            logger.error("BREVO_API_KEY is not configured")
            return SendResult(
                success=False, error="Email service not configured", not_configured=True,
            )

        payload = {
            "sender": {"name": self.sender_name, "email": self.sender_email},
            "to": [{"email": to}],
            "subject": subject,
            "htmlContent": html,
        }
        if text:
            payload["textContent"] = text

        error = "Max retries exceeded"
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await self._client.post(
                    self.api_url,
                    json=payload,
                    headers={"api-key": self.api_key, "accept": "application/json"},
                )
            except httpx.TransportError as e:
                error = str(e) or e.__class__.__name__
                logger.error(
                    f"Email sending failed (attempt {attempt}/{self.max_attempts}): {error}",
                    extra={"attempt": attempt, "service": "brevo"},
                )
            else:
                if response.is_success:
                    message_id = _safe_json(response).get("messageId")
                    logger.info("Email sent", extra={"attempt": attempt, "service": "brevo"})
                    return SendResult(success=True, message_id=message_id)
                error = _safe_json(response).get("message") or f"HTTP {response.status_code}"
                logger.error(
                    f"Email sending failed (attempt {attempt}/{self.max_attempts}): {error}",
                    extra={"attempt": attempt, "service": "brevo"},
                )
                if response.status_code not in _RETRYABLE_STATUS:
                    return SendResult(success=False, error=error)

            if attempt < self.max_attempts:
                await asyncio.sleep(self._backoff(attempt) / 1000)

        return SendResult(success=False, error=error)

    def _backoff(self, attempt: int) -> int:
        """Exponential backoff with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311

    async def aclose(self) -> None:
        await self._client.aclose()


def _safe_json(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
