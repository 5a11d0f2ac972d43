"""WhatsApp Client — delivers OTP messages through the configured WhatsApp gateway.

Invariants:
    - Implements core.repository_protocols.WhatsAppSender
    - Missing key or URL: SendResult(success=False, not_configured=True), no network call
    - Phone numbers sent with a leading '+' and digits only
"""

import logging
import re

import httpx

from awoof.core.repository_protocols import SendResult

logger = logging.getLogger(__name__)


def format_phone(phone_number: str) -> str:
    if phone_number.startswith("+"):
        return phone_number
    return "+" + re.sub(r"[^0-9]", "", phone_number)


class WhatsAppClient:
    def __init__(
        self,
        api_key: str | None,
        api_url: str | None,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.api_url = api_url.rstrip("/") if api_url else None
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def send(self, phone_number: str, message: str) -> SendResult:
        if not self.api_key or not self.api_url:
            logger.warning("WhatsApp API not configured; message not sent")
            return SendResult(
                success=False,
                error="WhatsApp service not configured",
                not_configured=True,
            )
        try:
            response = await self._client.post(
                f"{self.api_url}/send",
                json={"to": format_phone(phone_number), "message": message},
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Failed to send WhatsApp message: {e}", extra={"service": "whatsapp"})
            return SendResult(success=False, error="Failed to send WhatsApp OTP")

        try:
            body = response.json()
        except ValueError:
            body = {}
        message_id = body.get("messageId") or body.get("id") if isinstance(body, dict) else None
        return SendResult(success=True, message_id=message_id)

    async def aclose(self) -> None:
        await self._client.aclose()
