"""Paystack Client — verifies payment references reported by vendors.

Invariants:
    - Implements core.repository_protocols.PaymentVerifier
    - No secret key: BadRequestError("Paystack is not configured"), no network call
    - verified=True only when Paystack reports data.status == "success"
    - Amounts converted from kobo to naira before leaving this module
    - HTTP 404 maps to "Payment reference not found"; other failures carry Paystack's message

Design Decisions:
    - Expected failures returned as PaymentVerification(verified=False, error=...):
      the reporting flow turns them into 400s with the gateway's wording
"""

import logging
from urllib.parse import quote

import httpx

from awoof.core.commission import kobo_to_naira
from awoof.core.errors import BadRequestError
from awoof.core.repository_protocols import PaymentVerification

logger = logging.getLogger(__name__)


class PaystackClient:
    """Thin wrapper over Paystack's transaction verification endpoint."""

    def __init__(
        self,
        secret_key: str | None,
        base_url: str = "https://api.paystack.co",
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.secret_key = secret_key
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def verify(self, reference: str) -> PaymentVerification:
        if not self.secret_key:
            raise BadRequestError("Paystack is not configured")

        url = f"{self.base_url}/transaction/verify/{quote(reference, safe='')}"
        try:
            response = await self._client.get(
                url, headers={"Authorization": f"Bearer {self.secret_key}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Paystack request failed: {e}", extra={"reference": reference})
            return PaymentVerification(verified=False, error="Failed to verify payment")

        body = _safe_json(response)
        if response.status_code == 404:
            return PaymentVerification(verified=False, error="Payment reference not found")
        if not response.is_success:
            return PaymentVerification(
                verified=False, error=body.get("message") or "Failed to verify payment",
            )

        data = body.get("data") or {}
        if data.get("status") != "success":
            return PaymentVerification(verified=False, error="Payment not successful")

        return PaymentVerification(
            verified=True,
            amount=kobo_to_naira(data.get("amount") or 0),
            reference=data.get("reference") or reference,
        )

    async def aclose(self) -> None:
        await self._client.aclose()


def _safe_json(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
