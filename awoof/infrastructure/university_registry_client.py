"""University Registry Client — registration-number lookups against university systems.

Invariants:
    - Implements core.repository_protocols.RegistryLookup
    - Request body: {registrationNumber, name?, email?}; api_config.apiKey sent as both
      `Authorization: Bearer` and `X-API-Key`
    - A response with a `verified` field is trusted as-is
    - A response without `verified` but with `name` or `studentData` counts as verified
    - Anything else is "Invalid response from university database"
    - Never raises for remote failures: 404, 401/403 and timeouts map to fixed messages

Design Decisions:
    - Registry response shapes vary per institution: normalize to one studentData dict
"""

import logging
from typing import Any

import httpx

from awoof.core.repository_protocols import RegistryResult

logger = logging.getLogger(__name__)

_STUDENT_FIELDS = ("department", "level", "academicYear")


def _normalize_student_data(
    body: dict[str, Any],
    registration_number: str,
    student_name: str | None,
    student_email: str | None,
) -> dict[str, Any]:
    nested = body.get("studentData") if isinstance(body.get("studentData"), dict) else {}
    data: dict[str, Any] = {
        "name": body.get("name") or nested.get("name") or student_name or "",
        "email": body.get("email") or nested.get("email") or student_email,
        "registrationNumber": registration_number,
    }
    for key in _STUDENT_FIELDS:
        data[key] = body.get(key) or nested.get(key)
    return {k: v for k, v in data.items() if v is not None}


class UniversityRegistryClient:
    def __init__(
        self,
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._client = http_client or httpx.AsyncClient(timeout=timeout_seconds)

    async def lookup(
        self,
        endpoint: str,
        registration_number: str,
        api_config: dict[str, Any] | None = None,
        student_name: str | None = None,
        student_email: str | None = None,
    ) -> RegistryResult:
        payload: dict[str, Any] = {"registrationNumber": registration_number}
        if student_name:
            payload["name"] = student_name
        if student_email:
            payload["email"] = student_email

        headers = {}
        api_key = (api_config or {}).get("apiKey")
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
            headers["X-API-Key"] = api_key

        try:
            response = await self._client.post(endpoint, json=payload, headers=headers)
        except httpx.TimeoutException:
            return RegistryResult(
                verified=False, error="University database timeout. Please try again.",
            )
        except httpx.HTTPError as e:
            logger.error(f"Registration number lookup error: {e}")
            return RegistryResult(verified=False, error="Failed to verify registration number")

        if response.status_code == 404:
            return RegistryResult(
                verified=False, error="Student not found in university database",
            )
        if response.status_code in (401, 403):
            return RegistryResult(verified=False, error="University API authentication failed")
        if not response.is_success:
            logger.error(f"Registry answered HTTP {response.status_code}")
            return RegistryResult(verified=False, error="Failed to verify registration number")

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return RegistryResult(verified=False, error="Invalid response from university database")

        student_data = _normalize_student_data(
            body, registration_number, student_name, student_email,
        )
        if "verified" in body:
            verified = bool(body["verified"])
            return RegistryResult(
                verified=verified,
                student_data=student_data,
                error=None if verified else "Registration number verification failed",
            )
        if body.get("name") or body.get("studentData"):
            return RegistryResult(verified=True, student_data=student_data)
        return RegistryResult(verified=False, error="Invalid response from university database")

    async def aclose(self) -> None:
        await self._client.aclose()
