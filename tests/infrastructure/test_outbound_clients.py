"""Outbound clients — Paystack, Brevo, WhatsApp and university registries over httpx.MockTransport.

Invariants:
    - Missing credentials short-circuit before any request
    - Expected remote failures come back as result objects, never as httpx exceptions
    - Kobo amounts converted to naira inside the Paystack client
"""

import json

import httpx
import pytest

from awoof.core.errors import BadRequestError
from awoof.infrastructure.email_client import BrevoEmailClient
from awoof.infrastructure.paystack_client import PaystackClient
from awoof.infrastructure.university_registry_client import UniversityRegistryClient
from awoof.infrastructure.whatsapp_client import WhatsAppClient, format_phone


def _mock(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _fail_if_called(request):
    raise AssertionError(f"unexpected request to {request.url}")


# ─── Paystack ────────────────────────────────────────────────────

async def test_paystack_not_configured():
    client = PaystackClient(None, http_client=_mock(_fail_if_called))
    with pytest.raises(BadRequestError, match="Paystack is not configured"):
        await client.verify("ref")


async def test_paystack_success_converts_kobo():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["auth"] = request.headers["Authorization"]
        return httpx.Response(200, json={
            "status": True,
            "data": {"status": "success", "amount": 250000, "reference": "PSK-1"},
        })

    result = await PaystackClient("sk_test", http_client=_mock(handler)).verify("PSK-1")
    assert result.verified is True
    assert result.amount == 2500.0
    assert result.reference == "PSK-1"
    assert seen == {"path": "/transaction/verify/PSK-1", "auth": "Bearer sk_test"}


async def test_paystack_reference_is_escaped():
    seen = {}

    def handler(request):
        seen["raw"] = request.url.raw_path
        return httpx.Response(404, json={"status": False, "message": "not found"})

    await PaystackClient("sk_test", http_client=_mock(handler)).verify("a/b")
    assert seen["raw"] == b"/transaction/verify/a%2Fb"


@pytest.mark.parametrize("status,body,error", [
    (404, {"message": "Transaction reference not found"}, "Payment reference not found"),
    (200, {"data": {"status": "abandoned", "amount": 100}}, "Payment not successful"),
    (400, {"message": "Invalid key"}, "Invalid key"),
    (500, "oops", "Failed to verify payment"),
])
async def test_paystack_failures(status, body, error):
    def handler(request):
        if isinstance(body, dict):
            return httpx.Response(status, json=body)
        return httpx.Response(status, text=body)

    result = await PaystackClient("sk_test", http_client=_mock(handler)).verify("ref")
    assert result.verified is False
    assert result.error == error


async def test_paystack_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    result = await PaystackClient("sk_test", http_client=_mock(handler)).verify("ref")
    assert result.error == "Failed to verify payment"


# ─── Brevo ───────────────────────────────────────────────────────

def _brevo(handler, **kwargs) -> BrevoEmailClient:
    return BrevoEmailClient(
        "xkeysib", "noreply@awoof.com", base_delay_ms=0, http_client=_mock(handler), **kwargs,
    )


async def test_brevo_not_configured():
    client = BrevoEmailClient(None, "noreply@awoof.com", http_client=_mock(_fail_if_called))
    result = await client.send("a@b.edu", "s", "<p>h</p>")
    assert result.success is False
    assert result.not_configured is True


async def test_brevo_success_payload():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        seen["key"] = request.headers["api-key"]
        return httpx.Response(201, json={"messageId": "<m1@brevo>"})

    result = await _brevo(handler).send("ada@unilag.edu.ng", "Hi", "<p>h</p>", "h")
    assert result.success is True
    assert result.message_id == "<m1@brevo>"
    assert seen["key"] == "xkeysib"
    assert seen["body"]["to"] == [{"email": "ada@unilag.edu.ng"}]
    assert seen["body"]["sender"] == {"name": "Awoof", "email": "noreply@awoof.com"}
    assert seen["body"]["textContent"] == "h"


async def test_brevo_client_error_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(400, json={"message": "invalid email"})

    result = await _brevo(handler).send("bad", "s", "h")
    assert result.success is False
    assert result.error == "invalid email"
    assert len(calls) == 1


async def test_brevo_retries_transient_failures():
    responses = iter([httpx.Response(503), httpx.Response(429), httpx.Response(201, json={})])
    calls = []

    def handler(request):
        calls.append(request)
        return next(responses)

    result = await _brevo(handler).send("a@b.edu", "s", "h")
    assert result.success is True
    assert len(calls) == 3


async def test_brevo_gives_up_after_max_attempts():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectTimeout("timed out", request=request)

    result = await _brevo(handler, max_attempts=2).send("a@b.edu", "s", "h")
    assert result.success is False
    assert len(calls) == 2


# ─── WhatsApp ────────────────────────────────────────────────────

def test_format_phone():
    assert format_phone("+2348012345678") == "+2348012345678"
    assert format_phone("234 801-234-5678") == "+2348012345678"


async def test_whatsapp_not_configured():
    client = WhatsAppClient(None, None, http_client=_mock(_fail_if_called))
    result = await client.send("2348012345678", "hi")
    assert result.not_configured is True


async def test_whatsapp_send():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"messageId": "wa-1"})

    client = WhatsAppClient("key", "https://wa.example.com/api/", http_client=_mock(handler))
    result = await client.send("2348012345678", "code 123456")
    assert result.success is True
    assert result.message_id == "wa-1"
    assert seen["url"] == "https://wa.example.com/api/send"
    assert seen["body"] == {"to": "+2348012345678", "message": "code 123456"}


async def test_whatsapp_gateway_error():
    client = WhatsAppClient(
        "key", "https://wa.example.com", http_client=_mock(lambda r: httpx.Response(500)),
    )
    result = await client.send("+2348012345678", "hi")
    assert result.success is False
    assert result.error == "Failed to send WhatsApp OTP"


# ─── University registry ─────────────────────────────────────────

ENDPOINT = "https://registry.unilag.edu.ng/verify"


async def test_registry_explicit_verified_with_nested_data():
    seen = {}

    def handler(request):
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "verified": True,
            "studentData": {"name": "Ada Obi", "department": "Physics", "level": "300"},
        })

    client = UniversityRegistryClient(http_client=_mock(handler))
    result = await client.lookup(ENDPOINT, "190401001", {"apiKey": "k"}, "Ada", "ada@x.edu")
    assert result.verified is True
    assert result.student_data == {
        "name": "Ada Obi",
        "email": "ada@x.edu",
        "registrationNumber": "190401001",
        "department": "Physics",
        "level": "300",
    }
    assert seen["headers"]["X-API-Key"] == "k"
    assert seen["headers"]["Authorization"] == "Bearer k"
    assert seen["body"] == {
        "registrationNumber": "190401001", "name": "Ada", "email": "ada@x.edu",
    }


async def test_registry_explicit_not_verified():
    client = UniversityRegistryClient(
        http_client=_mock(lambda r: httpx.Response(200, json={"verified": False})),
    )
    result = await client.lookup(ENDPOINT, "190401001")
    assert result.verified is False
    assert result.error == "Registration number verification failed"


async def test_registry_name_only_counts_as_verified():
    client = UniversityRegistryClient(
        http_client=_mock(lambda r: httpx.Response(200, json={"name": "Ada Obi"})),
    )
    result = await client.lookup(ENDPOINT, "190401001")
    assert result.verified is True
    assert result.student_data["name"] == "Ada Obi"


@pytest.mark.parametrize("response,error", [
    (httpx.Response(404), "Student not found in university database"),
    (httpx.Response(403), "University API authentication failed"),
    (httpx.Response(502), "Failed to verify registration number"),
    (httpx.Response(200, json={"unexpected": 1}), "Invalid response from university database"),
    (httpx.Response(200, text="<html>"), "Invalid response from university database"),
])
async def test_registry_failures(response, error):
    client = UniversityRegistryClient(http_client=_mock(lambda r: response))
    result = await client.lookup(ENDPOINT, "190401001")
    assert result.verified is False
    assert result.error == error


async def test_registry_timeout():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    result = await UniversityRegistryClient(http_client=_mock(handler)).lookup(ENDPOINT, "1")
    assert result.error == "University database timeout. Please try again."
