"""Support Tickets — student and vendor help desks.

Invariants:
    - Owners only see their own tickets
    - Internal admin notes never reach the owner
    - Closed tickets accept no owner replies
"""

import pytest
from sqlalchemy import select

from awoof.models.support_ticket import (
    SupportTicket, SupportTicketResponse, VendorSupportTicketResponse,
)

STUDENT_DESK = "/api/v1/students/support-tickets"
VENDOR_DESK = "/api/v1/vendors/support-tickets"


@pytest.fixture
async def student_headers(make_student, auth_headers):
    return auth_headers((await make_student()).user)


async def _open(client, url, headers, **fields):
    body = {"subject": "Cannot verify", "message": "My OTP never arrives", **fields}
    res = await client.post(url, headers=headers, json=body)
    assert res.status_code == 201, res.text
    return res.json()["data"]["ticket"]


# ─── Student desk ────────────────────────────────────────────────

async def test_student_opens_ticket(client, student_headers):
    ticket = await _open(client, STUDENT_DESK, student_headers, category="account")
    assert ticket["status"] == "open"
    assert ticket["priority"] == "normal"
    assert ticket["category"] == "account"


async def test_student_category_limited(client, student_headers):
    res = await client.post(STUDENT_DESK, headers=student_headers, json={
        "subject": "API", "message": "help", "category": "integration",
    })
    assert res.status_code == 400


async def test_blank_subject_rejected(client, student_headers):
    res = await client.post(STUDENT_DESK, headers=student_headers, json={
        "subject": "   ", "message": "help",
    })
    assert res.status_code == 400


async def test_list_counts_visible_responses(client, test_db, student_headers):
    ticket = await _open(client, STUDENT_DESK, student_headers)
    res = await client.post(
        f"{STUDENT_DESK}/{ticket['id']}/responses", headers=student_headers,
        json={"message": "Still waiting"},
    )
    assert res.status_code == 201
    assert res.json()["data"]["response"]["userRole"] == "student"

    row = (await test_db.execute(select(SupportTicket))).scalar_one()
    test_db.add(SupportTicketResponse(
        ticket_id=row.id, user_role="admin", message="check SMS gateway", is_internal=True,
    ))
    await test_db.commit()

    res = await client.get(STUDENT_DESK, headers=student_headers)
    data = res.json()["data"]
    assert data["pagination"]["total"] == 1
    assert data["tickets"][0]["responseCount"] == 1

    res = await client.get(f"{STUDENT_DESK}/{ticket['id']}", headers=student_headers)
    responses = res.json()["data"]["ticket"]["responses"]
    assert [r["message"] for r in responses] == ["Still waiting"]
    assert responses[0]["userEmail"] == "ada@unilag.edu.ng"


async def test_list_filters_by_status(client, test_db, student_headers):
    await _open(client, STUDENT_DESK, student_headers, subject="First")
    await _open(client, STUDENT_DESK, student_headers, subject="Second")
    row = (await test_db.execute(
        select(SupportTicket).where(SupportTicket.subject == "First"),
    )).scalar_one()
    row.status = "resolved"
    await test_db.commit()

    res = await client.get(STUDENT_DESK, headers=student_headers, params={"status": "open"})
    assert [t["subject"] for t in res.json()["data"]["tickets"]] == ["Second"]


async def test_closed_ticket_rejects_reply(client, test_db, student_headers):
    ticket = await _open(client, STUDENT_DESK, student_headers)
    row = (await test_db.execute(select(SupportTicket))).scalar_one()
    row.status = "closed"
    await test_db.commit()

    res = await client.post(
        f"{STUDENT_DESK}/{ticket['id']}/responses", headers=student_headers,
        json={"message": "Reopen please"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Cannot add response to a closed ticket"


async def test_other_students_ticket_hidden(client, make_student, auth_headers, student_headers):
    ticket = await _open(client, STUDENT_DESK, student_headers)
    other = auth_headers((await make_student(email="bola@unilag.edu.ng")).user)

    res = await client.get(f"{STUDENT_DESK}/{ticket['id']}", headers=other)
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "Support ticket not found"
    res = await client.post(
        f"{STUDENT_DESK}/{ticket['id']}/responses", headers=other, json={"message": "hi"},
    )
    assert res.status_code == 404


async def test_reply_cannot_be_internal(client, test_db, student_headers):
    ticket = await _open(client, STUDENT_DESK, student_headers)
    await client.post(
        f"{STUDENT_DESK}/{ticket['id']}/responses", headers=student_headers,
        json={"message": "note", "isInternal": True},
    )
    row = (await test_db.execute(select(SupportTicketResponse))).scalar_one()
    assert row.is_internal is False


# ─── Vendor desk ─────────────────────────────────────────────────

async def test_vendor_desk(client, test_db, make_vendor, auth_headers):
    user, _ = await make_vendor()
    headers = auth_headers(user)
    ticket = await _open(
        client, VENDOR_DESK, headers, subject="Widget", message="Key rejected",
        category="integration",
    )
    assert ticket["category"] == "integration"

    res = await client.post(
        f"{VENDOR_DESK}/{ticket['id']}/responses", headers=headers,
        json={"message": "Logs attached"},
    )
    assert res.status_code == 201
    row = (await test_db.execute(select(VendorSupportTicketResponse))).scalar_one()
    assert row.user_role == "vendor"
    assert row.user_id == user.id

    res = await client.get(VENDOR_DESK, headers=headers)
    assert res.json()["data"]["tickets"][0]["responseCount"] == 1


async def test_desks_are_separate(client, make_vendor, auth_headers, student_headers):
    ticket = await _open(client, STUDENT_DESK, student_headers)
    user, _ = await make_vendor()
    res = await client.get(f"{VENDOR_DESK}/{ticket['id']}", headers=auth_headers(user))
    assert res.status_code == 404


async def test_student_cannot_use_vendor_desk(client, student_headers):
    res = await client.get(VENDOR_DESK, headers=student_headers)
    assert res.status_code == 403
