"""Vendor profile, orders and analytics dashboard.

Invariants:
    - Required business fields can change but never be cleared
    - Orders and analytics only cover the calling vendor's transactions
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from awoof.models.transaction import Transaction


@pytest.fixture
async def vendor(make_vendor):
    return await make_vendor()


@pytest.fixture
def headers(vendor, auth_headers):
    return auth_headers(vendor[0])


@pytest.fixture
def add_order(test_db):
    async def _add(student, product, status="completed", amount="2500", ref=None, age_hours=0):
        tx = Transaction(
            student_id=student.id, product_id=product.id, vendor_id=product.vendor_id,
            amount=Decimal(amount), commission=Decimal(amount) / 10, status=status,
            vendor_payment_reference=ref or f"ref-{uuid4().hex[:8]}",
            created_at=datetime.now(timezone.utc) - timedelta(hours=age_hours),
        )
        test_db.add(tx)
        await test_db.commit()
        return tx
    return _add


# ─── Profile ─────────────────────────────────────────────────────

async def test_get_profile(client, headers, vendor):
    res = await client.get("/api/v1/vendors/profile", headers=headers)
    assert res.status_code == 200
    profile = res.json()["data"]["vendor"]
    assert profile["id"] == str(vendor[1].id)
    assert profile["email"] == "shop@vendor.com"
    assert profile["name"] == "Campus Gadgets"
    assert profile["commissionRate"] == 10.0


async def test_update_profile(client, headers):
    res = await client.put("/api/v1/vendors/profile", headers=headers, json={
        "companyName": "Campus Gadgets Ltd", "businessWebsite": "https://gadgets.ng",
    })
    assert res.status_code == 200
    profile = res.json()["data"]["vendor"]
    assert profile["companyName"] == "Campus Gadgets Ltd"
    assert profile["businessWebsite"] == "https://gadgets.ng"

    res = await client.put("/api/v1/vendors/profile", headers=headers, json={
        "businessWebsite": "",
    })
    assert res.json()["data"]["vendor"]["businessWebsite"] is None


async def test_update_profile_rejects_empty_body(client, headers):
    res = await client.put("/api/v1/vendors/profile", headers=headers, json={})
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "No fields to update"


async def test_update_profile_cannot_clear_required(client, headers):
    res = await client.put("/api/v1/vendors/profile", headers=headers, json={"companyName": None})
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "company_name cannot be null"


async def test_update_profile_invalid_website(client, headers):
    res = await client.put("/api/v1/vendors/profile", headers=headers, json={
        "businessWebsite": "not a url",
    })
    assert res.status_code == 400


async def test_complete_registration(client, headers):
    res = await client.post("/api/v1/vendors/complete-registration", headers=headers, json={
        "companyName": "Gadgets Ltd",
        "phoneNumber": "+2348012345678",
        "businessCategory": "Electronics",
        "description": "Phones and accessories",
    })
    assert res.status_code == 200
    profile = res.json()["data"]["vendor"]
    assert profile["businessCategory"] == "Electronics"
    assert profile["phoneNumber"] == "+2348012345678"
    assert profile["businessWebsite"] is None


async def test_complete_registration_requires_fields(client, headers):
    res = await client.post("/api/v1/vendors/complete-registration", headers=headers, json={
        "companyName": "Gadgets Ltd",
    })
    assert res.status_code == 400


async def test_profile_requires_vendor(client, make_student, auth_headers):
    student = await make_student()
    res = await client.get("/api/v1/vendors/profile", headers=auth_headers(student.user))
    assert res.status_code == 403


# ─── Orders ──────────────────────────────────────────────────────

async def test_list_orders_newest_first(
    client, headers, vendor, make_student, make_product, add_order,
):
    student = await make_student()
    product = await make_product(vendor[1])
    old = await add_order(student, product, age_hours=5)
    new = await add_order(student, product, status="pending", age_hours=1)

    res = await client.get("/api/v1/vendors/orders", headers=headers)
    data = res.json()["data"]
    assert [o["id"] for o in data["orders"]] == [str(new.id), str(old.id)]
    assert data["pagination"]["total"] == 2
    order = data["orders"][0]
    assert order["product"] == {
        "id": str(product.id), "name": "Wireless Earbuds", "imageUrl": None,
    }
    assert order["student"]["email"] == "ada@unilag.edu.ng"

    res = await client.get(
        "/api/v1/vendors/orders", headers=headers, params={"status": "completed"},
    )
    assert [o["id"] for o in res.json()["data"]["orders"]] == [str(old.id)]


async def test_search_orders(client, headers, vendor, make_student, make_product, add_order):
    ada = await make_student()
    bola = await make_student(email="bola@unilag.edu.ng", name="Bola Ade")
    product = await make_product(vendor[1])
    await add_order(ada, product, ref="FLW-111")
    await add_order(bola, product, ref="FLW-222")

    for term in ("bola", "FLW-222", "BOLA@UNILAG"):
        res = await client.get("/api/v1/vendors/orders", headers=headers, params={"search": term})
        orders = res.json()["data"]["orders"]
        assert [o["student"]["name"] for o in orders] == ["Bola Ade"]


async def test_orders_scoped_to_vendor(
    client, headers, make_vendor, make_student, make_product, add_order,
):
    _, other = await make_vendor(email="other@vendor.com")
    foreign = await add_order(await make_student(), await make_product(other))

    res = await client.get("/api/v1/vendors/orders", headers=headers)
    assert res.json()["data"]["orders"] == []
    res = await client.get(f"/api/v1/vendors/orders/{foreign.id}", headers=headers)
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "Order not found"


async def test_get_order_detail(client, headers, vendor, make_student, make_product, add_order):
    student = await make_student(phone_number="+2348012345678")
    product = await make_product(vendor[1], description="Noise cancelling")
    tx = await add_order(student, product)

    res = await client.get(f"/api/v1/vendors/orders/{tx.id}", headers=headers)
    order = res.json()["data"]["order"]
    assert order["product"]["description"] == "Noise cancelling"
    assert order["product"]["studentPrice"] == 2500.0
    assert order["student"]["phoneNumber"] == "+2348012345678"


async def test_update_order_status(
    client, headers, vendor, make_student, make_product, add_order,
):
    tx = await add_order(await make_student(), await make_product(vendor[1]), status="pending")
    res = await client.put(
        f"/api/v1/vendors/orders/{tx.id}/status", headers=headers, json={"status": "refunded"},
    )
    assert res.status_code == 200
    assert res.json()["data"]["order"]["status"] == "refunded"

    res = await client.put(
        f"/api/v1/vendors/orders/{tx.id}/status", headers=headers, json={"status": "shipped"},
    )
    assert res.status_code == 400


# ─── Analytics ───────────────────────────────────────────────────

async def test_analytics(client, headers, vendor, make_student, make_product, add_order):
    ada = await make_student()
    bola = await make_student(email="bola@unilag.edu.ng")
    earbuds = await make_product(vendor[1])
    mug = await make_product(vendor[1], name="Mug", price="1000", student_price="900")
    await add_order(ada, earbuds)
    await add_order(ada, mug, amount="900")
    await add_order(bola, earbuds, status="failed")

    res = await client.get("/api/v1/vendors/analytics", headers=headers)
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["overall"]["totalOrders"] == 3
    assert data["overall"]["totalRevenue"] == 3400.0
    assert data["overall"]["totalCommission"] == 340.0
    assert data["students"] == {"totalStudents": 2, "verifiedStudents": 1, "repeatCustomers": 1}
    assert [p["name"] for p in data["products"]] == ["Wireless Earbuds", "Mug"]
    assert data["topProducts"][0]["revenue"] == 2500.0
    assert sum(d["orders"] for d in data["timeBased"]) == 3
    assert data["monthly"][0]["orders"] == 3


async def test_analytics_empty(client, headers):
    data = (await client.get("/api/v1/vendors/analytics", headers=headers)).json()["data"]
    assert data["overall"]["conversionRate"] == 0
    assert data["products"] == []
    assert data["timeBased"] == []
