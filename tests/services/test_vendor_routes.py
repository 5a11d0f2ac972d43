"""Vendor Routes — product management and payment settings for the calling vendor.

Invariants:
    - Vendors only see and change their own non-deleted products
    - student_price never above price, including after partial updates
    - Money statistics count completed transactions only
"""

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


# ─── Products ────────────────────────────────────────────────────

async def test_create_and_get_product(client, headers):
    res = await client.post("/api/v1/vendors/products", headers=headers, json={
        "name": "Wireless Earbuds", "price": 3000, "studentPrice": 2500, "stock": 5,
    })
    assert res.status_code == 201
    product = res.json()["data"]
    assert product["studentPrice"] == 2500.0
    assert product["status"] == "active"

    res = await client.get(f"/api/v1/vendors/products/{product['id']}", headers=headers)
    assert res.status_code == 200
    assert res.json()["data"]["name"] == "Wireless Earbuds"


async def test_create_product_student_price_above_price(client, headers):
    res = await client.post("/api/v1/vendors/products", headers=headers, json={
        "name": "Earbuds", "price": 2000, "studentPrice": 2500,
    })
    assert res.status_code == 400


async def test_create_product_unknown_category(client, headers):
    res = await client.post("/api/v1/vendors/products", headers=headers, json={
        "name": "Earbuds", "price": 3000, "studentPrice": 2500, "categoryId": str(uuid4()),
    })
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Category not found"


async def test_list_products_filters(client, headers, vendor, make_product):
    await make_product(vendor[1], name="Laptop Stand")
    await make_product(vendor[1], name="Desk Lamp", status="inactive")

    res = await client.get("/api/v1/vendors/products", headers=headers)
    assert res.json()["data"]["pagination"]["total"] == 2

    res = await client.get(
        "/api/v1/vendors/products", headers=headers, params={"status": "inactive"},
    )
    assert [p["name"] for p in res.json()["data"]["products"]] == ["Desk Lamp"]

    res = await client.get(
        "/api/v1/vendors/products", headers=headers, params={"search": "stand"},
    )
    assert [p["name"] for p in res.json()["data"]["products"]] == ["Laptop Stand"]


async def test_products_of_other_vendor_are_invisible(client, headers, make_vendor, make_product):
    _, other = await make_vendor(email="other@vendor.com")
    foreign = await make_product(other)
    res = await client.get(f"/api/v1/vendors/products/{foreign.id}", headers=headers)
    assert res.status_code == 404
    res = await client.delete(f"/api/v1/vendors/products/{foreign.id}", headers=headers)
    assert res.status_code == 404


async def test_update_product_partial(client, headers, vendor, make_product):
    product = await make_product(vendor[1])
    res = await client.put(
        f"/api/v1/vendors/products/{product.id}", headers=headers, json={"stock": 42},
    )
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["stock"] == 42
    assert data["price"] == 3000.0


async def test_update_product_price_below_student_price(client, headers, vendor, make_product):
    product = await make_product(vendor[1])
    res = await client.put(
        f"/api/v1/vendors/products/{product.id}", headers=headers, json={"price": 2000},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Student price cannot be higher than regular price"


async def test_update_product_empty_body(client, headers, vendor, make_product):
    product = await make_product(vendor[1])
    res = await client.put(f"/api/v1/vendors/products/{product.id}", headers=headers, json={})
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "No fields to update"


async def test_update_product_null_required_field(client, headers, vendor, make_product):
    product = await make_product(vendor[1])
    res = await client.put(
        f"/api/v1/vendors/products/{product.id}", headers=headers, json={"name": None},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "name cannot be null"


async def test_delete_product_is_soft(client, test_db, headers, vendor, make_product):
    product = await make_product(vendor[1])
    res = await client.delete(f"/api/v1/vendors/products/{product.id}", headers=headers)
    assert res.status_code == 200

    await test_db.refresh(product)
    assert product.deleted_at is not None
    res = await client.get(f"/api/v1/vendors/products/{product.id}", headers=headers)
    assert res.status_code == 404


async def test_student_cannot_manage_products(client, auth_headers, make_student):
    student = await make_student()
    res = await client.get("/api/v1/vendors/products", headers=auth_headers(student.user))
    assert res.status_code == 403
    assert res.json()["error"]["message"] == "Insufficient permissions"


# ─── Payment settings ────────────────────────────────────────────

@pytest.fixture
async def sales(test_db, vendor, make_student, make_product):
    """One completed and one failed sale for the vendor."""
    student = await make_student()
    product = await make_product(vendor[1])
    for status, reference in (("completed", "ref-ok"), ("failed", "ref-bad")):
        test_db.add(Transaction(
            student_id=student.id,
            product_id=product.id,
            vendor_id=vendor[1].id,
            amount=Decimal("2500.00"),
            commission=Decimal("250.00"),
            status=status,
            payment_source="vendor_other",
            vendor_payment_reference=reference,
        ))
    await test_db.commit()
    return product


async def test_payment_settings_statistics(client, headers, sales):
    res = await client.get("/api/v1/vendors/payment/settings", headers=headers)
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["settings"]["commissionRate"] == 10.0
    assert data["settings"]["paymentMethod"] == "awoof"
    assert data["statistics"] == {
        "totalOrders": 2,
        "completedOrders": 1,
        "totalRevenue": 2500.0,
        "totalCommission": 250.0,
        "totalEarnings": 2250.0,
    }


async def test_payment_history(client, headers, sales):
    res = await client.get("/api/v1/vendors/payment/history", headers=headers)
    data = res.json()["data"]
    assert data["pagination"]["total"] == 2
    assert {p["paystackReference"] for p in data["payments"]} == {"ref-ok", "ref-bad"}
    assert data["payments"][0]["productName"] == "Wireless Earbuds"

    res = await client.get(
        "/api/v1/vendors/payment/history", headers=headers, params={"status": "failed"},
    )
    payments = res.json()["data"]["payments"]
    assert len(payments) == 1
    assert payments[0]["earnings"] == 2250.0


async def test_payment_history_rejects_unknown_status(client, headers):
    res = await client.get(
        "/api/v1/vendors/payment/history", headers=headers, params={"status": "lost"},
    )
    assert res.status_code == 400


async def test_commission_summary(client, headers, sales):
    res = await client.get("/api/v1/vendors/payment/commission-summary", headers=headers)
    data = res.json()["data"]
    assert data["commissionRate"] == 10.0
    assert {b["status"]: b["count"] for b in data["breakdown"]} == {"completed": 1, "failed": 1}
    month = data["monthlySummary"][0]
    assert month["count"] == 2
    assert month["revenue"] == 2500.0
    assert month["earnings"] == 2250.0


async def test_update_payment_method(client, test_db, headers, vendor):
    res = await client.put(
        "/api/v1/vendors/payment/integration", headers=headers,
        json={"paymentMethod": "vendor_website"},
    )
    assert res.status_code == 200
    assert res.json()["data"] == {"paymentMethod": "vendor_website"}
    await test_db.refresh(vendor[1])
    assert vendor[1].payment_method == "vendor_website"

    res = await client.put(
        "/api/v1/vendors/payment/integration", headers=headers, json={"paymentMethod": "cash"},
    )
    assert res.status_code == 400


async def test_update_paystack_subaccount(client, headers):
    res = await client.put(
        "/api/v1/vendors/payment/paystack-subaccount", headers=headers,
        json={"paystackSubaccountCode": " ACCT_abc123 "},
    )
    assert res.json()["data"] == {"paystackSubaccountCode": "ACCT_abc123"}


async def test_payout_settings_echoed(client, headers):
    res = await client.put(
        "/api/v1/vendors/payment/payout-settings", headers=headers,
        json={"bankName": "GTBank", "accountNumber": "0123456789", "accountName": "Campus"},
    )
    assert res.status_code == 200
    payout = res.json()["data"]["payoutSettings"]
    assert payout["bankName"] == "GTBank"
    assert payout["accountNumber"] == "0123456789"


async def test_payout_settings_short_account_number(client, headers):
    res = await client.put(
        "/api/v1/vendors/payment/payout-settings", headers=headers,
        json={"accountNumber": "123"},
    )
    assert res.status_code == 400


async def test_api_key_lifecycle(client, headers):
    res = await client.get("/api/v1/vendors/payment/api-key", headers=headers)
    assert res.json()["message"] == "No API key found"
    assert res.json()["data"] == {"hasApiKey": False}

    res = await client.post("/api/v1/vendors/payment/api-key", headers=headers)
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["apiKey"].startswith("awoof_")
    assert "will not be shown again" in data["note"]

    info = (await client.get("/api/v1/vendors/payment/api-key", headers=headers)).json()["data"]
    assert info["hasApiKey"] is True
    assert info["keyInfo"]["status"] == "active"
    assert info["keyInfo"]["usageCount"] == 0
    assert "apiKey" not in info
