"""Student Routes — savings rollup and notification inbox."""

from datetime import datetime, timezone
from decimal import Decimal

from awoof.core.domain_types import UserRole
from awoof.models.category import Category
from awoof.models.notification import Notification
from awoof.models.transaction import SavingsStats, Transaction


async def test_savings_empty(client, make_student, auth_headers):
    student = await make_student()
    res = await client.get("/api/v1/students/savings", headers=auth_headers(student.user))
    assert res.status_code == 200
    assert res.json()["data"] == {
        "summary": {
            "totalSavings": 0.0, "totalPurchases": 0, "totalSpent": 0.0, "lastUpdated": None,
        },
        "byCategory": [],
    }


async def test_savings_by_category(
    client, test_db, make_student, make_vendor, make_product, auth_headers,
):
    student = await make_student()
    _, vendor = await make_vendor()
    audio = Category(name="Audio", slug="audio")
    test_db.add(audio)
    await test_db.commit()
    earbuds = await make_product(vendor, category_id=audio.id)
    mug = await make_product(vendor, name="Mug", price="1000", student_price="900")

    for product, amount, ref in ((earbuds, "2500", "r1"), (mug, "900", "r2")):
        test_db.add(Transaction(
            student_id=student.id, product_id=product.id, vendor_id=vendor.id,
            amount=Decimal(amount), commission=Decimal("0"), status="completed",
            vendor_payment_reference=ref,
        ))
    test_db.add(SavingsStats(
        student_id=student.id, total_savings=Decimal("600.00"), total_purchases=2,
        last_updated=datetime(2026, 5, 1, tzinfo=timezone.utc),
    ))
    await test_db.commit()

    res = await client.get("/api/v1/students/savings", headers=auth_headers(student.user))
    data = res.json()["data"]
    assert data["summary"]["totalSavings"] == 600.0
    assert data["summary"]["totalPurchases"] == 2
    assert data["summary"]["totalSpent"] == 3400.0
    assert data["byCategory"] == [
        {"categoryName": "Audio", "purchaseCount": 1, "savings": 500.0},
        {"categoryName": "Uncategorized", "purchaseCount": 1, "savings": 100.0},
    ]


async def test_savings_requires_student(client, make_vendor, auth_headers):
    user, _ = await make_vendor()
    res = await client.get("/api/v1/students/savings", headers=auth_headers(user))
    assert res.status_code == 403


async def test_student_without_profile(client, make_user, auth_headers):
    user = await make_user("orphan@unilag.edu.ng", UserRole.STUDENT)
    res = await client.get("/api/v1/students/savings", headers=auth_headers(user))
    assert res.status_code == 404
    assert res.json()["error"]["message"] == "Student profile not found"


async def test_notifications_list_and_mark_read(client, test_db, make_student, auth_headers):
    student = await make_student()
    headers = auth_headers(student.user)
    test_db.add_all([
        Notification(student_id=student.id, title=f"Note {i}", message="m") for i in range(3)
    ])
    await test_db.commit()

    res = await client.get("/api/v1/students/notifications", headers=headers)
    data = res.json()["data"]
    assert data["unreadCount"] == 3
    assert data["pagination"]["total"] == 3
    first_id = data["notifications"][0]["id"]

    res = await client.put(
        "/api/v1/students/notifications/read", headers=headers,
        json={"notificationIds": [first_id]},
    )
    assert res.json()["data"] == {"updated": 1}

    res = await client.get(
        "/api/v1/students/notifications", headers=headers, params={"unreadOnly": "true"},
    )
    data = res.json()["data"]
    assert data["pagination"]["total"] == 2
    assert first_id not in {n["id"] for n in data["notifications"]}

    res = await client.put(
        "/api/v1/students/notifications/read", headers=headers, json={"markAll": True},
    )
    assert res.json()["data"] == {"updated": 2}


async def test_mark_read_requires_target(client, make_student, auth_headers):
    student = await make_student()
    res = await client.put(
        "/api/v1/students/notifications/read", headers=auth_headers(student.user), json={},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Provide notificationIds or set markAll"


async def test_notifications_scoped_to_student(client, test_db, make_student, auth_headers):
    mine = await make_student()
    other = await make_student(email="bola@unilag.edu.ng")
    test_db.add(Notification(student_id=other.id, title="Theirs", message="m"))
    await test_db.commit()

    res = await client.get("/api/v1/students/notifications", headers=auth_headers(mine.user))
    assert res.json()["data"]["notifications"] == []
