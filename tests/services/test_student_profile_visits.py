"""Student profile, purchase history, website visits and notification deletion."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from sqlalchemy import select

from awoof.core.domain_types import UserRole
from awoof.models.category import Category
from awoof.models.notification import Notification
from awoof.models.student import Student
from awoof.models.transaction import Transaction


# ─── Profile ─────────────────────────────────────────────────────

async def test_get_profile(client, make_student, auth_headers):
    student = await make_student(registration_number="190404001")
    res = await client.get("/api/v1/students/profile", headers=auth_headers(student.user))
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["user"]["email"] == "ada@unilag.edu.ng"
    assert data["user"]["verificationStatus"] == "verified"
    assert data["profile"]["name"] == "Ada Obi"
    assert data["profile"]["registrationNumber"] == "190404001"


async def test_get_profile_before_profile_exists(client, make_user, auth_headers):
    user = await make_user("new@unilag.edu.ng", UserRole.STUDENT)
    res = await client.get("/api/v1/students/profile", headers=auth_headers(user))
    assert res.status_code == 200
    assert res.json()["data"]["profile"] is None


async def test_update_profile(client, make_student, auth_headers):
    student = await make_student()
    res = await client.put(
        "/api/v1/students/profile", headers=auth_headers(student.user),
        json={"phoneNumber": "+2348012345678", "name": "Ada Obi-Eze"},
    )
    assert res.status_code == 200
    profile = res.json()["data"]["profile"]
    assert profile["phoneNumber"] == "+2348012345678"
    assert profile["name"] == "Ada Obi-Eze"


async def test_update_profile_creates_missing_row(client, test_db, make_user, auth_headers):
    user = await make_user("new@unilag.edu.ng", UserRole.STUDENT)
    headers = auth_headers(user)

    res = await client.put(
        "/api/v1/students/profile", headers=headers, json={"university": "UNILAG"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "name is required to create a profile"

    res = await client.put(
        "/api/v1/students/profile", headers=headers,
        json={"name": "Chidi Okafor", "university": "UNILAG"},
    )
    assert res.status_code == 200
    assert res.json()["data"]["profile"]["university"] == "UNILAG"
    row = (await test_db.execute(select(Student).where(Student.user_id == user.id))).scalar_one()
    assert row.name == "Chidi Okafor"


async def test_update_profile_validation(client, make_student, auth_headers):
    student = await make_student()
    headers = auth_headers(student.user)

    res = await client.put("/api/v1/students/profile", headers=headers, json={})
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "No fields to update"

    res = await client.put(
        "/api/v1/students/profile", headers=headers, json={"phoneNumber": "0801-234"},
    )
    assert res.status_code == 400


async def test_profile_requires_student(client, make_vendor, auth_headers):
    user, _ = await make_vendor()
    res = await client.get("/api/v1/students/profile", headers=auth_headers(user))
    assert res.status_code == 403


# ─── Purchases ───────────────────────────────────────────────────

async def test_purchase_history(
    client, test_db, make_student, make_vendor, make_product, auth_headers,
):
    student = await make_student()
    _, vendor = await make_vendor()
    books = Category(name="Books", slug="books")
    test_db.add(books)
    await test_db.commit()
    novel = await make_product(vendor, name="Novel", category_id=books.id)
    mug = await make_product(vendor, name="Mug", price="1000", student_price="900")
    now = datetime.now(timezone.utc)
    test_db.add_all([
        Transaction(
            student_id=student.id, product_id=novel.id, vendor_id=vendor.id,
            amount=Decimal("2500"), commission=Decimal("250"), status="completed",
            paystack_reference="PSK-1", created_at=now - timedelta(hours=2),
        ),
        Transaction(
            student_id=student.id, product_id=mug.id, vendor_id=vendor.id,
            amount=Decimal("900"), commission=Decimal("90"), status="pending",
            vendor_payment_reference="FLW-1", created_at=now,
        ),
    ])
    await test_db.commit()

    res = await client.get("/api/v1/students/purchases", headers=auth_headers(student.user))
    data = res.json()["data"]
    assert data["pagination"]["total"] == 2
    pending, completed = data["purchases"]
    assert pending["transactionId"] == "FLW-1"
    assert pending["product"]["categoryName"] is None
    assert completed == {
        "id": completed["id"],
        "transactionId": "PSK-1",
        "amount": 3000.0,
        "discountAmount": 500.0,
        "finalAmount": 2500.0,
        "status": "completed",
        "createdAt": completed["createdAt"],
        "product": {
            "id": str(novel.id),
            "name": "Novel",
            "vendorId": str(vendor.id),
            "vendorName": "Campus Gadgets",
            "categoryName": "Books",
        },
    }


# ─── Website visits ──────────────────────────────────────────────

async def test_track_and_list_visits(
    client, test_db, make_student, make_vendor, make_product, auth_headers,
):
    student = await make_student()
    headers = auth_headers(student.user)
    _, vendor = await make_vendor()
    books = Category(name="Books", slug="books")
    test_db.add(books)
    await test_db.commit()
    product = await make_product(vendor, name="Novel", category_id=books.id)

    res = await client.post("/api/v1/students/website-visits", headers=headers, json={
        "productId": str(product.id), "url": "https://gadgets.ng/novel",
    })
    assert res.status_code == 201
    visit_id = res.json()["data"]["visit"]["id"]

    res = await client.get("/api/v1/students/website-visits", headers=headers)
    data = res.json()["data"]
    assert data["pagination"]["total"] == 1
    visit = data["visits"][0]
    assert visit["id"] == visit_id
    assert visit["productName"] == "Novel"
    assert visit["vendorName"] == "Campus Gadgets"
    assert visit["categoryName"] == "Books"


async def test_track_visit_needs_known_product(
    client, make_student, make_vendor, make_product, auth_headers,
):
    student = await make_student()
    headers = auth_headers(student.user)
    _, vendor = await make_vendor()
    gone = await make_product(vendor, deleted_at=datetime.now(timezone.utc))

    for body in (
        {"url": "https://gadgets.ng"},
        {"productId": str(gone.id), "url": "https://gadgets.ng"},
    ):
        res = await client.post("/api/v1/students/website-visits", headers=headers, json=body)
        assert res.status_code == 400
        assert res.json()["error"]["message"] == "Product ID is required to track visit"


async def test_track_visit_rejects_bad_url(
    client, make_student, make_vendor, make_product, auth_headers,
):
    student = await make_student()
    _, vendor = await make_vendor()
    product = await make_product(vendor)
    res = await client.post(
        "/api/v1/students/website-visits", headers=auth_headers(student.user),
        json={"productId": str(product.id), "url": "javascript:alert(1)"},
    )
    assert res.status_code == 400


# ─── Notification deletion ───────────────────────────────────────

async def test_delete_notifications(client, test_db, make_student, auth_headers):
    mine = await make_student()
    other = await make_student(email="bola@unilag.edu.ng")
    keep = Notification(student_id=mine.id, title="Keep", message="m")
    drop = Notification(student_id=mine.id, title="Drop", message="m")
    theirs = Notification(student_id=other.id, title="Theirs", message="m")
    test_db.add_all([keep, drop, theirs])
    await test_db.commit()

    res = await client.request(
        "DELETE", "/api/v1/students/notifications", headers=auth_headers(mine.user),
        json={"notificationIds": [str(drop.id), str(theirs.id)]},
    )
    assert res.status_code == 200
    assert res.json()["data"] == {"deletedCount": 1}

    titles = set((await test_db.execute(select(Notification.title))).scalars().all())
    assert titles == {"Keep", "Theirs"}


async def test_delete_notifications_requires_ids(client, make_student, auth_headers):
    student = await make_student()
    res = await client.request(
        "DELETE", "/api/v1/students/notifications", headers=auth_headers(student.user),
        json={"notificationIds": []},
    )
    assert res.status_code == 400
