"""Auth Routes — registration, login, refresh rotation and password recovery.

Invariants:
    - Every success answers {"success": true, "data": ..., "message": ...}
    - Refresh works only with the token stored for the user; logout revokes it
    - forgot-password answers identically for unknown emails
    - A password reset revokes the stored refresh token
"""

from datetime import timedelta

from sqlalchemy import select

import awoof.services.auth_service as auth_module
from awoof.core.clock import utcnow
from awoof.core.domain_types import UserRole
from awoof.infrastructure.redis_store import password_reset_key, refresh_token_key
from awoof.models.student import Student
from awoof.models.vendor import Vendor

TEST_PASSWORD = "Str0ng!Pass"

NEW_PASSWORD = "N3wer!Pass"


async def _register(client, email="ada@unilag.edu.ng", role="student", password=TEST_PASSWORD):
    return await client.post("/api/v1/auth/register", json={
        "email": email, "password": password, "role": role, "name": "Ada Obi",
    })


async def _login(client, email, password=TEST_PASSWORD):
    return await client.post("/api/v1/auth/login", json={"email": email, "password": password})


# ─── Registration ────────────────────────────────────────────────

async def test_register_student_creates_profile_and_session(client, test_db, fake_kv):
    res = await _register(client, email="Ada@UNILAG.edu.ng")
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["message"] == "User registered successfully"
    user = body["data"]["user"]
    assert user["email"] == "ada@unilag.edu.ng"
    assert user["role"] == "student"
    assert user["verificationStatus"] == "unverified"
    assert fake_kv.data[refresh_token_key(user["id"])] == body["data"]["tokens"]["refreshToken"]

    student = (await test_db.execute(select(Student))).scalar_one()
    assert str(student.user_id) == user["id"]


async def test_register_vendor_starts_pending(client, test_db):
    res = await _register(client, email="shop@vendor.com", role="vendor")
    assert res.status_code == 201
    vendor = (await test_db.execute(select(Vendor))).scalar_one()
    assert vendor.status == "pending"


async def test_register_duplicate_email_returns_409(client):
    await _register(client)
    res = await _register(client)
    assert res.status_code == 409
    assert res.json()["error"]["message"] == "User with this email already exists"


async def test_register_weak_password_returns_400(client):
    res = await _register(client, password="alllowercase1")
    assert res.status_code == 400
    assert "uppercase" in res.json()["error"]["message"]


async def test_register_admin_role_rejected_by_validation(client):
    res = await _register(client, role="admin")
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


# ─── Login / refresh / logout ────────────────────────────────────

async def test_login_success(client, make_user):
    await make_user("shop@vendor.com", UserRole.VENDOR)
    res = await _login(client, "shop@vendor.com")
    assert res.status_code == 200
    assert res.json()["message"] == "Login successful"
    assert set(res.json()["data"]["tokens"]) == {"accessToken", "refreshToken"}


async def test_login_hashes_off_the_event_loop(client, make_user, monkeypatch):
    offloaded = []
    real = auth_module.run_in_threadpool

    async def recording(func, *args, **kwargs):
        offloaded.append(func.__name__)
        return await real(func, *args, **kwargs)

    monkeypatch.setattr(auth_module, "run_in_threadpool", recording)
    await make_user("shop@vendor.com", UserRole.VENDOR)
    res = await _login(client, "shop@vendor.com")
    assert res.status_code == 200
    assert offloaded == ["verify_password"]


async def test_login_wrong_password_is_generic(client, make_user):
    await make_user("shop@vendor.com", UserRole.VENDOR)
    res = await _login(client, "shop@vendor.com", "Wr0ng!Pass")
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Invalid email or password"


async def test_login_unknown_email_is_generic(client):
    res = await _login(client, "nobody@vendor.com")
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Invalid email or password"


async def test_login_soft_deleted_account(client, test_db, make_user):
    user = await make_user("gone@vendor.com", UserRole.VENDOR)
    user.deleted_at = utcnow() - timedelta(days=1)
    await test_db.commit()
    res = await _login(client, "gone@vendor.com")
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Account has been deleted"


async def test_refresh_then_logout_revokes(client, make_user, auth_headers):
    user = await make_user("shop@vendor.com", UserRole.VENDOR)
    tokens = (await _login(client, "shop@vendor.com")).json()["data"]["tokens"]

    res = await client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert res.status_code == 200
    assert res.json()["data"]["accessToken"]

    res = await client.post("/api/v1/auth/logout", headers=auth_headers(user))
    assert res.status_code == 200

    res = await client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["refreshToken"]})
    assert res.status_code == 401


async def test_refresh_rejects_superseded_token(client, make_user):
    await make_user("shop@vendor.com", UserRole.VENDOR)
    first = (await _login(client, "shop@vendor.com")).json()["data"]["tokens"]
    await _login(client, "shop@vendor.com")

    res = await client.post("/api/v1/auth/refresh", json={"refreshToken": first["refreshToken"]})
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Refresh token not found or invalid"


async def test_refresh_rejects_access_token(client, make_user):
    await make_user("shop@vendor.com", UserRole.VENDOR)
    tokens = (await _login(client, "shop@vendor.com")).json()["data"]["tokens"]
    res = await client.post("/api/v1/auth/refresh", json={"refreshToken": tokens["accessToken"]})
    assert res.status_code == 401


# ─── Me ──────────────────────────────────────────────────────────

async def test_me_includes_student_profile(client, make_student, auth_headers):
    student = await make_student()
    res = await client.get("/api/v1/auth/me", headers=auth_headers(student.user))
    assert res.status_code == 200
    user = res.json()["data"]["user"]
    assert user["email"] == "ada@unilag.edu.ng"
    assert user["profile"]["id"] == str(student.id)
    assert user["profile"]["name"] == "Ada Obi"


async def test_me_without_token(client):
    res = await client.get("/api/v1/auth/me")
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "No token provided"


async def test_me_with_malformed_token(client):
    res = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Authentication failed"


async def test_me_with_oversized_token(client):
    token = "a" * 3000 + "." + "b" * 1000 + "." + "c" * 200
    res = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json()["error"]["message"] == "Authentication failed"


# ─── Password recovery ───────────────────────────────────────────

async def test_forgot_password_unknown_email_sends_nothing(client, email_outbox):
    res = await client.post("/api/v1/auth/forgot-password", json={"email": "nobody@x.com"})
    assert res.status_code == 200
    assert res.json()["message"] == "If the email exists, an OTP has been sent"
    assert email_outbox.sent == []


async def test_full_password_reset_flow(client, test_db, make_user, email_outbox, fake_kv):
    user = await make_user("shop@vendor.com", UserRole.VENDOR)
    await _login(client, "shop@vendor.com")
    assert refresh_token_key(user.id) in fake_kv.data

    res = await client.post("/api/v1/auth/forgot-password", json={"email": "shop@vendor.com"})
    assert res.status_code == 200
    assert res.json()["message"] == "If the email exists, an OTP has been sent"
    assert email_outbox.sent[0]["to"] == "shop@vendor.com"

    await test_db.refresh(user)
    otp = user.password_reset_otp
    assert otp and len(otp) == 6
    assert otp in email_outbox.sent[0]["parts"][1]

    res = await client.post(
        "/api/v1/auth/verify-reset-otp", json={"email": "shop@vendor.com", "otp": otp},
    )
    assert res.status_code == 200
    reset_token = res.json()["data"]["resetToken"]
    assert fake_kv.data[password_reset_key(user.id)] == reset_token

    res = await client.post(
        "/api/v1/auth/reset-password",
        json={"resetToken": reset_token, "newPassword": NEW_PASSWORD},
    )
    assert res.status_code == 200
    assert refresh_token_key(user.id) not in fake_kv.data
    assert password_reset_key(user.id) not in fake_kv.data

    assert (await _login(client, "shop@vendor.com")).status_code == 401
    assert (await _login(client, "shop@vendor.com", NEW_PASSWORD)).status_code == 200

    # The reset token is single-use
    res = await client.post(
        "/api/v1/auth/reset-password",
        json={"resetToken": reset_token, "newPassword": "An0ther!Pass"},
    )
    assert res.status_code == 400


async def test_verify_reset_otp_wrong_code(client, test_db, make_user):
    user = await make_user("shop@vendor.com", UserRole.VENDOR)
    user.password_reset_otp = "123456"
    user.password_reset_otp_expires_at = utcnow() + timedelta(minutes=5)
    await test_db.commit()
    res = await client.post(
        "/api/v1/auth/verify-reset-otp", json={"email": "shop@vendor.com", "otp": "654321"},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Invalid or expired OTP"


async def test_verify_reset_otp_expired_code(client, test_db, make_user):
    user = await make_user("shop@vendor.com", UserRole.VENDOR)
    user.password_reset_otp = "123456"
    user.password_reset_otp_expires_at = utcnow() - timedelta(seconds=1)
    await test_db.commit()
    res = await client.post(
        "/api/v1/auth/verify-reset-otp", json={"email": "shop@vendor.com", "otp": "123456"},
    )
    assert res.status_code == 400


async def test_reset_password_with_garbage_token(client):
    res = await client.post(
        "/api/v1/auth/reset-password",
        json={"resetToken": "garbage", "newPassword": NEW_PASSWORD},
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Invalid or expired reset token"


async def test_update_password(client, make_user, auth_headers):
    user = await make_user("shop@vendor.com", UserRole.VENDOR)
    res = await client.post(
        "/api/v1/auth/update-password",
        json={"oldPassword": "Wr0ng!Pass", "newPassword": NEW_PASSWORD},
        headers=auth_headers(user),
    )
    assert res.status_code == 400
    assert res.json()["error"]["message"] == "Old password is incorrect"

    res = await client.post(
        "/api/v1/auth/update-password",
        json={"oldPassword": TEST_PASSWORD, "newPassword": NEW_PASSWORD},
        headers=auth_headers(user),
    )
    assert res.status_code == 200
    assert (await _login(client, "shop@vendor.com", NEW_PASSWORD)).status_code == 200
