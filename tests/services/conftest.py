"""Service test fixtures — async DB, in-memory fakes and a FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager and kv_store patched for code that reads the module singletons (health)
    - Outbound senders, Paystack and registry replaced with recording fakes: no network

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features not exercised here)
    - Seed helpers are factory fixtures writing through test_db and committing, so the
      request session sees the rows
    - Real TokenService: auth headers are minted exactly as login mints them
"""

from dataclasses import dataclass, field
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

import awoof.infrastructure.database as db_module
import awoof.infrastructure.redis_store as kv_module
from awoof.api.dependencies import (
    get_email_sender, get_payment_verifier, get_registry_lookup, get_token_service,
    get_whatsapp_sender,
)
from awoof.core.domain_types import (
    StudentStatus, UserRole, UserVerificationStatus, VendorStatus,
)
from awoof.core.repository_protocols import (
    PaymentVerification, RegistryResult, SendResult,
)
from awoof.core.slugs import shortcode_from_domain
from awoof.db.base import Base
from awoof.infrastructure.database import DatabaseSessionManager, get_db
from awoof.infrastructure.redis_store import get_kv_store
from awoof.infrastructure.security import hash_password
from awoof.main import app
from awoof.models.product import Product
from awoof.models.student import Student
from awoof.models.university import University, UniversityVerificationMethod
from awoof.models.user import User
from awoof.models.vendor import Vendor

TEST_PASSWORD = "Str0ng!Pass"


# ─── Fakes ───────────────────────────────────────────────────────

class FakeKV:
    """KeyValueStore over a dict; TTLs recorded, never enforced."""

    def __init__(self):
        self.data: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.healthy = True

    async def get(self, key):
        return self.data.get(key)

    async def set(self, key, value, ttl_seconds):
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    async def delete(self, key):
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def ping(self):
        return self.healthy


@dataclass
class FakeSender:
    """Records every outbound message; answers with `result`."""
    sent: list[dict] = field(default_factory=list)
    result: SendResult = field(default_factory=lambda: SendResult(success=True))

    async def send(self, to, *parts, **kwargs):
        self.sent.append({"to": to, "parts": parts, **kwargs})
        return self.result


@dataclass
class FakePaystack:
    """Maps references to verifications; unknown references are not found."""
    results: dict[str, PaymentVerification] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def verify(self, reference):
        self.calls.append(reference)
        return self.results.get(
            reference,
            PaymentVerification(verified=False, error="Payment reference not found"),
        )


@dataclass
class FakeRegistry:
    result: RegistryResult = field(default_factory=lambda: RegistryResult(verified=False))
    calls: list[dict] = field(default_factory=list)

    async def lookup(
        self, endpoint, registration_number, api_config=None,
        student_name=None, student_email=None,
    ):
        self.calls.append({
            "endpoint": endpoint,
            "registrationNumber": registration_number,
            "apiConfig": api_config,
        })
        return self.result


# ─── Database ────────────────────────────────────────────────────

@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


# ─── Client ──────────────────────────────────────────────────────

@pytest.fixture
def fake_kv():
    return FakeKV()


@pytest.fixture
def email_outbox():
    return FakeSender()


@pytest.fixture
def whatsapp_outbox():
    return FakeSender()


@pytest.fixture
def paystack():
    return FakePaystack()


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
async def client(
    test_engine, test_session_factory, fake_kv, email_outbox, whatsapp_outbox,
    paystack, registry,
):
    """FastAPI test client with DB, cache and outbound clients overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_kv_store] = lambda: fake_kv
    app.dependency_overrides[get_email_sender] = lambda: email_outbox
    app.dependency_overrides[get_whatsapp_sender] = lambda: whatsapp_outbox
    app.dependency_overrides[get_payment_verifier] = lambda: paystack
    app.dependency_overrides[get_registry_lookup] = lambda: registry

    # Patch singletons read directly by the readiness check
    original_manager = db_module.db_manager
    original_kv = kv_module.kv_store
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager
    kv_module.kv_store = fake_kv

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    kv_module.kv_store = original_kv


# ─── Seed helpers ────────────────────────────────────────────────

@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        token = get_token_service().create_access_token(str(user.id), user.email, user.role)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def make_user(test_db):
    async def _make(
        email: str, role: UserRole, password: str | None = TEST_PASSWORD, verified: bool = False,
    ) -> User:
        user = User(
            email=email,
            password_hash=hash_password(password, rounds=4) if password else None,
            role=role.value,
            verification_status=(
                UserVerificationStatus.VERIFIED.value if verified
                else UserVerificationStatus.UNVERIFIED.value
            ),
        )
        test_db.add(user)
        await test_db.commit()
        return user
    return _make


@pytest.fixture
def make_university(test_db):
    async def _make(
        name: str = "University of Lagos",
        domain: str = "unilag.edu.ng",
        methods: list[dict] | None = None,
        **fields,
    ) -> University:
        university = University(
            name=name,
            domain=domain,
            email_domains=fields.pop("email_domains", [domain]),
            shortcode=shortcode_from_domain(domain),
            **fields,
        )
        for method in methods or []:
            university.verification_methods.append(UniversityVerificationMethod(**method))
        test_db.add(university)
        await test_db.commit()
        return university
    return _make


@pytest.fixture
def make_student(test_db, make_user):
    async def _make(
        email: str = "ada@unilag.edu.ng",
        verified: bool = True,
        university: University | None = None,
        **fields,
    ) -> Student:
        user = await make_user(email, UserRole.STUDENT, verified=verified)
        student = Student(
            user=user,
            name=fields.pop("name", "Ada Obi"),
            university=university.name if university else "",
            university_id=university.id if university else None,
            status=fields.pop("status", StudentStatus.ACTIVE.value),
            **fields,
        )
        test_db.add(student)
        await test_db.commit()
        return student
    return _make


@pytest.fixture
def make_vendor(test_db, make_user):
    async def _make(
        email: str = "shop@vendor.com",
        status: VendorStatus = VendorStatus.ACTIVE,
        commission_rate: str = "10.00",
        **fields,
    ) -> tuple[User, Vendor]:
        user = await make_user(email, UserRole.VENDOR)
        vendor = Vendor(
            user_id=user.id,
            name=fields.pop("name", "Campus Gadgets"),
            status=status.value,
            commission_rate=Decimal(commission_rate),
            **fields,
        )
        test_db.add(vendor)
        await test_db.commit()
        return user, vendor
    return _make


@pytest.fixture
def make_admin(make_user):
    async def _make(email: str = "admin@awoof.com") -> User:
        return await make_user(email, UserRole.ADMIN)
    return _make


@pytest.fixture
def make_product(test_db):
    async def _make(vendor: Vendor, **fields) -> Product:
        product = Product(
            vendor_id=vendor.id,
            name=fields.pop("name", "Wireless Earbuds"),
            price=Decimal(str(fields.pop("price", "3000.00"))),
            student_price=Decimal(str(fields.pop("student_price", "2500.00"))),
            stock=fields.pop("stock", 10),
            **fields,
        )
        test_db.add(product)
        await test_db.commit()
        return product
    return _make
