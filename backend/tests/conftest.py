"""Shared test configuration and fixtures.

Each test gets a fresh in-memory SQLite database, so tests are fully
isolated and no external database is needed.
"""

import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import marketplace.models  # noqa: F401  (register all tables on Base.metadata)
from marketplace.config import settings
from marketplace.database import Base, get_db
from marketplace.main import app
from marketplace.models.billing import PaymentMethod
from marketplace.models.user import User
from marketplace.services import api_tester, catalog_service

PUBLIC_ADDRESS = "93.184.216.34"

# ---------------------------------------------------------------------------
# Per-test database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to use the test DB session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: timedelta = timedelta(minutes=30)) -> str:
    """Mint a bearer token the way the external auth provider does."""
    now = datetime.now(timezone.utc)
    claims = {**data, "exp": now + expires_delta, "iat": now, "type": "access"}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


async def create_user(
    db_session: AsyncSession,
    name: str = "Test User",
    stripe_customer_id: str | None = None,
    is_active: bool = True,
) -> User:
    unique = uuid.uuid4().hex[:8]
    user = User(
        email=f"user-{unique}@test.com",
        name=name,
        is_active=is_active,
        stripe_customer_id=stripe_customer_id,
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


def headers_for(user: User) -> dict[str, str]:
    token = create_access_token({"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


async def create_payment_method(db_session: AsyncSession, user: User) -> PaymentMethod:
    unique = uuid.uuid4().hex[:8]
    payment_method = PaymentMethod(
        user_id=user.id,
        stripe_customer_id=user.stripe_customer_id or f"cus_{unique}",
        stripe_payment_id=f"pm_{unique}",
        card_brand="visa",
        last4="4242",
        exp_month=12,
        exp_year=2030,
    )
    db_session.add(payment_method)
    await db_session.flush()
    await db_session.refresh(payment_method)
    return payment_method


# ---------------------------------------------------------------------------
# Convenience fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A consumer with a Stripe customer already linked."""
    return await create_user(db_session, name="Consumer", stripe_customer_id="cus_consumer")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    return headers_for(test_user)


@pytest_asyncio.fixture
async def owner(db_session: AsyncSession) -> User:
    return await create_user(db_session, name="Provider")


@pytest_asyncio.fixture
async def owner_headers(owner: User) -> dict[str, str]:
    return headers_for(owner)


@pytest_asyncio.fixture
async def test_service(db_session: AsyncSession, owner: User):
    """A published service with a free tier and a $10 tier."""
    return await catalog_service.create_service(
        db_session,
        owner,
        name="Weather API",
        description="Forecasts and history.",
        tags=["weather", "data"],
        tiers=[
            {"name": "Free", "price_cents": 0, "features": ["100 calls/day"]},
            {"name": "Pro", "price_cents": 1000, "features": ["10k calls/day"]},
        ],
    )


@pytest_asyncio.fixture
async def free_tier(test_service):
    return next(t for t in test_service.subscription_tiers if t.price_cents == 0)


@pytest_asyncio.fixture
async def paid_tier(test_service):
    return next(t for t in test_service.subscription_tiers if t.price_cents == 1000)


@pytest_asyncio.fixture
async def payment_method(db_session: AsyncSession, test_user: User) -> PaymentMethod:
    return await create_payment_method(db_session, test_user)


@pytest.fixture
def public_dns(monkeypatch) -> str:
    """Resolve every API tester host to one public address, without real DNS."""

    async def lookup(host: str, port: int) -> list[str]:
        return [PUBLIC_ADDRESS]

    monkeypatch.setattr(api_tester, "_lookup", lookup)
    return PUBLIC_ADDRESS
