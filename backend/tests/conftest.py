"""
Pytest configuration and shared fixtures for the payment backend tests.

Provides an in-memory SQLite database, an order factory, a scriptable PayPay
provider stub wired into a real GatewayClient, and an httpx client bound to
the FastAPI app with the DB session and gateway client overridden.
"""
import asyncio
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import db_models  # noqa: F401
from database import Base, get_db
from deps import get_gateway_client
from main import app
from services.gateway_client import GatewayClient


COMPLETED_BODY = {"resultInfo": {"code": "SUCCESS"}, "data": {"status": "COMPLETED"}}


class StubProvider:
    """Async PayPay provider double that records every call."""

    def __init__(self, body=None, error: Exception | None = None, delay: float = 0.0):
        self.body = body
        self.error = error
        self.delay = delay
        self.calls: list[str] = []

    async def __call__(self, merchant_payment_id: str):
        self.calls.append(merchant_payment_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.body


# ── Database Fixtures ────────────────────────────────────────────────


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine per test.

    Uses StaticPool so every session shares the one in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def update_statements(db_engine) -> list[str]:
    """Every UPDATE statement the engine executes during the test."""
    seen: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("UPDATE"):
            seen.append(statement)

    event.listen(db_engine.sync_engine, "before_cursor_execute", _record)
    yield seen
    event.remove(db_engine.sync_engine, "before_cursor_execute", _record)


@pytest_asyncio.fixture
async def make_order(db_session):
    """Factory: insert an order (pending, mpid m1, token t1 unless overridden)."""
    from db_models import Order

    async def _make(**overrides):
        fields = {
            "id": "o1",
            "status": "pending",
            "merchant_payment_id": "m1",
            "return_token": "t1",
            "payment_method": "paypay",
            "total": 3300,
        }
        fields.update(overrides)
        order = Order(**fields)
        db_session.add(order)
        await db_session.commit()
        return order

    return _make


# ── Gateway Fixtures ─────────────────────────────────────────────────


@pytest.fixture
def make_provider():
    return StubProvider


@pytest.fixture
def provider() -> StubProvider:
    """Provider reporting the payment COMPLETED; tests may reassign .body/.error."""
    return StubProvider(body=COMPLETED_BODY)


@pytest.fixture
def gateway(provider) -> GatewayClient:
    return GatewayClient(provider, timeout_seconds=1.0)


# ── HTTP Client ──────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def client(db_session, gateway) -> AsyncGenerator[AsyncClient, None]:
    """App client with the test DB session and stub gateway injected."""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway_client] = lambda: gateway

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
