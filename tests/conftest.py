"""Shared fixtures: SQLite database, app client and fake Midtrans gateway."""

import os

os.environ["DATABASE_URL_OVERRIDE"] = "sqlite+aiosqlite:///:memory:"
os.environ["MIDTRANS_SERVER_KEY"] = "test-server-key"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["CRON_SECRET"] = ""
os.environ["APP_PUBLIC_URL"] = "https://courtease.test"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from courtease.database import Base, get_db
from courtease.main import app
from courtease.models import Booking
from courtease.services.gateway_service import get_payment_gateway
from tests.helpers import Factory, FakeGateway


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'courtease.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def factory(session_maker) -> Factory:
    return Factory(session_maker)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
async def client(session_maker, gateway):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def load_booking(session_maker):
    """Read a booking's committed state in a fresh session."""

    async def _load(booking_id) -> Booking:
        async with session_maker() as session:
            return await session.get(Booking, booking_id)

    return _load

