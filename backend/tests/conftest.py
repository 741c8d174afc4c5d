"""Shared fixtures: in-memory database, API client and fake upstream services."""
import os

# Must be set before cyclewise modules build the engine and settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("DEBUG", "false")

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from cyclewise.api.deps import get_forecast_backend, get_ultrahuman_client
from cyclewise.config import Settings, get_settings
from cyclewise.database import Base, build_engine, build_session_maker, create_tables, get_db
from cyclewise.integrations.ultrahuman.client import UltrahumanClient
from cyclewise.main import app
from cyclewise.models import User
from cyclewise.services.analytics_config import AnalyticsConfig, set_analytics_config
from cyclewise.services.auth import create_access_token, hash_password
from tests.factories import FakeForecastBackend, FakeUltrahumanAPI, make_settings

TEST_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def reset_analytics_config():
    set_analytics_config(AnalyticsConfig())
    yield
    set_analytics_config(AnalyticsConfig())


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture
async def session_maker(test_settings):
    engine = build_engine(test_settings)
    await create_tables(engine)

    yield build_session_maker(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncSession:
    async with session_maker() as session:
        yield session


@pytest.fixture
def ultrahuman_api() -> FakeUltrahumanAPI:
    return FakeUltrahumanAPI()


@pytest_asyncio.fixture
async def ultrahuman_client(test_settings, ultrahuman_api):
    client = UltrahumanClient(test_settings, transport=httpx.MockTransport(ultrahuman_api))
    yield client
    await client.close()


@pytest.fixture
def forecast_backend() -> FakeForecastBackend:
    return FakeForecastBackend()


@pytest_asyncio.fixture
async def client(session_maker, test_settings, ultrahuman_client, forecast_backend):
    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_ultrahuman_client] = lambda: ultrahuman_client
    app.dependency_overrides[get_forecast_backend] = lambda: forecast_backend

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, email: str, name: str) -> User:
    user = User(email=email, name=name, password_hash=hash_password(TEST_PASSWORD))
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session) -> User:
    return await _create_user(db_session, "test@example.com", "Test User")


@pytest_asyncio.fixture
async def other_user(db_session) -> User:
    return await _create_user(db_session, "other@example.com", "Other User")


@pytest.fixture
def auth_headers(test_settings, test_user) -> dict[str, str]:
    token = create_access_token(test_settings, test_user.id, test_user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(test_settings, other_user) -> dict[str, str]:
    token = create_access_token(test_settings, other_user.id, other_user.email)
    return {"Authorization": f"Bearer {token}"}
