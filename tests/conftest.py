"""Pytest configuration and fixtures."""

from datetime import datetime, timedelta
from typing import Any, AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from starwars_api.core.deps import get_cache, get_db, get_swapi
from starwars_api.core.exceptions import SwapiNotFoundError
from starwars_api.db import models_registry  # noqa: F401 - Import to register models
from starwars_api.db.base import Base
from starwars_api.main import app
from starwars_api.models.api_log import StarWarsApiLog
from starwars_api.schemas.statistics import ApiLogRecord
from starwars_api.services.stats_cache import InMemoryResultCache

# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Sunday 2026-01-11 15:30
SCENARIO_NOW = datetime(2026, 1, 11, 15, 30, 0)


class FakeSwapiClient:
    """Stands in for SwapiClient: canned responses keyed by path, records calls."""

    def __init__(self):
        self.responses: dict[str, dict[str, Any]] = {}
        self.errors: dict[str, Exception] = {}
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    def add(self, path: str, response: dict[str, Any]) -> None:
        self.responses[path] = response

    def fail(self, path: str, error: Exception) -> None:
        self.errors[path] = error

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.calls.append((path, params))
        if path in self.errors:
            raise self.errors[path]
        if path not in self.responses:
            raise SwapiNotFoundError(f"Star Wars API resource not found: {path}")
        return self.responses[path]


def scenario_rows(now: datetime = SCENARIO_NOW) -> list[dict[str, Any]]:
    """
    Twenty calls in chronological order.

    Last 24 hours: 10, last 7 days: 12, last 30 days: 16, all time: 20.
    """
    today = now - timedelta(minutes=30)
    outside_24h = now - timedelta(hours=25)
    days_20 = now - timedelta(days=20)
    days_40 = now - timedelta(days=40)

    def row(endpoint, started_at, duration_ms, param_name=None, param_value=None):
        return {
            "endpoint": endpoint,
            "param_name": param_name,
            "param_value": param_value,
            "started_at": started_at,
            "completed_at": started_at + timedelta(milliseconds=duration_ms),
            "duration_ms": duration_ms,
        }

    rows = [
        # 40 days ago
        row("films/4", days_40, 200),
        row("films", days_40 + timedelta(minutes=5), 150, "title", "Phantom"),
        row("films", days_40 + timedelta(minutes=10), 150, "title", "Clones"),
        row("people", days_40 + timedelta(minutes=15), 150, "name", "Yoda"),
        # 20 days ago
        row("films/3", days_20, 200),
        row("films", days_20 + timedelta(minutes=5), 150, "title", "Return"),
        row("films", days_20 + timedelta(minutes=10), 150, "title", "Empire"),
        row("people", days_20 + timedelta(minutes=15), 150, "name", "Vader"),
        # 25 hours ago
        row("films/2", outside_24h, 500),
        row("people", outside_24h + timedelta(minutes=5), 10, "name", "Leia"),
    ]
    # today
    rows += [row("people/1", today + timedelta(minutes=i), 100) for i in range(5)]
    rows += [
        row("people", today + timedelta(minutes=10 + i), 150, "name", "Luke")
        for i in range(3)
    ]
    rows += [row("films/1", today + timedelta(minutes=20 + i), 200) for i in range(2)]
    return rows


@pytest.fixture
def scenario_records() -> list[ApiLogRecord]:
    """Scenario calls as aggregator input."""
    return [ApiLogRecord(**r) for r in scenario_rows()]


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def swapi() -> FakeSwapiClient:
    """Fake upstream client."""
    return FakeSwapiClient()


@pytest.fixture
def result_cache() -> InMemoryResultCache:
    """Empty in-memory result cache."""
    return InMemoryResultCache()


@pytest_asyncio.fixture(scope="function")
async def client(
    db_session: AsyncSession,
    swapi: FakeSwapiClient,
    result_cache: InMemoryResultCache,
) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with overridden dependencies."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_swapi] = lambda: swapi
    app.dependency_overrides[get_cache] = lambda: result_cache

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def sample_logs(db_session: AsyncSession) -> list[StarWarsApiLog]:
    """Insert the scenario calls into the log table."""
    logs = [StarWarsApiLog(**r) for r in scenario_rows()]
    db_session.add_all(logs)
    await db_session.commit()
    return logs
