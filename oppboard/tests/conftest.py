"""Async test fixtures for oppboard tests using SQLite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from oppboard.database import get_db
from oppboard.models.base import Base
from oppboard.models.location import Location
from oppboard.routers.deps import get_client_factory

LOCATION_ID = "loc_test_123"
API_KEY = "pit-test-key"


def make_ghl() -> AsyncMock:
    """An AsyncMock standing in for an entered GHLClient."""
    ghl = AsyncMock()
    ghl.location_id = LOCATION_ID
    ghl.__aenter__ = AsyncMock(return_value=ghl)
    ghl.__aexit__ = AsyncMock(return_value=False)
    return ghl


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def location(db: AsyncSession):
    loc = Location(location_id=LOCATION_ID, api_key=API_KEY, name="Test Location")
    db.add(loc)
    await db.commit()
    await db.refresh(loc)
    return loc


@pytest.fixture
def ghl():
    return make_ghl()


@pytest_asyncio.fixture
async def client(engine, ghl):
    """HTTPX async test client against the oppboard app, GHL mocked out."""
    from oppboard.app import app

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_client_factory] = lambda: (lambda config: ghl)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture
def cli_runner():
    """Create a Typer CLI test runner."""
    from typer.testing import CliRunner
    return CliRunner()
