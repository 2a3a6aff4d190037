"""Async engine and session factory for the opportunity mirror.

SQLite (aiosqlite) is the local default; PostgreSQL (asyncpg) is used when
OPPBOARD_DATABASE_URL points at it.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import settings


def _engine_options() -> dict[str, Any]:
    options: dict[str, Any] = {"echo": settings.echo_sql}
    if not settings.is_sqlite:
        options["pool_pre_ping"] = True
    return options


engine: AsyncEngine = create_async_engine(settings.database_url, **_engine_options())
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db():
    """FastAPI dependency that yields one session per request."""
    async with async_session_factory() as session:
        yield session


async def dispose_engine() -> None:
    await engine.dispose()
