"""FastAPI application factory for the opportunity board."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )
    # Auto-create tables for SQLite (local dev); PostgreSQL uses Alembic migrations
    if settings.is_sqlite:
        from .database import engine
        from .models import Base
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    from .database import dispose_engine
    await dispose_engine()


app = FastAPI(title=settings.app_title, lifespan=lifespan)

# Import and register routers
from .routers import (  # noqa: E402
    locations, pipelines, opportunities, custom_fields, directory, health,
)

app.include_router(locations.router)
app.include_router(pipelines.router)
app.include_router(opportunities.router)
app.include_router(custom_fields.router)
app.include_router(directory.router)
app.include_router(health.router)
