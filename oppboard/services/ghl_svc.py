"""GHL API service - builds per-tenant GHL clients from stored credentials."""

from __future__ import annotations

from typing import Callable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..ghl.client import GHLClient, GHLConfig
from ..models.location import Location
from .errors import GHLNotLinkedError

ClientFactory = Callable[[GHLConfig], GHLClient]


def default_client_factory(config: GHLConfig) -> GHLClient:
    return GHLClient(config)


def build_client(
    location_id: str,
    api_key: str,
    client_factory: ClientFactory = default_client_factory,
) -> GHLClient:
    """Unentered client for a tenant; use as ``async with build_client(...) as ghl``."""
    return client_factory(GHLConfig(token=api_key, location_id=location_id))


async def get_linked_location(db: AsyncSession, location_id: str) -> Location:
    """The Location row for a tenant that has a stored API key.

    Raises:
        GHLNotLinkedError: If the location is unknown or has no key.
    """
    stmt = select(Location).where(Location.location_id == location_id)
    location = (await db.execute(stmt)).scalar_one_or_none()
    if location is None or not location.api_key:
        raise GHLNotLinkedError(location_id)
    return location


async def get_ghl_client(
    db: AsyncSession,
    location_id: str,
    client_factory: ClientFactory = default_client_factory,
) -> GHLClient:
    """Get a GHL client for a linked location as async context manager.

    Usage:
        async with await get_ghl_client(db, loc_id) as ghl:
            data = await ghl.opportunities.pipelines()
    """
    location = await get_linked_location(db, location_id)
    return build_client(location.location_id, location.api_key, client_factory)
