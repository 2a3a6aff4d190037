"""Location service - tenant records, credentials and board preferences."""

from __future__ import annotations

import logging

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..ghl.client import RemoteApiError
from ..models.location import Location, default_card_field_settings, default_quick_actions
from ..schemas.location import LocationSettings, LocationSettingsUpdate, LocationStatus
from .errors import RecordNotFound, classify_remote_error
from .ghl_svc import ClientFactory, build_client, default_client_factory

log = logging.getLogger(__name__)


async def get_location(db: AsyncSession, location_id: str) -> Location | None:
    stmt = select(Location).where(Location.location_id == location_id)
    return (await db.execute(stmt)).scalar_one_or_none()


async def check_or_create_location(db: AsyncSession, location_id: str) -> Location:
    """Return the tenant's Location, creating an empty one on first visit."""
    location = await get_location(db, location_id)
    if location is not None:
        return location

    location = Location(location_id=location_id, api_key="", name="")
    db.add(location)
    await db.commit()
    await db.refresh(location)
    log.info("Created location %s", location_id)
    return location


def location_status(location: Location) -> LocationStatus:
    return LocationStatus(
        location_id=location.location_id,
        name=location.name,
        has_api_key=location.has_api_key,
    )


async def store_credential(
    db: AsyncSession,
    location_id: str,
    api_key: str,
    *,
    client_factory: ClientFactory = default_client_factory,
) -> Location:
    """Validate an API key with a pipelines call, then persist it.

    Raises:
        ValueError: If the key is empty.
        CredentialInvalid / CredentialScopeInsufficient / RemoteUnreachable:
            If validation fails; nothing is stored.
    """
    api_key = (api_key or "").strip()
    if not api_key:
        raise ValueError("API key is required")

    try:
        async with build_client(location_id, api_key, client_factory) as ghl:
            await ghl.opportunities.pipelines()
    except (RemoteApiError, httpx.TransportError) as exc:
        log.warning("API key validation failed for location %s: %s", location_id, exc)
        raise classify_remote_error(exc, location_id) from exc

    location = await get_location(db, location_id)
    if location is None:
        location = Location(location_id=location_id, name="")
        db.add(location)
    location.api_key = api_key
    await db.commit()
    await db.refresh(location)
    return location


# ── Board preferences ──────────────────────────────────────────────────────

def settings_for(location: Location) -> LocationSettings:
    return LocationSettings(
        pagination_enabled=location.pagination_enabled,
        page_size=location.page_size,
        pagination_per_stage=location.pagination_per_stage,
        sort_field=location.sort_field,
        sort_order=location.sort_order or "desc",
        card_field_settings=location.card_field_settings or default_card_field_settings(),
        quick_actions=location.quick_actions or default_quick_actions(),
    )


async def get_settings(db: AsyncSession, location_id: str) -> LocationSettings:
    location = await get_location(db, location_id)
    if location is None:
        raise RecordNotFound("Location", location_id)
    return settings_for(location)


async def update_settings(
    db: AsyncSession, location_id: str, data: LocationSettingsUpdate
) -> LocationSettings:
    """Write only the submitted preference keys, creating the location if needed."""
    location = await get_location(db, location_id)
    if location is None:
        location = Location(location_id=location_id, api_key="", name="")
        db.add(location)

    for key, val in data.model_dump(exclude_unset=True, by_alias=False).items():
        if val is None and key != "sort_field":
            continue
        if key in ("card_field_settings", "quick_actions"):
            val = getattr(data, key).model_dump(by_alias=True)
        setattr(location, key, val)

    await db.commit()
    await db.refresh(location)
    return settings_for(location)
