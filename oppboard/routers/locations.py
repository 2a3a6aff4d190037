"""Location routes - first visit, API key linking, board settings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.location import ApiKeyIn, LocationSettingsUpdate
from ..services import location_svc
from ..services.errors import OppboardError
from .deps import get_client_factory, http_error

router = APIRouter(prefix="/api/location", tags=["locations"])


@router.get("/{location_id}")
async def check_location(location_id: str, db: AsyncSession = Depends(get_db)):
    location = await location_svc.check_or_create_location(db, location_id)
    status = location_svc.location_status(location)
    return {
        "exists": True,
        "hasApiKey": status.has_api_key,
        "location": status.model_dump(by_alias=True),
    }


@router.post("/{location_id}/api-key")
async def store_api_key(
    location_id: str,
    data: ApiKeyIn,
    db: AsyncSession = Depends(get_db),
    client_factory=Depends(get_client_factory),
):
    try:
        location = await location_svc.store_credential(
            db, location_id, data.api_key, client_factory=client_factory
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except OppboardError as exc:
        # Every validation failure is a bad request from the board's point of view
        raise HTTPException(status_code=400, detail=exc.message) from exc
    return {
        "success": True,
        "location": location_svc.location_status(location).model_dump(by_alias=True),
    }


@router.get("/{location_id}/settings")
async def get_settings(location_id: str, db: AsyncSession = Depends(get_db)):
    try:
        prefs = await location_svc.get_settings(db, location_id)
    except OppboardError as exc:
        raise http_error(exc) from exc
    return prefs.model_dump(by_alias=True)


@router.put("/{location_id}/settings")
async def update_settings(
    location_id: str,
    data: LocationSettingsUpdate,
    db: AsyncSession = Depends(get_db),
):
    prefs = await location_svc.update_settings(db, location_id, data)
    return {"success": True, **prefs.model_dump(by_alias=True)}
