"""Pipeline routes - mirrored list and remote refresh."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..services import pipeline_svc
from ..services.errors import REMOTE_ERRORS, OppboardError, classify_remote_error
from .deps import get_ghl, http_error

router = APIRouter(prefix="/api/location/{location_id}", tags=["pipelines"])


@router.get("/pipelines")
async def list_pipelines(location_id: str, db: AsyncSession = Depends(get_db)):
    pipelines = await pipeline_svc.list_pipelines(db, location_id)
    return {"pipelines": [pipeline_svc.pipeline_out(p).model_dump(by_alias=True) for p in pipelines]}


@router.post("/pipelines")
async def sync_pipelines(
    location_id: str,
    db: AsyncSession = Depends(get_db),
    ghl=Depends(get_ghl),
):
    try:
        pipelines = await pipeline_svc.sync_pipelines(db, ghl, location_id)
    except REMOTE_ERRORS as exc:
        raise http_error(classify_remote_error(exc, location_id)) from exc
    except OppboardError as exc:
        raise http_error(exc) from exc
    return {"pipelines": [pipeline_svc.pipeline_out(p).model_dump(by_alias=True) for p in pipelines]}
