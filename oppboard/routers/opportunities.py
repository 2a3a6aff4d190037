"""Opportunity routes - board listing, CRUD, status changes and full sync."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.location import Location
from ..schemas.opportunity import OpportunityFilters, OpportunityForm, Pagination, StatusUpdate
from ..services import opportunity_svc
from ..services.errors import REMOTE_ERRORS, OppboardError, classify_remote_error
from ..sync import sync_engine
from .deps import get_ghl, get_location_record, http_error

router = APIRouter(prefix="/api/location/{location_id}/opportunities", tags=["opportunities"])


def _parse_stage_pages(raw: str | None) -> dict[str, int]:
    """``stagePages`` arrives as a JSON object of stage id -> page."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail="stagePages must be a JSON object") from exc
    if not isinstance(data, dict):
        raise HTTPException(status_code=422, detail="stagePages must be a JSON object")
    try:
        return {str(k): int(v) for k, v in data.items()}
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail="stagePages values must be integers") from exc


@router.get("")
async def list_opportunities(
    location: Location = Depends(get_location_record),
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=1000),
    pipeline_id: str | None = Query(None, alias="pipelineId"),
    pipeline_stage_id: str | None = Query(None, alias="pipelineStageId"),
    status: str | None = None,
    search: str | None = None,
    sort_field: str | None = Query(None, alias="sortField"),
    sort_order: str | None = Query(None, alias="sortOrder", pattern="^(asc|desc)$"),
    stage_pages: str | None = Query(None, alias="stagePages"),
):
    filters = OpportunityFilters(
        pipeline_id=pipeline_id or None,
        pipeline_stage_id=pipeline_stage_id or None,
        status=status or None,
        search=search or None,
    )
    pagination = Pagination(
        page=page,
        limit=limit,
        sort_field=sort_field,
        sort_order=sort_order,
        stage_pages=_parse_stage_pages(stage_pages),
    )
    result = await opportunity_svc.list_opportunities(db, location, filters, pagination)
    return result.model_dump(by_alias=True)


@router.post("", status_code=201)
async def create_opportunity(
    location_id: str,
    data: OpportunityForm,
    db: AsyncSession = Depends(get_db),
    ghl=Depends(get_ghl),
):
    try:
        outcome = await opportunity_svc.create_opportunity(db, ghl, location_id, data)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except OppboardError as exc:
        raise http_error(exc) from exc
    return outcome.model_dump()


@router.post("/sync")
async def sync_opportunities(
    location_id: str,
    pipeline_id: str | None = Query(None, alias="pipelineId"),
    db: AsyncSession = Depends(get_db),
    ghl=Depends(get_ghl),
):
    try:
        result = await sync_engine.sync_all_opportunities(
            db, ghl, location_id, pipeline_id=pipeline_id or None
        )
    except REMOTE_ERRORS as exc:
        raise http_error(classify_remote_error(exc, location_id)) from exc
    return {"success": True, **result.model_dump()}


@router.get("/{opportunity_id}")
async def get_opportunity(
    location_id: str,
    opportunity_id: str,
    db: AsyncSession = Depends(get_db),
):
    try:
        opportunity = await opportunity_svc.get_opportunity(db, location_id, opportunity_id)
    except OppboardError as exc:
        raise http_error(exc) from exc
    return {"opportunity": opportunity}


@router.put("/{opportunity_id}")
async def update_opportunity(
    location_id: str,
    opportunity_id: str,
    data: OpportunityForm,
    db: AsyncSession = Depends(get_db),
    ghl=Depends(get_ghl),
):
    try:
        outcome = await opportunity_svc.update_opportunity(
            db, ghl, location_id, opportunity_id, data
        )
    except OppboardError as exc:
        raise http_error(exc) from exc
    return outcome.model_dump()


@router.delete("/{opportunity_id}")
async def delete_opportunity(
    location_id: str,
    opportunity_id: str,
    db: AsyncSession = Depends(get_db),
    ghl=Depends(get_ghl),
):
    try:
        await opportunity_svc.delete_opportunity(db, ghl, location_id, opportunity_id)
    except OppboardError as exc:
        raise http_error(exc) from exc
    return {"success": True}


@router.put("/{opportunity_id}/status")
async def update_status(
    location_id: str,
    opportunity_id: str,
    data: StatusUpdate,
    db: AsyncSession = Depends(get_db),
    ghl=Depends(get_ghl),
):
    try:
        opportunity = await opportunity_svc.update_opportunity_status(
            db, ghl, location_id, opportunity_id, data.status
        )
    except OppboardError as exc:
        raise http_error(exc) from exc
    return {"opportunity": opportunity}
