"""Custom field routes - cached definitions grouped by folder."""

from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..services import custom_field_svc
from ..services.errors import REMOTE_ERRORS, OppboardError, classify_remote_error
from .deps import get_client_factory, http_error

router = APIRouter(prefix="/api/location/{location_id}", tags=["custom-fields"])


@router.get("/custom-fields")
async def list_custom_fields(
    location_id: str,
    model: Literal["opportunity", "contact"] = "opportunity",
    refresh: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    client_factory=Depends(get_client_factory),
):
    try:
        view = await custom_field_svc.get_custom_fields(
            db,
            location_id,
            model,
            force_refresh=refresh in ("1", "true"),
            client_factory=client_factory,
        )
    except REMOTE_ERRORS as exc:
        raise http_error(classify_remote_error(exc, location_id)) from exc
    except OppboardError as exc:
        raise http_error(exc) from exc
    return view.model_dump(by_alias=True)
