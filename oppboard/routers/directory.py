"""Contact, user and tag lookups served straight from GHL."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..services import directory_svc
from ..services.errors import REMOTE_ERRORS, classify_remote_error
from .deps import get_ghl, http_error

router = APIRouter(prefix="/api/location/{location_id}", tags=["directory"])


@router.get("/contacts")
async def list_contacts(location_id: str, query: str | None = None, ghl=Depends(get_ghl)):
    try:
        result = await directory_svc.list_contacts(ghl, query=query or None)
    except REMOTE_ERRORS as exc:
        raise http_error(classify_remote_error(exc, location_id)) from exc
    return result.model_dump()


@router.get("/users")
async def list_users(location_id: str, ghl=Depends(get_ghl)):
    try:
        users = await directory_svc.list_users(ghl)
    except REMOTE_ERRORS as exc:
        raise http_error(classify_remote_error(exc, location_id)) from exc
    return {"users": [u.model_dump() for u in users]}


@router.get("/tags")
async def list_tags(location_id: str, ghl=Depends(get_ghl)):
    try:
        tags = await directory_svc.list_tags(ghl)
    except REMOTE_ERRORS as exc:
        raise http_error(classify_remote_error(exc, location_id)) from exc
    return {"tags": tags}
