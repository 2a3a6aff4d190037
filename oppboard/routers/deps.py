"""FastAPI dependencies for tenant resolution and GHL access."""

from __future__ import annotations

from fastapi import Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models.location import Location
from ..services import ghl_svc, location_svc
from ..services.errors import (
    CredentialInvalid,
    CredentialScopeInsufficient,
    GHLNotLinkedError,
    OppboardError,
    RecordNotFound,
    RemoteUnreachable,
)

_STATUS_BY_ERROR: list[tuple[type[OppboardError], int]] = [
    (GHLNotLinkedError, 401),
    (CredentialInvalid, 400),
    (CredentialScopeInsufficient, 400),
    (RecordNotFound, 404),
    (RemoteUnreachable, 502),
]


def http_error(exc: OppboardError) -> HTTPException:
    """Translate a service error into the HTTP response the board expects."""
    status_code = 500
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = code
            break
    detail: str | dict = exc.message
    if exc.detail:
        detail = {"error": exc.message, "details": exc.detail}
    return HTTPException(status_code=status_code, detail=detail)


def get_client_factory() -> ghl_svc.ClientFactory:
    """Overridden in tests to hand out fake GHL clients."""
    return ghl_svc.default_client_factory


async def get_location_record(
    location_id: str = Path(..., description="GHL location id"),
    db: AsyncSession = Depends(get_db),
) -> Location:
    """Resolve a location id to its Location row. Raises 404 if not found."""
    location = await location_svc.get_location(db, location_id)
    if not location:
        raise HTTPException(status_code=404, detail="Location not found")
    return location


async def get_ghl(
    location_id: str = Path(..., description="GHL location id"),
    db: AsyncSession = Depends(get_db),
    client_factory: ghl_svc.ClientFactory = Depends(get_client_factory),
):
    """Yield an entered GHL client for the location's stored API key."""
    try:
        client = await ghl_svc.get_ghl_client(db, location_id, client_factory)
    except GHLNotLinkedError as exc:
        raise http_error(exc) from exc
    async with client as ghl:
        yield ghl
