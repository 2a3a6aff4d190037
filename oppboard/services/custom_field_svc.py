"""Custom field service - read-through cache of GHL field and folder definitions."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.custom_field import FOLDER_DATA_TYPE, CustomField
from ..schemas.custom_field import CustomFieldOut, CustomFieldsView, FolderOut
from ..sync.field_mapper import ghl_custom_field_to_local
from ..sync.folders import Folder, resolve_folders
from ..sync.upsert import upsert_rows
from .ghl_svc import ClientFactory, default_client_factory, get_ghl_client

log = logging.getLogger(__name__)


async def list_cached(db: AsyncSession, location_id: str, model: str) -> list[CustomField]:
    stmt = (
        select(CustomField)
        .where(CustomField.location_id == location_id, CustomField.field_model == model)
        .order_by(CustomField.position, CustomField.ghl_id)
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(stmt)).scalars().all())


def cache_is_usable(cached: list[CustomField]) -> bool:
    """A cached set is served only when it has fields and its folders are resolved.

    Folders count as resolved when folder rows exist or no field sits in one.
    """
    fields = [c for c in cached if not c.is_folder]
    if not fields:
        return False
    has_folders = any(c.is_folder for c in cached)
    return has_folders or all(not c.parent_id for c in fields)


def build_view(rows: list[CustomField]) -> CustomFieldsView:
    """Partition cached rows into ``{customFields, folders}``.

    A field whose parent never resolved to a stored folder is shown top-level;
    its stored ``parent_id`` is kept so the next read retries the folder.
    """
    folder_ids = {row.ghl_id for row in rows if row.is_folder}
    folders: list[FolderOut] = []
    custom_fields: list[CustomFieldOut] = []
    for row in rows:
        if row.is_folder:
            folders.append(FolderOut(id=row.ghl_id, name=row.name, position=row.position))
            continue
        custom_fields.append(
            CustomFieldOut(
                id=row.ghl_id,
                name=row.name,
                field_key=row.field_key,
                data_type=row.data_type,
                placeholder=row.placeholder,
                position=row.position,
                picklist_options=row.picklist_options or [],
                picklist_image_options=row.picklist_image_options or [],
                allow_custom_option=row.allow_custom_option,
                is_multi_file_allowed=row.is_multi_file_allowed,
                max_file_limit=row.max_file_limit,
                is_required=row.is_required,
                model=row.field_model,
                parent_id=row.parent_id if row.parent_id in folder_ids else "",
                parent_name=row.parent_name or "",
            )
        )
    return CustomFieldsView(custom_fields=custom_fields, folders=folders)


def _folder_row(folder: Folder, location_id: str, model: str, now: datetime) -> dict:
    return {
        "location_id": location_id,
        "ghl_id": folder.id,
        "name": folder.name,
        "field_key": "",
        "data_type": FOLDER_DATA_TYPE,
        "placeholder": "",
        "position": folder.position,
        "picklist_options": [],
        "picklist_image_options": [],
        "allow_custom_option": False,
        "is_multi_file_allowed": False,
        "max_file_limit": 0,
        "is_required": False,
        "field_model": model,
        "parent_id": "",
        "parent_name": "",
        "is_folder": True,
        "synced_at": now,
    }


async def refresh_custom_fields(
    db: AsyncSession, ghl, location_id: str, model: str
) -> list[CustomField]:
    """Fetch definitions, resolve folders, upsert, and sweep stale rows."""
    resp = await ghl.custom_fields.list(model)
    raw = resp.get("customFields") if isinstance(resp, dict) else None
    fields = [f for f in (raw or []) if isinstance(f, dict) and f.get("id")]

    folders = await resolve_folders(ghl, fields)
    now = datetime.now(timezone.utc)

    rows: list[dict] = []
    for cf in fields:
        row = {
            "location_id": location_id,
            "ghl_id": cf["id"],
            **ghl_custom_field_to_local(cf, model),
            "synced_at": now,
        }
        folder = folders.get(row["parent_id"])
        if folder is not None:
            row["parent_name"] = folder.name
        rows.append(row)

    seen_folder_ids: set[str] = set()
    for parent_id in sorted(folders):
        folder = folders[parent_id]
        if folder.id in seen_folder_ids:
            continue
        seen_folder_ids.add(folder.id)
        rows.append(_folder_row(folder, location_id, model, now))

    await upsert_rows(db, CustomField, rows)

    live_ids = [row["ghl_id"] for row in rows]
    swept = await db.execute(
        delete(CustomField).where(
            CustomField.location_id == location_id,
            CustomField.field_model == model,
            CustomField.ghl_id.notin_(live_ids),
        )
    )
    await db.commit()
    if swept.rowcount:
        log.info("Removed %d stale %s custom fields for %s", swept.rowcount, model, location_id)

    return await list_cached(db, location_id, model)


async def get_custom_fields(
    db: AsyncSession,
    location_id: str,
    model: str = "opportunity",
    force_refresh: bool = False,
    *,
    client_factory: ClientFactory = default_client_factory,
) -> CustomFieldsView:
    """Serve custom field definitions from cache, refreshing from GHL on a miss."""
    if not force_refresh:
        cached = await list_cached(db, location_id, model)
        if cache_is_usable(cached):
            return build_view(cached)

    async with await get_ghl_client(db, location_id, client_factory) as ghl:
        persisted = await refresh_custom_fields(db, ghl, location_id, model)
    return build_view(persisted)
