"""Folder resolution for custom field definitions.

The list endpoint returns only leaf fields; each field names its folder by
``parentId``. Folder metadata has to be fetched one id at a time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..services.errors import REMOTE_ERRORS

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Folder:
    id: str
    name: str
    position: int = 0
    standard: bool = False


def unique_parent_ids(fields: list[dict[str, Any]]) -> list[str]:
    """Distinct non-empty parentId values, sorted."""
    return sorted({f["parentId"] for f in fields if isinstance(f.get("parentId"), str) and f["parentId"]})


async def _fetch_folder(ghl, parent_id: str) -> Folder | None:
    try:
        resp = await ghl.custom_fields.get(parent_id)
    except REMOTE_ERRORS:
        log.warning("Could not fetch custom field folder %s", parent_id, exc_info=True)
        return None

    folder = resp.get("customField") if isinstance(resp, dict) else None
    if not isinstance(folder, dict) or folder.get("documentType") != "folder":
        log.info("Parent %s is not a folder; fields under it are treated as top-level", parent_id)
        return None

    position = folder.get("position")
    return Folder(
        id=folder.get("id") or parent_id,
        name=folder.get("name") or "",
        position=position if isinstance(position, int) else 0,
        standard=bool(folder.get("standard")),
    )


async def resolve_folders(ghl, fields: list[dict[str, Any]]) -> dict[str, Folder]:
    """Fetch every distinct parent folder in parallel.

    Returns a parentId -> Folder map. Parents that fail to load or are not
    folders are left out.
    """
    parent_ids = unique_parent_ids(fields)
    if not parent_ids:
        return {}

    results = await asyncio.gather(*(_fetch_folder(ghl, pid) for pid in parent_ids))
    return {pid: folder for pid, folder in zip(parent_ids, results) if folder is not None}
