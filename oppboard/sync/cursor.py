"""Cursor walker for GHL endpoints paginated by startAfter/startAfterId."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from ..config import settings

log = logging.getLogger(__name__)

FetchPage = Callable[[int, Any, "str | None"], Awaitable[dict[str, Any]]]


def _extract_items(resp: dict, key: str) -> list[dict]:
    """Extract list items from a response key, handling wrapped payloads."""
    raw = resp.get(key, [])
    if isinstance(raw, list):
        return [item for item in raw if isinstance(item, dict)]
    if isinstance(raw, dict):
        nested = raw.get(key)
        if isinstance(nested, list):
            return [item for item in nested if isinstance(item, dict)]
    return []


def _next_cursor(resp: dict) -> tuple[Any, str] | None:
    """Return (startAfter, startAfterId) from response meta, or None."""
    meta = resp.get("meta")
    if not isinstance(meta, dict):
        return None
    start_after = meta.get("startAfter")
    start_after_id = meta.get("startAfterId")
    if start_after in (None, "") or not isinstance(start_after_id, str) or not start_after_id:
        if meta.get("nextPage"):
            # Offset-style paging is not followed; the walk ends here.
            log.warning(
                "GHL returned nextPage=%r without a cursor; stopping pagination",
                meta.get("nextPage"),
            )
        return None
    return start_after, start_after_id


async def walk_cursor(
    fetch_page: FetchPage,
    key: str,
    page_size: int = 100,
    max_pages: int = 2000,
) -> list[dict]:
    """Collect every item behind a startAfter/startAfterId cursor.

    ``fetch_page(limit, start_after, start_after_id)`` is called with no
    cursor for the first page. The walk stops on a page shorter than
    ``page_size``, on a response without a usable cursor, on a cursor that
    repeats, or after ``max_pages`` pages.
    """
    all_items: list[dict] = []
    seen_ids: set[str] = set()

    start_after: Any = None
    start_after_id: str | None = None

    for page_no in range(1, max_pages + 1):
        resp = await fetch_page(page_size, start_after, start_after_id)
        batch = _extract_items(resp, key)

        for item in batch:
            item_id = item.get("id", item.get("_id", ""))
            if item_id:
                if item_id in seen_ids:
                    continue
                seen_ids.add(item_id)
            all_items.append(item)

        if len(batch) < page_size:
            break

        cursor = _next_cursor(resp)
        if cursor is None:
            log.info("Full page %d without cursor metadata; treating as last page", page_no)
            break
        if cursor == (start_after, start_after_id):
            log.warning("GHL repeated cursor %r; stopping pagination", cursor)
            break

        start_after, start_after_id = cursor
    else:
        log.warning("Stopped pagination after max_pages=%d", max_pages)

    return all_items


async def fetch_all_opportunities(
    ghl,
    pipeline_id: str | None = None,
    page_size: int | None = None,
    max_pages: int | None = None,
) -> list[dict]:
    """Enumerate every opportunity in the client's location."""

    async def fetch_page(limit: int, start_after: Any, start_after_id: str | None) -> dict:
        return await ghl.opportunities.search(
            pipeline_id=pipeline_id,
            limit=limit,
            start_after=start_after,
            start_after_id=start_after_id,
        )

    return await walk_cursor(
        fetch_page,
        "opportunities",
        page_size=page_size or settings.sync_page_size,
        max_pages=max_pages or settings.sync_max_pages,
    )
