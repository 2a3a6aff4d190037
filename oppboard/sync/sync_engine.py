"""Sync orchestrator - mirrors GHL pipelines and opportunities locally."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..models.opportunity import Opportunity
from ..models.pipeline import Pipeline
from ..schemas.sync import OpportunitySyncResult, PartialSyncFailure
from .cursor import fetch_all_opportunities
from .field_mapper import ghl_opportunity_to_local, ghl_pipeline_to_local
from .upsert import dedupe_rows, upsert_rows

log = logging.getLogger(__name__)


def _extract_items(resp: dict, key: str) -> list[dict]:
    raw = resp.get(key, []) if isinstance(resp, dict) else []
    return [item for item in raw if isinstance(item, dict)] if isinstance(raw, list) else []


# ── Pipelines ──────────────────────────────────────────────────────────────

async def sync_pipelines(db: AsyncSession, ghl, location_id: str) -> list[Pipeline]:
    """Replace every mirrored pipeline (and its stage list) with the remote copy."""
    resp = await ghl.opportunities.pipelines()
    now = datetime.now(timezone.utc)

    rows = []
    for item in _extract_items(resp, "pipelines"):
        ghl_id = item.get("id")
        if not ghl_id:
            continue
        rows.append({
            "location_id": location_id,
            "ghl_id": ghl_id,
            **ghl_pipeline_to_local(item),
            "synced_at": now,
        })

    await upsert_rows(db, Pipeline, rows)
    await db.commit()
    log.info("Synced %d pipelines for location %s", len(rows), location_id)

    stmt = (
        select(Pipeline)
        .where(Pipeline.location_id == location_id)
        .order_by(Pipeline.name)
        .execution_options(populate_existing=True)
    )
    return list((await db.execute(stmt)).scalars().all())


# ── Opportunities ──────────────────────────────────────────────────────────

def _opportunity_rows(
    items: list[dict], location_id: str, now: datetime
) -> tuple[list[dict], int]:
    rows = []
    skipped = 0
    for item in items:
        ghl_id = item.get("id")
        if not isinstance(ghl_id, str) or not ghl_id:
            skipped += 1
            continue
        rows.append({
            "location_id": location_id,
            "ghl_id": ghl_id,
            **ghl_opportunity_to_local(item),
            "synced_at": now,
        })
    return rows, skipped


async def _upsert_rows_one_by_one(db: AsyncSession, rows: list[dict], outcome: PartialSyncFailure) -> None:
    # Each row commits alone so a malformed record only costs itself.
    for row in rows:
        try:
            await upsert_rows(db, Opportunity, [row])
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            log.warning("Opportunity %s failed to upsert: %s", row["ghl_id"], exc)
            outcome.failed += 1
            outcome.messages.append(f"{row['ghl_id']}: {exc}")
            continue
        outcome.succeeded += 1


async def upsert_opportunity_batches(
    db: AsyncSession,
    rows: list[dict],
    batch_size: int | None = None,
) -> PartialSyncFailure:
    """Upsert rows in fixed-size batches, committing each one.

    A batch whose bulk statement fails is rolled back and retried row by row,
    so only the records that really fail are counted. Later batches still run.
    """
    batch_size = batch_size or settings.sync_batch_size
    outcome = PartialSyncFailure()

    for index, start in enumerate(range(0, len(rows), batch_size)):
        batch = dedupe_rows(rows[start:start + batch_size])
        try:
            written = await upsert_rows(db, Opportunity, batch)
            await db.commit()
        except SQLAlchemyError as exc:
            await db.rollback()
            log.error("Opportunity batch %d failed (%d rows), retrying per row: %s", index, len(batch), exc)
            outcome.failed_batches.append(index)
            await _upsert_rows_one_by_one(db, batch, outcome)
            continue
        outcome.succeeded += written

    return outcome


async def sync_all_opportunities(
    db: AsyncSession,
    ghl,
    location_id: str,
    pipeline_id: str | None = None,
    *,
    with_pipelines: bool = True,
) -> OpportunitySyncResult:
    """Full sync: pipelines first, then every opportunity behind the cursor.

    Remote enumeration failures propagate; per-batch write failures are
    counted in the result instead of raised.
    """
    result = OpportunitySyncResult()
    if with_pipelines:
        result.pipelines = len(await sync_pipelines(db, ghl, location_id))

    items = await fetch_all_opportunities(ghl, pipeline_id=pipeline_id)
    rows, skipped = _opportunity_rows(items, location_id, datetime.now(timezone.utc))
    if skipped:
        log.warning("Skipped %d opportunities without an id for location %s", skipped, location_id)

    batches = await upsert_opportunity_batches(db, rows)
    result.total = len(items)
    result.synced = batches.succeeded
    result.errors = batches.failed + skipped
    result.batches = batches

    log.info(
        "Opportunity sync for %s: total=%d synced=%d errors=%d",
        location_id, result.total, result.synced, result.errors,
    )
    return result
