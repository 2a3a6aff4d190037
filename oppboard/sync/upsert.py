"""Bulk upsert keyed by (location_id, ghl_id)."""

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

CONFLICT_COLUMNS = ("location_id", "ghl_id")
_NEVER_UPDATED = {"id", "created_at", *CONFLICT_COLUMNS}


def _insert_for(db: AsyncSession):
    dialect = db.bind.dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"No upsert support for dialect {dialect!r}")


def dedupe_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Collapse rows sharing a conflict key; the last one wins."""
    by_key: dict[tuple, dict[str, Any]] = {}
    for row in rows:
        by_key[tuple(row[c] for c in CONFLICT_COLUMNS)] = row
    return list(by_key.values())


async def upsert_rows(db: AsyncSession, model, rows: list[dict[str, Any]]) -> int:
    """INSERT ... ON CONFLICT (location_id, ghl_id) DO UPDATE for a batch.

    Every row must carry the same keys. No commit is performed here; callers
    batch commits. Returns the number of rows written.
    """
    if not rows:
        return 0

    batch = [{"id": uuid.uuid4(), **row} for row in dedupe_rows(rows)]
    insert = _insert_for(db)
    stmt = insert(model).values(batch)
    update_cols = [c for c in batch[0] if c not in _NEVER_UPDATED]
    set_ = {col: stmt.excluded[col] for col in update_cols}
    set_["updated_at"] = func.now()
    stmt = stmt.on_conflict_do_update(index_elements=list(CONFLICT_COLUMNS), set_=set_)
    await db.execute(stmt)
    return len(batch)
