"""Tests for pipeline/opportunity sync into the local mirror."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from oppboard.models.location import Location
from oppboard.models.opportunity import Opportunity
from oppboard.models.pipeline import Pipeline
from oppboard.schemas.opportunity import OpportunityForm
from oppboard.services import opportunity_svc
from oppboard.sync import sync_engine
from oppboard.sync.upsert import dedupe_rows, upsert_rows

LOCATION_ID = "loc_test_123"


def _search_page(opps, meta=None):
    return {"opportunities": opps, "meta": meta or {}}


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


def test_dedupe_rows_last_wins():
    rows = [
        {"location_id": "l", "ghl_id": "a", "name": "first"},
        {"location_id": "l", "ghl_id": "b", "name": "other"},
        {"location_id": "l", "ghl_id": "a", "name": "second"},
    ]
    deduped = dedupe_rows(rows)
    assert len(deduped) == 2
    assert {r["name"] for r in deduped} == {"second", "other"}


@pytest.mark.asyncio
async def test_sync_pipelines_replaces_stage_list(db: AsyncSession, location: Location, ghl):
    ghl.opportunities.pipelines.return_value = {
        "pipelines": [{"id": "P1", "name": "Sales", "stages": [{"id": "s1", "name": "New"}]}]
    }
    await sync_engine.sync_pipelines(db, ghl, LOCATION_ID)

    ghl.opportunities.pipelines.return_value = {
        "pipelines": [{
            "id": "P1",
            "name": "Sales v2",
            "stages": [{"id": "s2", "name": "Qualified", "position": 0}, {"id": "s3", "name": "Won", "position": 1}],
        }]
    }
    pipelines = await sync_engine.sync_pipelines(db, ghl, LOCATION_ID)

    assert len(pipelines) == 1
    assert pipelines[0].name == "Sales v2"
    assert pipelines[0].stage_ids() == ["s2", "s3"]
    assert await _count(db, Pipeline) == 1


@pytest.mark.asyncio
async def test_sync_all_is_idempotent(db: AsyncSession, location: Location, ghl):
    ghl.opportunities.pipelines.return_value = {"pipelines": []}
    opps = [
        {"id": "o1", "name": "One", "pipelineId": "P1", "customFields": [{"id": "cf1", "fieldValueString": "x"}]},
        {"id": "o2", "name": "Two", "pipelineId": "P1", "monetaryValue": None},
    ]
    ghl.opportunities.search.return_value = _search_page(opps)

    first = await sync_engine.sync_all_opportunities(db, ghl, LOCATION_ID)
    ghl.opportunities.search.return_value = _search_page([{**opps[0], "name": "One renamed"}, opps[1]])
    second = await sync_engine.sync_all_opportunities(db, ghl, LOCATION_ID)

    assert first.synced == 2
    assert second.synced == 2
    assert second.errors == 0
    assert await _count(db, Opportunity) == 2

    o1 = await opportunity_svc.get_opportunity(db, LOCATION_ID, "o1")
    assert o1["name"] == "One renamed"
    assert o1["customFields"] == [{"id": "cf1", "key": "", "field_value": "x"}]
    o2 = await opportunity_svc.get_opportunity(db, LOCATION_ID, "o2")
    assert o2["monetaryValue"] == 0


@pytest.mark.asyncio
async def test_created_then_synced_is_one_row(db: AsyncSession, location: Location, ghl):
    created = {"id": "new1", "name": "Deal", "pipelineId": "P1"}
    ghl.opportunities.create.return_value = {"opportunity": created}
    await opportunity_svc.create_opportunity(
        db, ghl, LOCATION_ID, OpportunityForm(name="Deal", pipeline_id="P1")
    )

    ghl.opportunities.search.return_value = _search_page([created])
    await sync_engine.sync_all_opportunities(db, ghl, LOCATION_ID, with_pipelines=False)

    stmt = select(func.count()).select_from(Opportunity).where(
        Opportunity.location_id == LOCATION_ID, Opportunity.ghl_id == "new1"
    )
    assert (await db.execute(stmt)).scalar_one() == 1


@pytest.mark.asyncio
async def test_sync_skips_items_without_id(db: AsyncSession, location: Location, ghl):
    ghl.opportunities.search.return_value = _search_page([{"id": "o1", "name": "ok"}, {"name": "no id"}])

    result = await sync_engine.sync_all_opportunities(db, ghl, LOCATION_ID, with_pipelines=False)

    assert result.total == 2
    assert result.synced == 1
    assert result.errors == 1


@pytest.mark.asyncio
async def test_failed_batch_retries_per_row(db: AsyncSession, location: Location):
    rows = [
        {"location_id": LOCATION_ID, "ghl_id": f"o{i}", "name": f"Opp {i}"}
        for i in range(5)
    ]

    async def flaky_upsert(session, model, batch):
        if any(row["ghl_id"] == "o2" for row in batch):
            raise OperationalError("INSERT", {}, Exception("constraint exploded"))
        return await upsert_rows(session, model, batch)

    with patch.object(sync_engine, "upsert_rows", flaky_upsert):
        outcome = await sync_engine.upsert_opportunity_batches(db, rows, batch_size=2)

    assert outcome.succeeded == 4
    assert outcome.failed == 1
    assert outcome.failed_batches == [1]
    assert outcome.has_failures
    assert outcome.messages[0].startswith("o2: ")
    stored = (await db.execute(select(Opportunity.ghl_id))).scalars().all()
    assert sorted(stored) == ["o0", "o1", "o3", "o4"]


@pytest.mark.asyncio
async def test_malformed_record_does_not_block_its_batch(db: AsyncSession, location: Location, ghl):
    ghl.opportunities.search.return_value = _search_page([
        {"id": "o1", "name": "Good one"},
        {"id": "o2", "name": {"bad": "shape"}},
        {"id": "o3", "name": "Good two"},
    ])

    result = await sync_engine.sync_all_opportunities(db, ghl, LOCATION_ID, with_pipelines=False)

    assert result.total == 3
    assert result.synced == 2
    assert result.errors == 1
    assert result.batches.failed_batches == [0]
    names = (await db.execute(select(Opportunity.name).order_by(Opportunity.ghl_id))).scalars().all()
    assert names == ["Good one", "Good two"]
    assert outcome.failed == 2
    assert outcome.failed_batches == [1]
    assert outcome.has_failures
    assert await _count(db, Opportunity) == 3


@pytest.mark.asyncio
async def test_sync_is_tenant_scoped(db: AsyncSession, location: Location, ghl):
    ghl.opportunities.search.return_value = _search_page([{"id": "shared", "name": "Mine"}])
    await sync_engine.sync_all_opportunities(db, ghl, LOCATION_ID, with_pipelines=False)
    await sync_engine.sync_all_opportunities(db, ghl, "loc_other", with_pipelines=False)

    assert await _count(db, Opportunity) == 2
