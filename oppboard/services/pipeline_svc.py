"""Pipeline service - local reads and remote refresh of pipelines."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.pipeline import Pipeline
from ..schemas.pipeline import PipelineOut, StageOut
from ..sync import sync_engine


async def list_pipelines(db: AsyncSession, location_id: str) -> list[Pipeline]:
    stmt = (
        select(Pipeline)
        .where(Pipeline.location_id == location_id)
        .order_by(Pipeline.name)
    )
    return list((await db.execute(stmt)).scalars().all())


async def get_pipeline(db: AsyncSession, location_id: str, ghl_id: str) -> Pipeline | None:
    stmt = select(Pipeline).where(
        Pipeline.location_id == location_id, Pipeline.ghl_id == ghl_id
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def sync_pipelines(db: AsyncSession, ghl, location_id: str) -> list[Pipeline]:
    return await sync_engine.sync_pipelines(db, ghl, location_id)


def pipeline_out(pipeline: Pipeline) -> PipelineOut:
    stages = sorted(pipeline.stages or [], key=lambda s: s.get("position") or 0)
    return PipelineOut(
        id=pipeline.ghl_id,
        name=pipeline.name,
        stages=[StageOut.model_validate(s) for s in stages],
    )
