"""Pipeline model - mirrored GHL pipeline with its stage list."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin, TimestampMixin, TenantMixin, GHLSyncMixin


class Pipeline(UUIDMixin, TimestampMixin, TenantMixin, GHLSyncMixin, Base):
    __tablename__ = "pipeline"
    __table_args__ = (
        UniqueConstraint("location_id", "ghl_id", name="uq_pipeline_location_ghl"),
    )

    name: Mapped[str] = mapped_column(String(200), default="")
    # [{id, name, position, showInFunnel, showInPieChart}], replaced wholesale on sync
    stages: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    def stage_ids(self) -> list[str]:
        ordered = sorted(self.stages or [], key=lambda s: s.get("position") or 0)
        return [s["id"] for s in ordered if s.get("id")]

    def __repr__(self) -> str:
        return f"<Pipeline {self.name!r}>"
