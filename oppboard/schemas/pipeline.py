"""Pipeline schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class StageOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str = ""
    position: int = 0
    show_in_funnel: bool = Field(True, alias="showInFunnel")
    show_in_pie_chart: bool = Field(True, alias="showInPieChart")


class PipelineOut(BaseModel):
    id: str
    name: str
    stages: list[StageOut]
