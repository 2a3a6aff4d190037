"""Opportunity form, filter and result schemas."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

OpportunityStatus = Literal["open", "won", "lost", "abandoned"]


class OpportunityForm(BaseModel):
    """A create/update submission from the board.

    Presence matters: a key left out of the submission is absent from
    ``model_fields_set`` and never overwrites stored or remote values.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    pipeline_id: str | None = Field(None, alias="pipelineId")
    pipeline_stage_id: str | None = Field(None, alias="pipelineStageId")
    status: OpportunityStatus | None = None
    monetary_value: float | None = Field(None, alias="monetaryValue")
    assigned_to: str | None = Field(None, alias="assignedTo")
    source: str | None = None
    contact_id: str | None = Field(None, alias="contactId")
    contact_name: str | None = Field(None, alias="contactName")
    contact_email: str | None = Field(None, alias="contactEmail")
    contact_phone: str | None = Field(None, alias="contactPhone")
    contact_tags: list[str] | None = Field(None, alias="contactTags")
    followers: list[str] | None = None
    additional_contacts: list[Any] | None = Field(None, alias="additionalContacts")
    custom_fields: list[dict[str, Any]] | None = Field(None, alias="customFields")

    @field_validator("monetary_value", mode="before")
    @classmethod
    def _blank_value(cls, v):
        if v == "":
            return None
        return v

    def has(self, field: str) -> bool:
        return field in self.model_fields_set


class StatusUpdate(BaseModel):
    status: OpportunityStatus


class OpportunityFilters(BaseModel):
    pipeline_id: str | None = None
    pipeline_stage_id: str | None = None
    status: str | None = None
    search: str | None = None


class Pagination(BaseModel):
    page: int = Field(1, ge=1)
    limit: int | None = Field(None, ge=1, le=1000)
    sort_field: str | None = None
    sort_order: Literal["asc", "desc"] | None = None
    # Per-stage mode: page number keyed by stage id (missing stages start at 1)
    stage_pages: dict[str, int] = {}


class PageMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total: int
    page: int
    limit: int
    total_pages: int = Field(alias="totalPages")


class OpportunityPage(BaseModel):
    opportunities: list[dict[str, Any]]
    meta: PageMeta


class StagePages(BaseModel):
    stages: dict[str, OpportunityPage]


class WriteOutcome(BaseModel):
    """Primary result of a multi-step write plus any non-fatal warnings."""

    opportunity: dict[str, Any]
    warnings: list[str] = []
