"""Location and board-preference schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CardLayout = Literal["default", "compact", "unlabeled"]


class CardFieldSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    layout: CardLayout = "default"
    visible_fields: list[str] = Field(default_factory=list, alias="visibleFields")
    field_order: list[str] = Field(default_factory=list, alias="fieldOrder")


class QuickActions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    visible_actions: list[str] = Field(default_factory=list, alias="visibleActions")
    action_order: list[str] = Field(default_factory=list, alias="actionOrder")


class LocationStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    location_id: str = Field(alias="locationId")
    name: str = ""
    has_api_key: bool = Field(False, alias="hasApiKey")


class LocationSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pagination_enabled: bool = Field(False, alias="paginationEnabled")
    page_size: int = Field(100, alias="pageSize")
    pagination_per_stage: bool = Field(False, alias="paginationPerStage")
    sort_field: str | None = Field(None, alias="sortField")
    sort_order: Literal["asc", "desc"] = Field("desc", alias="sortOrder")
    card_field_settings: CardFieldSettings = Field(alias="cardFieldSettings")
    quick_actions: QuickActions = Field(alias="quickActions")


class LocationSettingsUpdate(BaseModel):
    """Partial settings update; only submitted keys are written."""

    model_config = ConfigDict(populate_by_name=True)

    pagination_enabled: bool | None = Field(None, alias="paginationEnabled")
    page_size: int | None = Field(None, alias="pageSize", ge=1, le=1000)
    pagination_per_stage: bool | None = Field(None, alias="paginationPerStage")
    sort_field: str | None = Field(None, alias="sortField")
    sort_order: Literal["asc", "desc"] | None = Field(None, alias="sortOrder")
    card_field_settings: CardFieldSettings | None = Field(None, alias="cardFieldSettings")
    quick_actions: QuickActions | None = Field(None, alias="quickActions")


class ApiKeyIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(alias="apiKey")
