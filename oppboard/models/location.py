"""Location model - one row per GHL sub-account (tenant)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Boolean, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin, TimestampMixin

DEFAULT_CARD_FIELDS = [
    "smartTags",
    "opportunityName",
    "businessName",
    "contact",
    "pipeline",
    "stage",
    "status",
]
DEFAULT_QUICK_ACTIONS = ["call", "sms", "email", "appointment", "tasks", "notes", "tags"]


def default_card_field_settings() -> dict[str, Any]:
    return {
        "layout": "default",
        "visibleFields": list(DEFAULT_CARD_FIELDS),
        "fieldOrder": list(DEFAULT_CARD_FIELDS),
    }


def default_quick_actions() -> dict[str, Any]:
    return {
        "visibleActions": list(DEFAULT_QUICK_ACTIONS),
        "actionOrder": list(DEFAULT_QUICK_ACTIONS),
    }


class Location(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "location"

    location_id: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    api_key: Mapped[str] = mapped_column(String(500), default="")
    name: Mapped[str] = mapped_column(String(200), default="")

    # Board preferences
    pagination_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    page_size: Mapped[int] = mapped_column(Integer, default=100)
    pagination_per_stage: Mapped[bool] = mapped_column(Boolean, default=False)
    sort_field: Mapped[str | None] = mapped_column(String(100), default=None)
    sort_order: Mapped[str] = mapped_column(String(4), default="desc")
    card_field_settings: Mapped[dict[str, Any]] = mapped_column(
        JSON, default=default_card_field_settings
    )
    quick_actions: Mapped[dict[str, Any]] = mapped_column(JSON, default=default_quick_actions)

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def __repr__(self) -> str:
        return f"<Location {self.location_id!r}>"
