"""Opportunity model - the mirrored GHL deal record."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Boolean, Float, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin, TimestampMixin, TenantMixin, GHLSyncMixin


class Opportunity(UUIDMixin, TimestampMixin, TenantMixin, GHLSyncMixin, Base):
    __tablename__ = "opportunity"
    __table_args__ = (
        UniqueConstraint("location_id", "ghl_id", name="uq_opportunity_location_ghl"),
        Index("ix_opportunity_location_pipeline", "location_id", "pipeline_id"),
        Index("ix_opportunity_location_stage", "location_id", "pipeline_stage_id"),
        Index("ix_opportunity_location_status", "location_id", "status"),
    )

    name: Mapped[str] = mapped_column(String(300), default="")
    monetary_value: Mapped[float] = mapped_column(Float, default=0)
    # Pipeline/stage are remote ids, resolved by lookup (no FK)
    pipeline_id: Mapped[str | None] = mapped_column(String(100), default=None)
    pipeline_stage_id: Mapped[str | None] = mapped_column(String(100), default=None)
    assigned_to: Mapped[str] = mapped_column(String(100), default="")
    status: Mapped[str] = mapped_column(String(20), default="open")
    source: Mapped[str] = mapped_column(String(200), default="")
    contact_id: Mapped[str] = mapped_column(String(100), default="")

    # {id, name, companyName, email, phone, tags, followers}
    contact: Mapped[dict[str, Any] | None] = mapped_column(JSON, default=None)

    # Legacy flat contact columns; read for old rows, never written
    contact_name: Mapped[str | None] = mapped_column(String(300), default=None)
    contact_company_name: Mapped[str | None] = mapped_column(String(300), default=None)
    contact_email: Mapped[str | None] = mapped_column(String(300), default=None)
    contact_phone: Mapped[str | None] = mapped_column(String(50), default=None)
    contact_tags: Mapped[list[str] | None] = mapped_column(JSON, default=None)
    contact_followers: Mapped[list[str] | None] = mapped_column(JSON, default=None)

    additional_contacts: Mapped[list[Any]] = mapped_column(JSON, default=list)
    followers: Mapped[list[str]] = mapped_column(JSON, default=list)
    # Canonical [{id, key, field_value}]
    custom_fields: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    # Remote timestamps are kept as the ISO strings GHL returns
    last_status_change_at: Mapped[str] = mapped_column(String(40), default="")
    last_stage_change_at: Mapped[str] = mapped_column(String(40), default="")
    last_action_date: Mapped[str] = mapped_column(String(40), default="")
    is_attribute: Mapped[bool] = mapped_column(Boolean, default=False)
    internal_source: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    lost_reason_id: Mapped[str | None] = mapped_column(String(100), default=None)
    ghl_created_at: Mapped[str] = mapped_column(String(40), default="")
    ghl_updated_at: Mapped[str] = mapped_column(String(40), default="")

    def __repr__(self) -> str:
        return f"<Opportunity {self.name!r}>"
