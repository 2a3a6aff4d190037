"""Custom field definition cache (fields and their folders share one table)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Boolean, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, UUIDMixin, TimestampMixin, TenantMixin, GHLSyncMixin

FOLDER_DATA_TYPE = "FOLDER"


class CustomField(UUIDMixin, TimestampMixin, TenantMixin, GHLSyncMixin, Base):
    __tablename__ = "custom_field"
    __table_args__ = (
        UniqueConstraint("location_id", "ghl_id", name="uq_custom_field_location_ghl"),
    )

    name: Mapped[str] = mapped_column(String(200), default="")
    field_key: Mapped[str] = mapped_column(String(200), default="")
    data_type: Mapped[str] = mapped_column(String(50), default="")
    placeholder: Mapped[str] = mapped_column(String(500), default="")
    position: Mapped[int] = mapped_column(Integer, default=0)
    picklist_options: Mapped[list[Any]] = mapped_column(JSON, default=list)
    picklist_image_options: Mapped[list[Any]] = mapped_column(JSON, default=list)
    allow_custom_option: Mapped[bool] = mapped_column(Boolean, default=False)
    is_multi_file_allowed: Mapped[bool] = mapped_column(Boolean, default=False)
    max_file_limit: Mapped[int] = mapped_column(Integer, default=0)
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    field_model: Mapped[str] = mapped_column(String(20), default="opportunity", index=True)
    parent_id: Mapped[str] = mapped_column(String(100), default="")
    parent_name: Mapped[str] = mapped_column(String(200), default="")
    is_folder: Mapped[bool] = mapped_column(Boolean, default=False)

    def __repr__(self) -> str:
        kind = "Folder" if self.is_folder else "CustomField"
        return f"<{kind} {self.name!r}>"
