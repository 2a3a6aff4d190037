"""Base model classes and mixins for oppboard models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class UUIDMixin:
    """Adds a UUID primary key."""

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )


class TimestampMixin:
    """Adds created_at / updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class TenantMixin:
    """Adds the GHL location id that partitions every mirrored row.

    Rows reference their location by the remote id string, never by FK, so a
    mirror row can exist before (or after) its Location record.
    """

    location_id: Mapped[str] = mapped_column(String(100), index=True)


class GHLSyncMixin:
    """Adds GHL identity and sync tracking columns."""

    ghl_id: Mapped[str] = mapped_column(String(100), index=True)
    synced_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
