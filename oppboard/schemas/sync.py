"""GHL sync schemas."""

from __future__ import annotations

from pydantic import BaseModel


class PartialSyncFailure(BaseModel):
    """Batch-level outcome of a bulk write; reported, never raised."""

    succeeded: int = 0
    failed: int = 0
    failed_batches: list[int] = []
    messages: list[str] = []

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


class OpportunitySyncResult(BaseModel):
    total: int = 0
    synced: int = 0
    errors: int = 0
    pipelines: int = 0
    batches: PartialSyncFailure = PartialSyncFailure()
