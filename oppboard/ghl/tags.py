"""Tags API - location tag listing for GHL."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import GHLClient


class TagsAPI:
    def __init__(self, client: "GHLClient"):
        self._client = client

    async def list(self) -> dict[str, Any]:
        """List all tags for location.

        Returns:
            {"tags": [{"id": ..., "name": ...}, ...]}
        """
        return await self._client._get(f"/locations/{self._client.location_id}/tags")
