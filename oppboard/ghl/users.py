"""Users API - location team members for GHL."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import GHLClient


class UsersAPI:
    def __init__(self, client: "GHLClient"):
        self._client = client

    async def list(self) -> dict[str, Any]:
        """List users with access to the location.

        Returns:
            {"users": [{"id", "name", "firstName", "lastName", "email", ...}]}
        """
        return await self._client._get("/users/", locationId=self._client.location_id)
