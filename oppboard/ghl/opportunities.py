"""Opportunities API - pipeline, opportunity and follower operations for GHL."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import GHLClient

VALID_STATUSES = ("open", "won", "lost", "abandoned")


class OpportunitiesAPI:
    """Opportunities/Pipelines API for GoHighLevel.

    Usage:
        async with GHLClient(config) as ghl:
            pipelines = await ghl.opportunities.pipelines()
            page = await ghl.opportunities.search(limit=100)
            await ghl.opportunities.update_status("opp_id", "won")
    """

    def __init__(self, client: "GHLClient"):
        self._client = client

    @property
    def _location_id(self) -> str:
        lid = self._client.config.location_id
        if not lid:
            raise ValueError("location_id required")
        return lid

    async def pipelines(self) -> dict[str, Any]:
        """List all pipelines for location.

        Returns:
            {"pipelines": [{"id": ..., "name": ..., "stages": [...]}, ...]}
        """
        return await self._client._get("/opportunities/pipelines", locationId=self._location_id)

    async def search(
        self,
        *,
        pipeline_id: str | None = None,
        pipeline_stage_id: str | None = None,
        status: str | None = None,
        page: int | None = None,
        limit: int | None = None,
        q: str | None = None,
        order: str | None = None,
        start_after: str | int | None = None,
        start_after_id: str | None = None,
    ) -> dict[str, Any]:
        """Search opportunities for the location.

        Returns:
            {"opportunities": [...], "meta": {"total", "startAfter", "startAfterId", ...}}
        """
        params: dict[str, Any] = {
            "location_id": self._location_id,
            "pipeline_id": pipeline_id or None,
            "pipeline_stage_id": pipeline_stage_id or None,
            "status": status or None,
            "page": page,
            "limit": limit,
            "q": q or None,
            "order": order or None,
        }
        if start_after is not None and start_after != "":
            params["startAfter"] = str(start_after)
        if start_after_id:
            params["startAfterId"] = start_after_id
        return await self._client._get("/opportunities/search", **params)

    async def get(self, opportunity_id: str) -> dict[str, Any]:
        """Get opportunity details.

        Returns:
            {"opportunity": {...}}
        """
        return await self._client._get(f"/opportunities/{opportunity_id}")

    async def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create an opportunity.

        Args:
            payload: GHL create body; locationId is filled in when missing

        Returns:
            {"opportunity": {...}}
        """
        data = {"locationId": self._location_id, **payload}
        return await self._client._post("/opportunities/", data)

    async def update(self, opportunity_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update an opportunity with a partial payload."""
        return await self._client._put(f"/opportunities/{opportunity_id}", payload)

    async def delete(self, opportunity_id: str) -> dict[str, Any]:
        """Delete an opportunity."""
        return await self._client._delete(f"/opportunities/{opportunity_id}")

    async def update_status(self, opportunity_id: str, status: str) -> dict[str, Any]:
        """Update only the status of an opportunity.

        Args:
            opportunity_id: The opportunity ID
            status: One of open, won, lost, abandoned
        """
        if status not in VALID_STATUSES:
            raise ValueError(f"Invalid status: {status!r}")
        return await self._client._put(
            f"/opportunities/{opportunity_id}/status", {"status": status}
        )

    async def add_followers(self, opportunity_id: str, followers: list[str]) -> dict[str, Any]:
        """Add follower user ids.

        Returns:
            {"followers": [...], "followersAdded": [...]}
        """
        return await self._client._post(
            f"/opportunities/{opportunity_id}/followers", {"followers": list(followers)}
        )

    async def remove_followers(
        self,
        opportunity_id: str,
        followers: list[str],
        remove_all: bool = False,
    ) -> dict[str, Any]:
        """Remove follower user ids.

        Returns:
            {"followers": [...], "followersRemoved": [...]}
        """
        params: dict[str, Any] = {}
        if remove_all:
            params["isRemoveAllFollowers"] = "true"
        return await self._client._delete(
            f"/opportunities/{opportunity_id}/followers",
            {"followers": list(followers)},
            **params,
        )
