"""Contacts API - contact lookup and update for GHL."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import GHLClient


class ContactsAPI:
    """Contacts API for GoHighLevel."""

    def __init__(self, client: "GHLClient"):
        self._client = client

    async def list(self, query: str | None = None, limit: int = 100) -> dict[str, Any]:
        """List (or search) contacts in the location.

        Returns:
            {"contacts": [...], "total": N}
        """
        return await self._client._get(
            "/contacts/",
            locationId=self._client.location_id,
            query=query or None,
            limit=limit,
        )

    async def update(self, contact_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Update a contact.

        Accepted keys: firstName, lastName, name, email, phone, tags, customFields.
        """
        return await self._client._put(f"/contacts/{contact_id}", payload)
