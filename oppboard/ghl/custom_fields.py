"""Custom Fields API - field and folder definitions for GHL."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import GHLClient

FIELD_MODELS = ("opportunity", "contact")


class CustomFieldsAPI:
    """Custom field definitions for a location.

    The list endpoint only returns leaf fields; folders must be fetched one
    by one through get().
    """

    def __init__(self, client: "GHLClient"):
        self._client = client

    async def list(self, model: str = "opportunity") -> dict[str, Any]:
        """List custom field definitions for a model.

        Returns:
            {"customFields": [{"id", "name", "fieldKey", "dataType", "parentId", ...}]}
        """
        if model not in FIELD_MODELS:
            raise ValueError(f"Unknown custom field model: {model!r}")
        return await self._client._get(
            f"/locations/{self._client.location_id}/customFields", model=model
        )

    async def get(self, field_id: str) -> dict[str, Any]:
        """Get one definition; folders come back with documentType == "folder".

        Returns:
            {"customField": {"id", "name", "documentType", "position", "standard", ...}}
        """
        return await self._client._get(
            f"/locations/{self._client.location_id}/customFields/{field_id}"
        )
