"""GHL API Client - typed wrapper for the GoHighLevel public REST API.

One client is built per tenant from the credential stored on its Location
row; nothing about the tenant is read from the environment.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import httpx

from ..config import settings

if TYPE_CHECKING:
    from .contacts import ContactsAPI
    from .custom_fields import CustomFieldsAPI
    from .opportunities import OpportunitiesAPI
    from .tags import TagsAPI
    from .users import UsersAPI

log = logging.getLogger(__name__)


class RemoteApiError(Exception):
    """Raised for any non-2xx response from the GHL API."""

    def __init__(self, status_code: int, body: str, method: str = "", path: str = ""):
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path
        super().__init__(f"GHL API Error: {status_code} {method} {path} - {body}")


@dataclass
class GHLConfig:
    """Per-tenant GHL credentials."""

    token: str
    location_id: str


class GHLClient:
    """GoHighLevel API client with domain-specific sub-APIs.

    Usage:
        async with GHLClient(GHLConfig(token=api_key, location_id=loc_id)) as ghl:
            pipelines = await ghl.opportunities.pipelines()

    No retries happen here; every non-2xx response raises RemoteApiError.
    """

    REQUIRED_HEADERS = {
        "Version": settings.ghl_api_version,
    }

    def __init__(
        self,
        config: GHLConfig,
        *,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize GHL client.

        Args:
            config: GHLConfig with the tenant's token and location id
            base_url: Override for the API base URL
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.config = config
        self.base_url = base_url or settings.ghl_api_base
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        # Domain APIs (initialized on enter)
        self._opportunities: OpportunitiesAPI | None = None
        self._contacts: ContactsAPI | None = None
        self._users: UsersAPI | None = None
        self._tags: TagsAPI | None = None
        self._custom_fields: CustomFieldsAPI | None = None

    async def __aenter__(self) -> "GHLClient":
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.ghl_timeout_seconds,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.config.token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                **self.REQUIRED_HEADERS,
            },
        )

        from .contacts import ContactsAPI
        from .custom_fields import CustomFieldsAPI
        from .opportunities import OpportunitiesAPI
        from .tags import TagsAPI
        from .users import UsersAPI

        self._opportunities = OpportunitiesAPI(self)
        self._contacts = ContactsAPI(self)
        self._users = UsersAPI(self)
        self._tags = TagsAPI(self)
        self._custom_fields = CustomFieldsAPI(self)
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()

    # Domain API properties
    def _entered(self, api):
        if api is None:
            raise RuntimeError("GHLClient used outside its context. Use 'async with'.")
        return api

    @property
    def opportunities(self) -> "OpportunitiesAPI":
        """Pipelines, opportunities, status and followers."""
        return self._entered(self._opportunities)

    @property
    def contacts(self) -> "ContactsAPI":
        return self._entered(self._contacts)

    @property
    def users(self) -> "UsersAPI":
        return self._entered(self._users)

    @property
    def tags(self) -> "TagsAPI":
        return self._entered(self._tags)

    @property
    def custom_fields(self) -> "CustomFieldsAPI":
        """Field definitions and folders."""
        return self._entered(self._custom_fields)

    @property
    def location_id(self) -> str:
        return self.config.location_id

    # HTTP helpers
    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> dict[str, Any]:
        """Make an API request; raise RemoteApiError on any non-2xx status."""
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        response = await self._client.request(method, path, params=params or None, json=json)
        if not response.is_success:
            log.error(
                "GHL API error %s %s %s: %s",
                response.status_code, method, path, response.text,
            )
            raise RemoteApiError(response.status_code, response.text, method, path)
        if not response.content:
            return {}
        return response.json()

    async def _get(self, endpoint: str, **params) -> dict[str, Any]:
        """Make GET request."""
        return await self._request("GET", endpoint, params=params)

    async def _post(self, endpoint: str, data: dict | None = None) -> dict[str, Any]:
        """Make POST request."""
        return await self._request("POST", endpoint, json=data)

    async def _put(self, endpoint: str, data: dict | None = None) -> dict[str, Any]:
        """Make PUT request."""
        return await self._request("PUT", endpoint, json=data)

    async def _delete(
        self, endpoint: str, data: dict | None = None, **params
    ) -> dict[str, Any]:
        """Make DELETE request (GHL reads a JSON body on some DELETE routes)."""
        return await self._request("DELETE", endpoint, params=params, json=data)
