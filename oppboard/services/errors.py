"""Error taxonomy shared by the services and routers."""

from __future__ import annotations

import httpx

from ..ghl.client import RemoteApiError

REMOTE_ERRORS = (RemoteApiError, httpx.TransportError)


class OppboardError(Exception):
    """Base class for errors carrying a user-facing message."""

    def __init__(self, message: str, detail: str | None = None):
        self.message = message
        self.detail = detail
        super().__init__(message)


class GHLNotLinkedError(OppboardError):
    """Raised when a location has no stored GHL API key."""

    def __init__(self, location_id: str):
        self.location_id = location_id
        super().__init__("API key not found")


class CredentialInvalid(OppboardError):
    """The API key was rejected outright."""


class CredentialScopeInsufficient(OppboardError):
    """The API key is valid but cannot see this location."""


class RemoteUnreachable(OppboardError):
    """Network failure, 5xx, or any 4xx we do not classify."""


class RecordNotFound(OppboardError):
    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found")


def classify_remote_error(exc: Exception, location_id: str) -> OppboardError:
    """Map a gateway failure onto the user-facing taxonomy."""
    if isinstance(exc, RemoteApiError):
        body = exc.body or ""
        if exc.status_code == 401 or "Invalid JWT" in body:
            return CredentialInvalid("Invalid API key. Please check your credentials.")
        if exc.status_code == 403 or "does not have access" in body:
            return CredentialScopeInsufficient(
                f"This API key does not have access to location: {location_id}"
            )
    elif not isinstance(exc, httpx.TransportError):
        raise TypeError(f"Not a remote failure: {exc!r}") from exc
    return RemoteUnreachable("Could not connect to GoHighLevel. Please try again.", detail=str(exc))
