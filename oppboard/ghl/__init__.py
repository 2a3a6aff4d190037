"""GoHighLevel API gateway."""

from .client import GHLClient, GHLConfig, RemoteApiError

__all__ = ["GHLClient", "GHLConfig", "RemoteApiError"]
