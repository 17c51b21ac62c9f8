"""Backend clients for the PlayFab Client API."""

from .base import BaseBackendClient, PlayFabApiError
from .playfab import PlayFabClient

__all__ = ["BaseBackendClient", "PlayFabApiError", "PlayFabClient"]
