"""PlayFab authentication and settings for Python game clients."""

__version__ = "1.0.0"
