from .settings import (
    ConfigurationError,
    RequestType,
    ServiceSettings,
    get_settings,
)

__all__ = ["ConfigurationError", "RequestType", "ServiceSettings", "get_settings"]
