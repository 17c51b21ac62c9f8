"""Capability provider interfaces.

The auth service never branches on the host platform itself. Instead it is
handed:

- PlatformProvider: device-bound silent login and unlink for the platform
  the game runs on (Android, iOS, desktop/editor)
- FacebookSession / GoogleSession / AppleSignIn: optional social sign-in
  capabilities; a missing capability means the strategy is not available
- ProviderConfig: configuration container for provider instances
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ...client import BaseBackendClient
from ...models import AppleIdCredential, GetPlayerCombinedInfoRequestParams, LoginResult


class AppleAuthError(Exception):
    """Raised when the platform Sign in with Apple flow fails."""


class PlatformProvider(ABC):
    """Device-bound login for one host platform.

    Implementations choose the PlayFab endpoint matching the platform and
    fill in device metadata. ``custom_id`` doubles as the device id so the
    account stays stable across reinstalls that keep preferences.
    """

    def __init__(self, config: Optional["ProviderConfig"] = None):
        config = config or ProviderConfig()
        self.device_model: str = config.get("device_model", "")
        self.operating_system: str = config.get("operating_system", "")

    @property
    @abstractmethod
    def platform(self) -> str:
        """Return the platform identifier (e.g. 'android', 'ios', 'desktop')."""
        pass

    @abstractmethod
    async def login(
        self,
        client: BaseBackendClient,
        custom_id: str,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams],
    ) -> LoginResult:
        """Log in with the device id, creating the account if needed."""
        pass

    @abstractmethod
    async def unlink(self, client: BaseBackendClient, custom_id: str) -> Dict[str, Any]:
        """Unlink the device id from the current account."""
        pass


class FacebookSession(ABC):
    """Facebook SDK state needed to exchange an access token."""

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        pass

    @property
    @abstractmethod
    def is_logged_in(self) -> bool:
        pass

    @property
    @abstractmethod
    def access_token(self) -> Optional[str]:
        pass


class GoogleSession(ABC):
    """Google Play Games state needed to exchange a server auth code."""

    @property
    @abstractmethod
    def server_auth_code(self) -> Optional[str]:
        pass


class AppleSignIn(ABC):
    """Native Sign in with Apple quick login."""

    @abstractmethod
    async def quick_login(self) -> AppleIdCredential:
        """Return the credential of an already authorized Apple ID.

        :raises AppleAuthError: when no credential can be obtained
        """
        pass


class ProviderConfig:
    """Configuration container for a provider instance.

    Provides both dictionary-style and attribute-style access to config
    values.
    """

    def __init__(self, **kwargs):
        self._config = kwargs

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._config:
            return self._config[name]
        raise AttributeError(f"Config has no attribute '{name}'")
