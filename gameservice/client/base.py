"""Backend client interface.

The auth service talks to PlayFab only through ``BaseBackendClient``. Every
operation is a coroutine that returns the decoded result or raises
``PlayFabApiError`` carrying the error payload.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models import (
    AddUsernamePasswordResult,
    GetPlayerCombinedInfoRequestParams,
    LoginResult,
    PlayFabError,
    StatisticUpdate,
    UpdatePlayerStatisticsResult,
    UpdateUserTitleDisplayNameResult,
)


class PlayFabApiError(Exception):
    """Raised when a backend call fails.

    :param error: Error payload (backend response or local precondition)
    :type error: PlayFabError
    """

    def __init__(self, error: PlayFabError):
        super().__init__(str(error))
        self.error = error


class BaseBackendClient(ABC):
    """Async PlayFab Client API surface used by the auth service."""

    # Logins
    @abstractmethod
    async def login_with_custom_id(
        self,
        custom_id: str,
        create_account: bool = True,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams] = None,
    ) -> LoginResult:
        pass

    @abstractmethod
    async def login_with_android_device_id(
        self,
        android_device_id: str,
        android_device: str = "",
        os: str = "",
        create_account: bool = True,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams] = None,
    ) -> LoginResult:
        pass

    @abstractmethod
    async def login_with_ios_device_id(
        self,
        device_id: str,
        device_model: str = "",
        os: str = "",
        create_account: bool = True,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams] = None,
    ) -> LoginResult:
        pass

    @abstractmethod
    async def login_with_email_address(
        self,
        email: str,
        password: str,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams] = None,
    ) -> LoginResult:
        pass

    @abstractmethod
    async def login_with_facebook(
        self,
        access_token: str,
        create_account: bool = True,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams] = None,
    ) -> LoginResult:
        pass

    @abstractmethod
    async def login_with_google_account(
        self,
        server_auth_code: str,
        create_account: bool = True,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams] = None,
    ) -> LoginResult:
        pass

    @abstractmethod
    async def login_with_apple(
        self,
        identity_token: str,
        create_account: bool = True,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams] = None,
    ) -> LoginResult:
        pass

    # Account linking
    @abstractmethod
    async def add_username_password(
        self, username: str, email: str, password: str
    ) -> AddUsernamePasswordResult:
        pass

    @abstractmethod
    async def link_custom_id(self, custom_id: str, force_link: bool = False) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def unlink_custom_id(self, custom_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def unlink_android_device_id(self, android_device_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def unlink_ios_device_id(self, device_id: str) -> Dict[str, Any]:
        pass

    # Player data
    @abstractmethod
    async def update_user_title_display_name(
        self, display_name: str
    ) -> UpdateUserTitleDisplayNameResult:
        pass

    @abstractmethod
    async def update_player_statistics(
        self, statistics: List[StatisticUpdate]
    ) -> UpdatePlayerStatisticsResult:
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release network resources."""
        pass
