"""Platform providers for device-bound silent login."""

import logging
from typing import Any, Dict, Optional

from ...client import BaseBackendClient
from ...models import GetPlayerCombinedInfoRequestParams, LoginResult
from .base import PlatformProvider
from ..registry import register_platform

logger = logging.getLogger(__name__)


@register_platform("android")
class AndroidPlatform(PlatformProvider):
    """Android device login (``LoginWithAndroidDeviceID``)."""

    @property
    def platform(self) -> str:
        return "android"

    async def login(
        self,
        client: BaseBackendClient,
        custom_id: str,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams],
    ) -> LoginResult:
        logger.debug("Logging in with Android device id")
        return await client.login_with_android_device_id(
            android_device_id=custom_id,
            android_device=self.device_model,
            os=self.operating_system,
            create_account=True,
            info_request_parameters=info_request_parameters,
        )

    async def unlink(self, client: BaseBackendClient, custom_id: str) -> Dict[str, Any]:
        return await client.unlink_android_device_id(custom_id)


@register_platform("ios")
class IOSPlatform(PlatformProvider):
    """iOS device login (``LoginWithIOSDeviceID``)."""

    @property
    def platform(self) -> str:
        return "ios"

    async def login(
        self,
        client: BaseBackendClient,
        custom_id: str,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams],
    ) -> LoginResult:
        logger.debug("Logging in with iOS device id")
        return await client.login_with_ios_device_id(
            device_id=custom_id,
            device_model=self.device_model,
            os=self.operating_system,
            create_account=True,
            info_request_parameters=info_request_parameters,
        )

    async def unlink(self, client: BaseBackendClient, custom_id: str) -> Dict[str, Any]:
        return await client.unlink_ios_device_id(custom_id)


@register_platform("desktop")
class DesktopPlatform(PlatformProvider):
    """Desktop, editor and any other host: plain custom id login."""

    @property
    def platform(self) -> str:
        return "desktop"

    async def login(
        self,
        client: BaseBackendClient,
        custom_id: str,
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams],
    ) -> LoginResult:
        logger.debug("Logging in with custom id")
        return await client.login_with_custom_id(
            custom_id=custom_id,
            create_account=True,
            info_request_parameters=info_request_parameters,
        )

    async def unlink(self, client: BaseBackendClient, custom_id: str) -> Dict[str, Any]:
        return await client.unlink_custom_id(custom_id)
