"""PlayFab Client API over HTTPS.

Thin JSON transport: each operation posts to ``/Client/<Operation>`` on the
title endpoint and unwraps the ``data`` envelope. Logins remember the
returned session ticket so later calls can send ``X-Authorization``.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import ConfigurationError, RequestType, ServiceSettings
from ..models import (
    AddUsernamePasswordResult,
    GetPlayerCombinedInfoRequestParams,
    LoginResult,
    PlayFabError,
    StatisticUpdate,
    UpdatePlayerStatisticsResult,
    UpdateUserTitleDisplayNameResult,
)
from .base import BaseBackendClient, PlayFabApiError

logger = logging.getLogger(__name__)

SDK_HEADER_VALUE = "gameservice-python-1.0"
DEFAULT_CONNECT_TIMEOUT = 10.0

# PlayFab SDK error codes for failures that never reached the service.
CONNECTION_ERROR_CODE = 2
JSON_PARSE_ERROR_CODE = 3

ModelT = TypeVar("ModelT", bound=BaseModel)


def _configuration_error(exc: ConfigurationError) -> PlayFabError:
    return PlayFabError.local(str(exc), error="InvalidConfiguration")


def _malformed(operation: str, status_code: int) -> PlayFabError:
    return PlayFabError(
        http_code=status_code,
        error="JsonParseError",
        error_code=JSON_PARSE_ERROR_CODE,
        error_message=f"Malformed response from PlayFab {operation}",
    )


def _decode(operation: str, model: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """Validate the ``data`` of a successful response into ``model``."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error(f"PlayFab {operation} returned unexpected data: {e}")
        raise PlayFabApiError(_malformed(operation, 200)) from e


class PlayFabClient(BaseBackendClient):
    """PlayFab Client API implementation backed by ``httpx.AsyncClient``.

    :param settings: Title settings (endpoint, timeouts, enabled surfaces)
    :type settings: ServiceSettings
    :param transport: Optional httpx transport, required for
        ``RequestType.CUSTOM``
    :type transport: Optional[httpx.AsyncBaseTransport]
    """

    def __init__(
        self,
        settings: ServiceSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if settings.request_type == RequestType.CUSTOM and transport is None:
            raise ConfigurationError(
                "request_type 'custom' requires a transport to be supplied"
            )
        self.settings = settings
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.session_ticket: Optional[str] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                transport=self._transport,
                timeout=httpx.Timeout(
                    self.settings.request_timeout, connect=DEFAULT_CONNECT_TIMEOUT
                ),
                headers={
                    "Content-Type": "application/json",
                    "X-PlayFabSDK": SDK_HEADER_VALUE,
                },
            )
        return self._client

    async def _post(
        self, operation: str, payload: Dict[str, Any], *, authenticated: bool = False
    ) -> Dict[str, Any]:
        """Post ``payload`` to ``/Client/<operation>`` and return ``data``."""
        if not self.settings.enable_client_api:
            raise PlayFabApiError(
                PlayFabError.local(
                    f"Client API is disabled in settings, cannot call {operation}",
                    error="APIClientDisabled",
                )
            )

        headers = {}
        if authenticated:
            if not self.session_ticket:
                raise PlayFabApiError(
                    PlayFabError.local(
                        f"{operation} requires a logged in player",
                        error="NotAuthenticated",
                        error_code=1074,
                    )
                )
            headers["X-Authorization"] = self.session_ticket

        try:
            client = self._get_client()
        except ConfigurationError as e:
            raise PlayFabApiError(_configuration_error(e)) from e

        started = time.perf_counter()
        try:
            response = await client.post(f"/Client/{operation}", json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"PlayFab {operation} request failed: {e}")
            raise PlayFabApiError(
                PlayFabError(
                    error="ConnectionError",
                    error_code=CONNECTION_ERROR_CODE,
                    error_message=f"Could not reach PlayFab: {e}",
                )
            ) from e
        finally:
            if self.settings.enable_request_times_api:
                elapsed_ms = (time.perf_counter() - started) * 1000
                logger.info(f"PlayFab {operation} took {elapsed_ms:.1f} ms")

        malformed = _malformed(operation, response.status_code)
        try:
            body = response.json()
        except ValueError as e:
            raise PlayFabApiError(malformed) from e
        if not isinstance(body, dict):
            raise PlayFabApiError(malformed)

        if response.status_code != 200 or "errorCode" in body:
            try:
                error = PlayFabError.model_validate(body)
            except ValidationError:
                error = PlayFabError(
                    http_code=response.status_code,
                    error_message=str(body),
                )
            logger.debug(f"PlayFab {operation} returned error {error}")
            raise PlayFabApiError(error)

        data = body.get("data") or {}
        logger.debug(f"PlayFab {operation} succeeded")
        return data

    def _login_payload(
        self,
        create_account: Optional[bool],
        info_request_parameters: Optional[GetPlayerCombinedInfoRequestParams],
        **fields: Any,
    ) -> Dict[str, Any]:
        try:
            title_id = self.settings.require_title_id()
        except ConfigurationError as e:
            raise PlayFabApiError(_configuration_error(e)) from e

        payload: Dict[str, Any] = {"TitleId": title_id}
        payload.update({k: v for k, v in fields.items() if v is not None})
        if create_account is not None:
            payload["CreateAccount"] = create_account
        if info_request_parameters is not None:
            payload["InfoRequestParameters"] = info_request_parameters.to_wire()
        return payload

    async def _login(self, operation: str, payload: Dict[str, Any]) -> LoginResult:
        data = await self._post(operation, payload)
        result = _decode(operation, LoginResult, data)
        if result.session_ticket:
            self.session_ticket = result.session_ticket
        return result

    async def login_with_custom_id(
        self, custom_id, create_account=True, info_request_parameters=None
    ) -> LoginResult:
        return await self._login(
            "LoginWithCustomID",
            self._login_payload(create_account, info_request_parameters, CustomId=custom_id),
        )

    async def login_with_android_device_id(
        self,
        android_device_id,
        android_device="",
        os="",
        create_account=True,
        info_request_parameters=None,
    ) -> LoginResult:
        return await self._login(
            "LoginWithAndroidDeviceID",
            self._login_payload(
                create_account,
                info_request_parameters,
                AndroidDeviceId=android_device_id,
                AndroidDevice=android_device or None,
                OS=os or None,
            ),
        )

    async def login_with_ios_device_id(
        self,
        device_id,
        device_model="",
        os="",
        create_account=True,
        info_request_parameters=None,
    ) -> LoginResult:
        return await self._login(
            "LoginWithIOSDeviceID",
            self._login_payload(
                create_account,
                info_request_parameters,
                DeviceId=device_id,
                DeviceModel=device_model or None,
                OS=os or None,
            ),
        )

    async def login_with_email_address(
        self, email, password, info_request_parameters=None
    ) -> LoginResult:
        return await self._login(
            "LoginWithEmailAddress",
            self._login_payload(
                None, info_request_parameters, Email=email, Password=password
            ),
        )

    async def login_with_facebook(
        self, access_token, create_account=True, info_request_parameters=None
    ) -> LoginResult:
        return await self._login(
            "LoginWithFacebook",
            self._login_payload(create_account, info_request_parameters, AccessToken=access_token),
        )

    async def login_with_google_account(
        self, server_auth_code, create_account=True, info_request_parameters=None
    ) -> LoginResult:
        return await self._login(
            "LoginWithGoogleAccount",
            self._login_payload(
                create_account, info_request_parameters, ServerAuthCode=server_auth_code
            ),
        )

    async def login_with_apple(
        self, identity_token, create_account=True, info_request_parameters=None
    ) -> LoginResult:
        return await self._login(
            "LoginWithApple",
            self._login_payload(
                create_account, info_request_parameters, IdentityToken=identity_token
            ),
        )

    async def add_username_password(self, username, email, password) -> AddUsernamePasswordResult:
        data = await self._post(
            "AddUsernamePassword",
            {"Username": username, "Email": email, "Password": password},
            authenticated=True,
        )
        return _decode("AddUsernamePassword", AddUsernamePasswordResult, data)

    async def link_custom_id(self, custom_id, force_link=False) -> Dict[str, Any]:
        return await self._post(
            "LinkCustomID",
            {"CustomId": custom_id, "ForceLink": force_link},
            authenticated=True,
        )

    async def unlink_custom_id(self, custom_id) -> Dict[str, Any]:
        return await self._post("UnlinkCustomID", {"CustomId": custom_id}, authenticated=True)

    async def unlink_android_device_id(self, android_device_id) -> Dict[str, Any]:
        return await self._post(
            "UnlinkAndroidDeviceID",
            {"AndroidDeviceId": android_device_id},
            authenticated=True,
        )

    async def unlink_ios_device_id(self, device_id) -> Dict[str, Any]:
        return await self._post("UnlinkIOSDeviceID", {"DeviceId": device_id}, authenticated=True)

    async def update_user_title_display_name(self, display_name) -> UpdateUserTitleDisplayNameResult:
        data = await self._post(
            "UpdateUserTitleDisplayName",
            {"DisplayName": display_name},
            authenticated=True,
        )
        return _decode("UpdateUserTitleDisplayName", UpdateUserTitleDisplayNameResult, data)

    async def update_player_statistics(
        self, statistics: List[StatisticUpdate]
    ) -> UpdatePlayerStatisticsResult:
        data = await self._post(
            "UpdatePlayerStatistics",
            {
                "Statistics": [
                    s.model_dump(by_alias=True, exclude_none=True) for s in statistics
                ]
            },
            authenticated=True,
        )
        return _decode("UpdatePlayerStatistics", UpdatePlayerStatisticsResult, data)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
