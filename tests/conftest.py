"""Shared fixtures: an in-memory backend and an event recorder."""

from typing import Any, Dict, List, Optional, Tuple

import pytest

from gameservice.auth import AuthService, DesktopPlatform
from gameservice.client import BaseBackendClient, PlayFabApiError
from gameservice.models import (
    AddUsernamePasswordResult,
    LoginResult,
    PlayFabError,
    UpdatePlayerStatisticsResult,
    UpdateUserTitleDisplayNameResult,
)
from gameservice.storage import MemoryPreferences


class FakeBackend(BaseBackendClient):
    """Records every call; fails the operations listed in ``failures``."""

    def __init__(self):
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.failures: Dict[str, PlayFabError] = {}
        self.login_result = LoginResult(
            playfab_id="PLAYER1", session_ticket="ticket-1", newly_created=True
        )
        self.closed = False

    async def _handle(self, name: str, result: Any, **kwargs) -> Any:
        self.calls.append((name, kwargs))
        if name in self.failures:
            raise PlayFabApiError(self.failures[name])
        return result

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def last_call(self, name: str) -> Optional[Dict[str, Any]]:
        for call_name, kwargs in reversed(self.calls):
            if call_name == name:
                return kwargs
        return None

    async def login_with_custom_id(self, custom_id, create_account=True, info_request_parameters=None):
        return await self._handle(
            "login_with_custom_id",
            self.login_result,
            custom_id=custom_id,
            create_account=create_account,
            info_request_parameters=info_request_parameters,
        )

    async def login_with_android_device_id(
        self, android_device_id, android_device="", os="", create_account=True, info_request_parameters=None
    ):
        return await self._handle(
            "login_with_android_device_id",
            self.login_result,
            android_device_id=android_device_id,
            android_device=android_device,
            os=os,
            create_account=create_account,
            info_request_parameters=info_request_parameters,
        )

    async def login_with_ios_device_id(
        self, device_id, device_model="", os="", create_account=True, info_request_parameters=None
    ):
        return await self._handle(
            "login_with_ios_device_id",
            self.login_result,
            device_id=device_id,
            device_model=device_model,
            os=os,
            create_account=create_account,
            info_request_parameters=info_request_parameters,
        )

    async def login_with_email_address(self, email, password, info_request_parameters=None):
        return await self._handle(
            "login_with_email_address",
            self.login_result,
            email=email,
            password=password,
            info_request_parameters=info_request_parameters,
        )

    async def login_with_facebook(self, access_token, create_account=True, info_request_parameters=None):
        return await self._handle(
            "login_with_facebook",
            self.login_result,
            access_token=access_token,
            create_account=create_account,
            info_request_parameters=info_request_parameters,
        )

    async def login_with_google_account(self, server_auth_code, create_account=True, info_request_parameters=None):
        return await self._handle(
            "login_with_google_account",
            self.login_result,
            server_auth_code=server_auth_code,
            create_account=create_account,
            info_request_parameters=info_request_parameters,
        )

    async def login_with_apple(self, identity_token, create_account=True, info_request_parameters=None):
        return await self._handle(
            "login_with_apple",
            self.login_result,
            identity_token=identity_token,
            create_account=create_account,
            info_request_parameters=info_request_parameters,
        )

    async def add_username_password(self, username, email, password):
        return await self._handle(
            "add_username_password",
            AddUsernamePasswordResult(username=username),
            username=username,
            email=email,
            password=password,
        )

    async def link_custom_id(self, custom_id, force_link=False):
        return await self._handle("link_custom_id", {}, custom_id=custom_id, force_link=force_link)

    async def unlink_custom_id(self, custom_id):
        return await self._handle("unlink_custom_id", {}, custom_id=custom_id)

    async def unlink_android_device_id(self, android_device_id):
        return await self._handle("unlink_android_device_id", {}, android_device_id=android_device_id)

    async def unlink_ios_device_id(self, device_id):
        return await self._handle("unlink_ios_device_id", {}, device_id=device_id)

    async def update_user_title_display_name(self, display_name):
        return await self._handle(
            "update_user_title_display_name",
            UpdateUserTitleDisplayNameResult(display_name=display_name),
            display_name=display_name,
        )

    async def update_player_statistics(self, statistics):
        return await self._handle(
            "update_player_statistics", UpdatePlayerStatisticsResult(), statistics=statistics
        )

    async def close(self):
        self.closed = True


class EventRecorder:
    """Subscribes to every channel of a service and keeps events in order."""

    def __init__(self, service: AuthService):
        self.events: List[Tuple[str, Any]] = []
        service.need_authentication_ui.subscribe(lambda: self.events.append(("need_ui", None)))
        service.login_succeeded.subscribe(lambda result: self.events.append(("success", result)))
        service.login_failed.subscribe(lambda error: self.events.append(("error", error)))
        service.display_name_updated.subscribe(lambda result: self.events.append(("display_name", result)))
        service.statistics_updated.subscribe(lambda result: self.events.append(("statistics", result)))

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.events]

    def payloads(self, kind: str) -> List[Any]:
        return [payload for event_kind, payload in self.events if event_kind == kind]


def backend_error(name: str = "InvalidParams", code: int = 1000, message: str = "bad request") -> PlayFabError:
    return PlayFabError(http_code=400, http_status="BadRequest", error=name, error_code=code, error_message=message)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def preferences():
    return MemoryPreferences()


@pytest.fixture
def service(backend, preferences):
    return AuthService(backend, preferences, DesktopPlatform())


@pytest.fixture
def recorder(service):
    return EventRecorder(service)


@pytest.fixture
def make_error():
    return backend_error
