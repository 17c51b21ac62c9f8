"""Player authentication against PlayFab.

``AuthService`` picks a login strategy from the persisted ``AuthType``,
issues one login call through the backend client, caches the resulting
identity and publishes exactly one of need-UI / login succeeded / login
failed for each ``authenticate()`` call.

Recommended flow:
1. Log in silently (device or custom id) the first time
2. Offer a recoverable login (email, social) so the account survives
   a lost device
3. Only ask for a username and password when the player wants one
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional, Set, Union

import httpx

from ..client import BaseBackendClient, PlayFabApiError, PlayFabClient
from ..config import ServiceSettings
from ..models import (
    AuthType,
    LoginResult,
    PlayFabError,
    StatisticUpdate,
    UpdatePlayerStatisticsResult,
    UpdateUserTitleDisplayNameResult,
)
from ..storage import JsonFilePreferences, MemoryPreferences, PreferenceStore
from .events import EventChannel, LoginSink, ResultHandler
from .providers.base import (
    AppleAuthError,
    AppleSignIn,
    FacebookSession,
    GoogleSession,
    PlatformProvider,
)
from .providers.platforms import DesktopPlatform
from .registry import create_platform

logger = logging.getLogger(__name__)

LOGIN_REMEMBER_KEY = "PLAYFAB_LOGIN_REMEMBER"
AUTH_TYPE_KEY = "PLAYFAB_AUTH_TYPE"
CUSTOM_ID_STORE_KEY = "PLAYFAB_CUSTOM_ID_AUTH"
APPLE_USER_ID_KEY = "APPLE_USER_ID"

SILENT_AUTH_FAILED_MESSAGE = "Silent Authentication by device failed"


class AuthService:
    """Login coordinator for one player.

    Construct one per player session and hand it to whoever needs the
    cached identity. Nothing here is global.

    Shared state is only mutated when a backend call completes. Overlapping
    ``authenticate()`` calls are not serialized and may race on the
    persisted flags.

    :param client: Backend client used for every outbound call
    :type client: BaseBackendClient
    :param preferences: Store for remember-me, auth type and custom id
    :type preferences: PreferenceStore
    :param platform: Device login capability for the host platform
    :type platform: Optional[PlatformProvider]
    :param settings: Title settings, source of default info parameters
    :type settings: Optional[ServiceSettings]
    """

    def __init__(
        self,
        client: BaseBackendClient,
        preferences: PreferenceStore,
        platform: Optional[PlatformProvider] = None,
        settings: Optional[ServiceSettings] = None,
        *,
        facebook: Optional[FacebookSession] = None,
        google: Optional[GoogleSession] = None,
        apple: Optional[AppleSignIn] = None,
    ):
        self.settings = settings or ServiceSettings()
        self.client = client
        self.preferences = preferences
        self.platform = platform or DesktopPlatform()
        self.facebook = facebook
        self.google = google
        self.apple = apple

        # Inputs supplied by the login UI.
        self.email = ""
        self.username = ""
        self.password = ""
        self.auth_ticket = ""
        self.info_request_params = self.settings.info_request_params.model_copy()
        self.force_link = False

        self.is_logged_in = False
        self.is_request_completed = False
        self.player_id: Optional[str] = None
        self.session_ticket: Optional[str] = None
        self.identity_token: Optional[bytes] = None

        self.need_authentication_ui: EventChannel[None] = EventChannel("need_authentication_ui")
        self.login_succeeded: EventChannel[LoginResult] = EventChannel("login_succeeded")
        self.login_failed: EventChannel[PlayFabError] = EventChannel("login_failed")
        self.display_name_updated: EventChannel[UpdateUserTitleDisplayNameResult] = EventChannel(
            "display_name_updated"
        )
        self.statistics_updated: EventChannel[UpdatePlayerStatisticsResult] = EventChannel(
            "statistics_updated"
        )

        self._broadcast = LoginSink(self.login_succeeded, self.login_failed)
        self._background: Set[asyncio.Task] = set()
        self._strategies: Dict[AuthType, Callable[[], Awaitable[None]]] = {
            AuthType.NONE: self._request_authentication_ui,
            AuthType.SILENT: self._authenticate_silently,
            AuthType.USERNAME_AND_PASSWORD: self._authenticate_username_password,
            AuthType.EMAIL_AND_PASSWORD: self._authenticate_email_password,
            AuthType.REGISTER_PLAYFAB_ACCOUNT: self._add_account_and_password,
            AuthType.FACEBOOK: self._authenticate_facebook,
            AuthType.GOOGLE: self._authenticate_google,
            AuthType.APPLE: self._attempt_quick_login_apple,
        }

    # Persisted state
    @property
    def remember_me(self) -> bool:
        return self.preferences.get_bool(LOGIN_REMEMBER_KEY, False)

    @remember_me.setter
    def remember_me(self, value: bool) -> None:
        self.preferences.set_bool(LOGIN_REMEMBER_KEY, value)

    @property
    def auth_type(self) -> AuthType:
        stored = self.preferences.get_int(AUTH_TYPE_KEY, int(AuthType.NONE))
        try:
            return AuthType(stored)
        except ValueError:
            logger.warning(f"Unknown stored auth type {stored}, treating as NONE")
            return AuthType.NONE

    @auth_type.setter
    def auth_type(self, value: Union[AuthType, int]) -> None:
        self.preferences.set_int(AUTH_TYPE_KEY, int(AuthType(value)))

    @property
    def custom_id(self) -> str:
        """Stable local identifier, generated and persisted on first read."""
        custom_id = self.preferences.get_string(CUSTOM_ID_STORE_KEY, "")
        if not custom_id:
            custom_id = uuid.uuid4().hex
            self.preferences.set_string(CUSTOM_ID_STORE_KEY, custom_id)
            logger.debug("Generated new custom id")
        return custom_id

    @custom_id.setter
    def custom_id(self, value: str) -> None:
        self.preferences.set_string(CUSTOM_ID_STORE_KEY, value)

    def clear_data(self) -> None:
        """Forget remember-me and the custom id. The auth type is kept."""
        self.preferences.delete_key(LOGIN_REMEMBER_KEY)
        self.preferences.delete_key(CUSTOM_ID_STORE_KEY)

    def reset(self) -> None:
        """Return to "not authenticated" without touching persisted values."""
        self.is_logged_in = False
        self.is_request_completed = False

    # Dispatch
    async def authenticate(self, auth_type: Optional[Union[AuthType, int]] = None) -> None:
        """Run the login strategy for ``auth_type`` (or the persisted one).

        Passing a type persists it before dispatching.
        """
        if auth_type is not None:
            self.auth_type = auth_type

        current = self.auth_type
        logger.info(f"Authenticating with {current.name}")
        await self._strategies[current]()

    async def _request_authentication_ui(self) -> None:
        if not await self.need_authentication_ui.emit():
            logger.warning("Authentication UI requested but nothing is subscribed")

    # Silent / device
    async def _authenticate_silently(self) -> None:
        await self.login_silently()

    async def login_silently(self, on_result: Optional[ResultHandler] = None) -> Optional[LoginResult]:
        """Log in with the device/custom id, creating the account if needed.

        With ``on_result`` the outcome goes to that handler only (None on
        failure); otherwise to ``login_succeeded`` / ``login_failed``.
        """
        sink = LoginSink(self.login_succeeded, self.login_failed, on_result)
        try:
            if self.settings.use_custom_id_as_default:
                result = await self.client.login_with_custom_id(
                    custom_id=self.custom_id,
                    create_account=True,
                    info_request_parameters=self.info_request_params,
                )
            else:
                result = await self.platform.login(
                    self.client, self.custom_id, self.info_request_params
                )
        except PlayFabApiError as exc:
            self._set_error_info()
            await sink.failure(exc.error)
            return None

        self._set_result_info(result)
        await sink.success(result)
        return result

    async def _authenticate_username_password(self) -> None:
        # TODO: decide whether this should log in with LoginWithPlayFab or be removed from AuthType.
        logger.warning("Username and password login is not supported; nothing to do")

    # Email / password
    async def _authenticate_email_password(self) -> None:
        has_credentials = bool(self.email or self.password)

        if self.remember_me and not has_credentials:
            # Resume through the custom id linked by an earlier email login.
            await self._exchange_for_session(
                self.client.login_with_custom_id(
                    custom_id=self.custom_id,
                    create_account=True,
                    info_request_parameters=self.info_request_params,
                )
            )
            return

        if not self.remember_me and not has_credentials:
            await self._request_authentication_ui()
            return

        try:
            result = await self.client.login_with_email_address(
                email=self.email,
                password=self.password,
                info_request_parameters=self.info_request_params,
            )
        except PlayFabApiError as exc:
            self._set_error_info()
            await self._broadcast.failure(exc.error)
            return

        self._set_result_info(result)
        if self.remember_me:
            self._relink_custom_id()
            self.auth_type = AuthType.EMAIL_AND_PASSWORD

        await self._broadcast.success(result)

    # Registration
    async def _add_account_and_password(self) -> None:
        """Attach username, email and password to the silent account.

        Registration returns no session, so the identity comes from the
        silent login that precedes it.
        """
        silent_result: Optional[LoginResult] = None

        def capture(result: Optional[LoginResult]) -> None:
            nonlocal silent_result
            silent_result = result

        await self.login_silently(on_result=capture)
        if silent_result is None:
            await self._broadcast.failure(PlayFabError.local(SILENT_AUTH_FAILED_MESSAGE))

        try:
            await self.client.add_username_password(
                username=self.username or self.custom_id,
                email=self.email,
                password=self.password,
            )
        except PlayFabApiError as exc:
            self._set_error_info()
            await self._broadcast.failure(exc.error)
            return

        if silent_result is None:
            logger.warning("Account registered without a silent login result, identity not cached")
            return

        self._set_result_info(silent_result)
        if self.remember_me:
            self._relink_custom_id()
        self.auth_type = AuthType.EMAIL_AND_PASSWORD

        await self._broadcast.success(silent_result)

    # Social sign-in
    async def _authenticate_facebook(self) -> None:
        if self.facebook is None:
            logger.info("Facebook sign-in is not available on this host")
            return

        access_token = self.auth_ticket or self.facebook.access_token
        if not (self.facebook.is_initialized and self.facebook.is_logged_in and access_token):
            await self._request_authentication_ui()
            return

        await self._exchange_for_session(
            self.client.login_with_facebook(
                access_token=access_token,
                create_account=True,
                info_request_parameters=self.info_request_params,
            )
        )

    async def _authenticate_google(self) -> None:
        if self.google is None:
            logger.info("Google sign-in is not available on this host")
            return

        await self._exchange_for_session(
            self.client.login_with_google_account(
                server_auth_code=self.auth_ticket or self.google.server_auth_code or "",
                create_account=True,
                info_request_parameters=self.info_request_params,
            )
        )

    async def _attempt_quick_login_apple(self) -> None:
        if self.apple is None:
            logger.info("Sign in with Apple is not available on this host")
            return

        try:
            credential = await self.apple.quick_login()
        except AppleAuthError as exc:
            # Only logged: login_failed is reserved for backend outcomes.
            logger.warning(f"[Login Apple]: failed by {exc}")
            return

        self.preferences.set_string(APPLE_USER_ID_KEY, credential.user)
        self.identity_token = credential.identity_token

        await self._exchange_for_session(
            self.client.login_with_apple(
                identity_token=credential.identity_token.decode("utf-8", errors="replace"),
                create_account=True,
                info_request_parameters=self.info_request_params,
            )
        )

    async def _exchange_for_session(self, login: Awaitable[LoginResult]) -> None:
        """Await a login call and cache-and-notify through the broadcast channels."""
        try:
            result = await login
        except PlayFabApiError as exc:
            self._set_error_info()
            await self._broadcast.failure(exc.error)
            return

        self._set_result_info(result)
        await self._broadcast.success(result)

    # Auxiliary calls
    async def unlink_silent_auth(self) -> None:
        """Log in silently, then unlink the device id from the account."""

        def unlink(_result: Optional[LoginResult]) -> None:
            self._fire_and_forget(
                self.platform.unlink(self.client, self.custom_id), "unlink device id"
            )

        await self.login_silently(on_result=unlink)

    async def update_player_statistics(self, value: int, statistic_name: str) -> None:
        """Post one statistic value. The title must allow client statistic updates."""
        try:
            result = await self.client.update_player_statistics(
                [StatisticUpdate(statistic_name=statistic_name, value=value)]
            )
        except PlayFabApiError as exc:
            await self._broadcast.failure(exc.error)
            return

        await self.statistics_updated.emit(result)

    async def update_user_title_display_name(self, display_name: str) -> None:
        try:
            result = await self.client.update_user_title_display_name(display_name)
        except PlayFabApiError as exc:
            await self._broadcast.failure(exc.error)
            return

        await self.display_name_updated.emit(result)

    def _relink_custom_id(self) -> None:
        """Replace the custom id and link the new one to the current account."""
        self.preferences.delete_key(CUSTOM_ID_STORE_KEY)
        self._fire_and_forget(
            self.client.link_custom_id(self.custom_id, force_link=self.force_link),
            "link custom id",
        )

    def _set_result_info(self, result: LoginResult) -> None:
        self.player_id = result.playfab_id
        self.session_ticket = result.session_ticket
        self.is_logged_in = True
        self.is_request_completed = True

    def _set_error_info(self) -> None:
        self.is_logged_in = False
        self.is_request_completed = True

    # Background work
    def _fire_and_forget(self, call: Awaitable, label: str) -> None:
        task = asyncio.ensure_future(call)
        self._background.add(task)

        def _done(finished: asyncio.Task) -> None:
            self._background.discard(finished)
            if not finished.cancelled() and finished.exception() is not None:
                logger.debug(f"Ignoring failed {label}: {finished.exception()}")

        task.add_done_callback(_done)

    async def drain(self) -> None:
        """Wait for pending fire-and-forget calls."""
        while self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def close(self) -> None:
        await self.drain()
        await self.client.close()


def build_auth_service(
    settings: ServiceSettings,
    preferences_path: Optional[Union[str, Path]] = None,
    platform: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **capabilities,
) -> AuthService:
    """Wire an ``AuthService`` with the PlayFab HTTP client.

    :param preferences_path: JSON preferences file; in-memory when omitted
    :param platform: Registered platform name; detected when omitted
    :param capabilities: ``facebook``, ``google`` and ``apple`` providers
    """
    preferences: PreferenceStore
    if preferences_path is not None:
        preferences = JsonFilePreferences(preferences_path)
    else:
        preferences = MemoryPreferences()

    return AuthService(
        client=PlayFabClient(settings, transport=transport),
        preferences=preferences,
        platform=create_platform(platform),
        settings=settings,
        **capabilities,
    )
