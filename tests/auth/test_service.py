"""Tests for AuthService strategy dispatch and notification."""

import logging

import httpx
import pytest

from gameservice.auth import (
    AndroidPlatform,
    AuthService,
    IOSPlatform,
    ProviderConfig,
    StaticAppleSignIn,
    StaticFacebookSession,
    StaticGoogleSession,
)
from gameservice.auth.service import (
    APPLE_USER_ID_KEY,
    AUTH_TYPE_KEY,
    CUSTOM_ID_STORE_KEY,
    LOGIN_REMEMBER_KEY,
    SILENT_AUTH_FAILED_MESSAGE,
)
from gameservice.client import PlayFabClient
from gameservice.config import ServiceSettings
from gameservice.models import AuthType, GetPlayerCombinedInfoRequestParams, LoginResult
from gameservice.storage import JsonFilePreferences

LOGIN_CALLS = {
    "login_with_custom_id",
    "login_with_android_device_id",
    "login_with_ios_device_id",
    "login_with_email_address",
    "login_with_facebook",
    "login_with_google_account",
    "login_with_apple",
}


def login_calls(backend):
    return [name for name in backend.call_names() if name in LOGIN_CALLS]


# Persisted state

def test_custom_id_is_generated_once_and_persisted(service, preferences):
    assert not preferences.has_key(CUSTOM_ID_STORE_KEY)

    first = service.custom_id

    assert first
    assert service.custom_id == first
    assert preferences.get_string(CUSTOM_ID_STORE_KEY) == first


def test_custom_id_survives_restart(tmp_path, backend):
    path = tmp_path / "prefs.json"
    first = AuthService(backend, JsonFilePreferences(path)).custom_id

    second = AuthService(backend, JsonFilePreferences(path)).custom_id

    assert first == second


def test_unknown_stored_auth_type_falls_back_to_none(service, preferences):
    preferences.set_int(AUTH_TYPE_KEY, 42)

    assert service.auth_type is AuthType.NONE


def test_reset_keeps_persisted_values(service, preferences):
    service.remember_me = True
    service.auth_type = AuthType.EMAIL_AND_PASSWORD
    custom_id = service.custom_id
    service.is_logged_in = True
    service.is_request_completed = True

    service.reset()

    assert service.is_logged_in is False
    assert service.is_request_completed is False
    assert service.remember_me is True
    assert service.auth_type is AuthType.EMAIL_AND_PASSWORD
    assert service.custom_id == custom_id


def test_clear_data_keeps_auth_type(service, preferences):
    service.remember_me = True
    service.auth_type = AuthType.SILENT
    _ = service.custom_id

    service.clear_data()

    assert not preferences.has_key(LOGIN_REMEMBER_KEY)
    assert not preferences.has_key(CUSTOM_ID_STORE_KEY)
    assert service.auth_type is AuthType.SILENT


# Dispatch

@pytest.mark.asyncio
async def test_authenticate_none_requests_ui_without_calls(service, backend, recorder):
    await service.authenticate(AuthType.NONE)

    assert recorder.kinds() == ["need_ui"]
    assert backend.calls == []


@pytest.mark.asyncio
async def test_authenticate_persists_type_then_dispatches(service, backend, preferences, recorder):
    await service.authenticate(AuthType.SILENT)

    assert preferences.get_int(AUTH_TYPE_KEY) == int(AuthType.SILENT)
    assert login_calls(backend) == ["login_with_custom_id"]

    # The no-argument form reuses the persisted type.
    await service.authenticate()
    assert login_calls(backend) == ["login_with_custom_id", "login_with_custom_id"]


@pytest.mark.asyncio
async def test_username_and_password_is_a_no_op(service, backend, recorder, caplog):
    caplog.set_level(logging.WARNING, logger="gameservice")

    await service.authenticate(AuthType.USERNAME_AND_PASSWORD)

    assert backend.calls == []
    assert recorder.events == []
    assert "not supported" in caplog.text


# Silent login

@pytest.mark.asyncio
async def test_silent_success_sets_flags_before_event(service, backend):
    seen = []
    service.login_succeeded.subscribe(
        lambda result: seen.append((service.is_logged_in, service.is_request_completed, result))
    )

    await service.authenticate(AuthType.SILENT)

    assert seen == [(True, True, backend.login_result)]
    assert service.player_id == "PLAYER1"
    assert service.session_ticket == "ticket-1"


@pytest.mark.asyncio
async def test_silent_failure_sets_flags_before_error_event(service, backend, make_error):
    backend.failures["login_with_custom_id"] = make_error()
    seen = []
    service.login_failed.subscribe(
        lambda error: seen.append((service.is_logged_in, service.is_request_completed, error.error))
    )

    await service.authenticate(AuthType.SILENT)

    assert seen == [(False, True, "InvalidParams")]


@pytest.mark.asyncio
async def test_silent_failure_keeps_stale_identity(service, backend, make_error):
    await service.authenticate(AuthType.SILENT)
    backend.failures["login_with_custom_id"] = make_error()

    await service.authenticate(AuthType.SILENT)

    assert service.is_logged_in is False
    assert service.player_id == "PLAYER1"
    assert service.session_ticket == "ticket-1"


@pytest.mark.asyncio
async def test_silent_login_request_fields(backend, preferences):
    params = GetPlayerCombinedInfoRequestParams(get_player_profile=True)
    settings = ServiceSettings(title_id="ABC", info_request_params=params)
    service = AuthService(backend, preferences, settings=settings)

    await service.authenticate(AuthType.SILENT)

    call = backend.last_call("login_with_custom_id")
    assert call["custom_id"] == service.custom_id
    assert call["create_account"] is True
    assert call["info_request_parameters"].get_player_profile is True


@pytest.mark.asyncio
async def test_silent_login_on_android_uses_device_endpoint(backend, preferences):
    platform = AndroidPlatform(ProviderConfig(device_model="Pixel 8", operating_system="Android 14"))
    service = AuthService(backend, preferences, platform)

    await service.authenticate(AuthType.SILENT)

    assert login_calls(backend) == ["login_with_android_device_id"]
    call = backend.last_call("login_with_android_device_id")
    assert call["android_device_id"] == service.custom_id
    assert call["android_device"] == "Pixel 8"
    assert call["os"] == "Android 14"
    assert call["create_account"] is True


@pytest.mark.asyncio
async def test_silent_login_on_ios_uses_device_endpoint(backend, preferences):
    service = AuthService(backend, preferences, IOSPlatform())

    await service.authenticate(AuthType.SILENT)

    assert login_calls(backend) == ["login_with_ios_device_id"]
    assert backend.last_call("login_with_ios_device_id")["device_id"] == service.custom_id


@pytest.mark.asyncio
async def test_custom_id_as_default_overrides_platform(backend, preferences):
    settings = ServiceSettings(use_custom_id_as_default=True)
    service = AuthService(backend, preferences, AndroidPlatform(), settings)

    await service.authenticate(AuthType.SILENT)

    assert login_calls(backend) == ["login_with_custom_id"]


@pytest.mark.asyncio
async def test_direct_handler_takes_precedence_over_broadcast(service, backend, recorder):
    received = []

    result = await service.login_silently(on_result=received.append)

    assert received == [backend.login_result]
    assert result == backend.login_result
    assert recorder.events == []


@pytest.mark.asyncio
async def test_direct_handler_gets_none_on_failure(service, backend, recorder, make_error, caplog):
    backend.failures["login_with_custom_id"] = make_error(message="device banned")
    received = []

    async def handler(result):
        received.append(result)

    await service.login_silently(on_result=handler)

    assert received == [None]
    assert recorder.events == []
    assert "device banned" in caplog.text


@pytest.mark.asyncio
async def test_failure_without_subscribers_is_logged(service, backend, make_error, caplog):
    backend.failures["login_with_custom_id"] = make_error(message="title not found")

    await service.authenticate(AuthType.SILENT)

    assert "title not found" in caplog.text


# Email and password

@pytest.mark.asyncio
async def test_email_without_credentials_asks_for_ui(service, backend, recorder):
    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)

    assert recorder.kinds() == ["need_ui"]
    assert backend.calls == []


@pytest.mark.asyncio
async def test_email_remember_me_resumes_with_existing_custom_id(service, backend, recorder):
    service.remember_me = True
    service.custom_id = "linked-id"

    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)

    assert login_calls(backend) == ["login_with_custom_id"]
    assert backend.last_call("login_with_custom_id")["custom_id"] == "linked-id"
    assert recorder.kinds() == ["success"]


@pytest.mark.asyncio
async def test_email_remember_me_without_custom_id_creates_one(service, backend, preferences):
    service.remember_me = True

    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)

    used = backend.last_call("login_with_custom_id")["custom_id"]
    assert used
    assert preferences.get_string(CUSTOM_ID_STORE_KEY) == used


@pytest.mark.asyncio
async def test_email_resume_failure_goes_to_broadcast(service, backend, recorder, make_error):
    service.remember_me = True
    backend.failures["login_with_custom_id"] = make_error()

    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)

    assert recorder.kinds() == ["error"]
    assert service.is_request_completed is True


@pytest.mark.asyncio
async def test_email_login_with_remember_me_relinks_custom_id(service, backend, recorder):
    service.remember_me = True
    service.force_link = True
    old_id = service.custom_id
    service.email = "player@example.com"
    service.password = "hunter22"

    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)
    await service.drain()

    assert login_calls(backend) == ["login_with_email_address"]
    assert backend.last_call("login_with_email_address")["email"] == "player@example.com"
    link = backend.last_call("link_custom_id")
    assert link == {"custom_id": service.custom_id, "force_link": True}
    assert service.custom_id != old_id
    assert service.auth_type is AuthType.EMAIL_AND_PASSWORD
    assert recorder.kinds() == ["success"]


@pytest.mark.asyncio
async def test_email_login_without_remember_me_does_not_link(service, backend, recorder):
    service.email = "player@example.com"
    service.password = "hunter22"

    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)
    await service.drain()

    assert "link_custom_id" not in backend.call_names()
    assert recorder.kinds() == ["success"]
    assert service.is_logged_in is True


@pytest.mark.asyncio
async def test_email_login_link_failure_is_not_surfaced(service, backend, recorder, make_error):
    service.remember_me = True
    service.email = "player@example.com"
    service.password = "hunter22"
    backend.failures["link_custom_id"] = make_error("LinkedAccountAlreadyClaimed", 1012)

    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)
    await service.drain()

    assert "link_custom_id" in backend.call_names()
    assert recorder.kinds() == ["success"]


@pytest.mark.asyncio
async def test_email_login_failure(service, backend, recorder, make_error):
    service.email = "player@example.com"
    service.password = "wrong"
    backend.failures["login_with_email_address"] = make_error("InvalidEmailOrPassword", 1142)

    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)

    assert recorder.kinds() == ["error"]
    assert recorder.payloads("error")[0].error == "InvalidEmailOrPassword"
    assert service.is_logged_in is False
    assert service.is_request_completed is True


# Registration

@pytest.mark.asyncio
async def test_registration_caches_silent_identity(service, backend, recorder):
    service.email = "new@example.com"
    service.password = "hunter22"

    await service.authenticate(AuthType.REGISTER_PLAYFAB_ACCOUNT)

    assert backend.call_names() == ["login_with_custom_id", "add_username_password"]
    registration = backend.last_call("add_username_password")
    assert registration["username"] == service.custom_id
    assert registration["email"] == "new@example.com"
    assert service.player_id == "PLAYER1"
    assert service.session_ticket == "ticket-1"
    assert recorder.payloads("success") == [backend.login_result]
    assert service.auth_type is AuthType.EMAIL_AND_PASSWORD


@pytest.mark.asyncio
async def test_registration_prefers_explicit_username(service, backend):
    service.username = "hero"
    service.email = "hero@example.com"
    service.password = "hunter22"

    await service.authenticate(AuthType.REGISTER_PLAYFAB_ACCOUNT)

    assert backend.last_call("add_username_password")["username"] == "hero"


@pytest.mark.asyncio
async def test_registration_with_remember_me_relinks(service, backend):
    service.remember_me = True
    old_id = service.custom_id
    service.email = "hero@example.com"
    service.password = "hunter22"

    await service.authenticate(AuthType.REGISTER_PLAYFAB_ACCOUNT)
    await service.drain()

    assert backend.last_call("link_custom_id")["custom_id"] == service.custom_id
    assert service.custom_id != old_id


@pytest.mark.asyncio
async def test_registration_surfaces_local_error_when_silent_login_fails(
    service, backend, recorder, make_error
):
    backend.failures["login_with_custom_id"] = make_error()
    backend.failures["add_username_password"] = make_error("NotAuthenticated", 1074)

    await service.authenticate(AuthType.REGISTER_PLAYFAB_ACCOUNT)

    errors = recorder.payloads("error")
    assert errors[0].is_local
    assert errors[0].error_message == SILENT_AUTH_FAILED_MESSAGE
    assert errors[1].error == "NotAuthenticated"
    assert "success" not in recorder.kinds()


@pytest.mark.asyncio
async def test_registration_without_silent_result_never_reports_success(
    service, backend, recorder, make_error
):
    backend.failures["login_with_custom_id"] = make_error()

    await service.authenticate(AuthType.REGISTER_PLAYFAB_ACCOUNT)

    assert "add_username_password" in backend.call_names()
    assert recorder.kinds() == ["error"]
    assert service.player_id is None


@pytest.mark.asyncio
async def test_registration_failure(service, backend, recorder, make_error):
    backend.failures["add_username_password"] = make_error("EmailAddressNotAvailable", 1006)

    await service.authenticate(AuthType.REGISTER_PLAYFAB_ACCOUNT)

    assert recorder.kinds() == ["error"]
    assert service.is_logged_in is False
    assert service.is_request_completed is True
    assert service.auth_type is AuthType.REGISTER_PLAYFAB_ACCOUNT


# Social sign-in

@pytest.mark.asyncio
async def test_social_strategies_are_inert_without_capability(service, backend, recorder):
    for auth_type in (AuthType.FACEBOOK, AuthType.GOOGLE, AuthType.APPLE):
        await service.authenticate(auth_type)

    assert backend.calls == []
    assert recorder.events == []


@pytest.mark.asyncio
async def test_facebook_without_session_asks_for_ui(backend, preferences):
    service = AuthService(backend, preferences, facebook=StaticFacebookSession(None))
    events = []
    service.need_authentication_ui.subscribe(lambda: events.append("need_ui"))

    await service.authenticate(AuthType.FACEBOOK)

    assert events == ["need_ui"]
    assert backend.calls == []


@pytest.mark.asyncio
async def test_facebook_exchanges_auth_ticket(backend, preferences):
    service = AuthService(backend, preferences, facebook=StaticFacebookSession("fb-token"))
    service.auth_ticket = "fb-ticket"
    results = []
    service.login_succeeded.subscribe(results.append)

    await service.authenticate(AuthType.FACEBOOK)

    assert backend.last_call("login_with_facebook") == {
        "access_token": "fb-ticket",
        "create_account": True,
    }
    assert results == [backend.login_result]
    assert service.is_logged_in is True


@pytest.mark.asyncio
async def test_google_exchanges_server_auth_code(backend, preferences, make_error):
    service = AuthService(backend, preferences, google=StaticGoogleSession("auth-code"))
    backend.failures["login_with_google_account"] = make_error("InvalidGoogleToken", 1220)
    errors = []
    service.login_failed.subscribe(errors.append)

    await service.authenticate(AuthType.GOOGLE)

    assert backend.last_call("login_with_google_account")["server_auth_code"] == "auth-code"
    assert [e.error for e in errors] == ["InvalidGoogleToken"]
    assert service.is_request_completed is True


@pytest.mark.asyncio
async def test_apple_quick_login_exchanges_identity_token(backend, preferences):
    apple = StaticAppleSignIn(user="apple-user", identity_token=b"apple.jwt.token")
    service = AuthService(backend, preferences, apple=apple)
    results = []
    service.login_succeeded.subscribe(results.append)

    await service.authenticate(AuthType.APPLE)

    assert backend.last_call("login_with_apple")["identity_token"] == "apple.jwt.token"
    assert preferences.get_string(APPLE_USER_ID_KEY) == "apple-user"
    assert service.identity_token == b"apple.jwt.token"
    assert results == [backend.login_result]


@pytest.mark.asyncio
async def test_apple_quick_login_failure_only_logs(backend, preferences, caplog):
    service = AuthService(backend, preferences, apple=StaticAppleSignIn())
    errors = []
    service.login_failed.subscribe(errors.append)

    await service.authenticate(AuthType.APPLE)

    assert errors == []
    assert backend.calls == []
    assert "[Login Apple]" in caplog.text


@pytest.mark.asyncio
async def test_apple_token_with_invalid_utf8_is_replaced(backend, preferences):
    apple = StaticAppleSignIn(user="apple-user", identity_token=b"tok\xff\xfe")
    service = AuthService(backend, preferences, apple=apple)
    results = []
    service.login_succeeded.subscribe(results.append)

    await service.authenticate(AuthType.APPLE)

    assert backend.last_call("login_with_apple")["identity_token"] == "tok\ufffd\ufffd"
    assert service.identity_token == b"tok\xff\xfe"
    assert service.is_request_completed is True
    assert results == [backend.login_result]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "auth_type, call_name, capabilities, remember_me",
    [
        (AuthType.EMAIL_AND_PASSWORD, "login_with_email_address", {}, False),
        (AuthType.EMAIL_AND_PASSWORD, "login_with_custom_id", {}, True),
        (AuthType.FACEBOOK, "login_with_facebook", {"facebook": StaticFacebookSession("fb-token")}, False),
        (AuthType.GOOGLE, "login_with_google_account", {"google": StaticGoogleSession("auth-code")}, False),
        (AuthType.APPLE, "login_with_apple", {"apple": StaticAppleSignIn("apple-user", b"apple.jwt")}, False),
    ],
    ids=["email", "custom-id-resume", "facebook", "google", "apple"],
)
async def test_info_request_params_reach_every_login(
    backend, preferences, auth_type, call_name, capabilities, remember_me
):
    params = GetPlayerCombinedInfoRequestParams(get_user_data=True, user_data_keys=["level"])
    settings = ServiceSettings(title_id="ABC", info_request_params=params)
    service = AuthService(backend, preferences, settings=settings, **capabilities)
    service.remember_me = remember_me
    if not remember_me:
        service.email = "player@example.com"
        service.password = "hunter22"

    await service.authenticate(auth_type)

    assert login_calls(backend) == [call_name]
    call = backend.last_call(call_name)
    assert call["info_request_parameters"] is service.info_request_params
    if call_name != "login_with_email_address":
        assert call["create_account"] is True


@pytest.mark.asyncio
async def test_undecodable_login_data_becomes_error_event(preferences):
    def handler(_request):
        return httpx.Response(
            200,
            json={"code": 200, "status": "OK", "data": {"PlayFabId": "X", "LastLoginTime": "not-a-date"}},
        )

    settings = ServiceSettings(title_id="ABC", use_custom_id_as_default=True)
    client = PlayFabClient(settings, transport=httpx.MockTransport(handler))
    service = AuthService(client, preferences, settings=settings)
    errors = []
    service.login_failed.subscribe(errors.append)

    await service.authenticate(AuthType.SILENT)
    await service.close()

    assert [error.error for error in errors] == ["JsonParseError"]
    assert service.is_request_completed is True
    assert service.is_logged_in is False
    assert service.player_id is None


# Single outcome per call

@pytest.mark.asyncio
@pytest.mark.parametrize(
    "auth_type",
    [AuthType.SILENT, AuthType.EMAIL_AND_PASSWORD, AuthType.REGISTER_PLAYFAB_ACCOUNT],
)
async def test_one_login_call_and_one_event_per_authenticate(service, backend, recorder, auth_type):
    service.email = "player@example.com"
    service.password = "hunter22"

    await service.authenticate(auth_type)
    await service.drain()

    assert len(login_calls(backend)) == 1
    assert len(recorder.events) == 1


# Auxiliary calls

@pytest.mark.asyncio
async def test_unlink_silent_auth_unlinks_device(service, backend, recorder):
    await service.unlink_silent_auth()
    await service.drain()

    assert backend.call_names() == ["login_with_custom_id", "unlink_custom_id"]
    assert backend.last_call("unlink_custom_id") == {"custom_id": service.custom_id}
    assert recorder.events == []


@pytest.mark.asyncio
async def test_unlink_on_android_uses_device_endpoint(backend, preferences, make_error):
    service = AuthService(backend, preferences, AndroidPlatform())
    backend.failures["unlink_android_device_id"] = make_error()
    recorder_events = []
    service.login_failed.subscribe(recorder_events.append)

    await service.unlink_silent_auth()
    await service.drain()

    assert backend.last_call("unlink_android_device_id") == {"android_device_id": service.custom_id}
    assert recorder_events == []


@pytest.mark.asyncio
async def test_update_player_statistics(service, backend, recorder):
    await service.update_player_statistics(1200, "HighScore")

    statistics = backend.last_call("update_player_statistics")["statistics"]
    assert [(s.statistic_name, s.value) for s in statistics] == [("HighScore", 1200)]
    assert recorder.kinds() == ["statistics"]


@pytest.mark.asyncio
async def test_update_player_statistics_failure(service, backend, recorder, make_error):
    backend.failures["update_player_statistics"] = make_error("StatisticNotFound", 1289)

    await service.update_player_statistics(1, "Missing")

    assert recorder.kinds() == ["error"]


@pytest.mark.asyncio
async def test_update_display_name(service, backend, recorder):
    await service.update_user_title_display_name("Hero")

    assert recorder.kinds() == ["display_name"]
    assert recorder.payloads("display_name")[0].display_name == "Hero"


@pytest.mark.asyncio
async def test_close_drains_and_closes_client(service, backend):
    service.remember_me = True
    service.email = "player@example.com"
    service.password = "hunter22"
    await service.authenticate(AuthType.EMAIL_AND_PASSWORD)

    await service.close()

    assert "link_custom_id" in backend.call_names()
    assert backend.closed is True


@pytest.mark.asyncio
async def test_identity_comes_from_login_result(service, backend):
    backend.login_result = LoginResult(playfab_id="OTHER", session_ticket="ticket-2")

    await service.authenticate(AuthType.SILENT)

    assert (service.player_id, service.session_ticket) == ("OTHER", "ticket-2")
