"""Entry point for the PlayFab game service client."""

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from gameservice.auth import (
    AuthService,
    StaticAppleSignIn,
    StaticFacebookSession,
    StaticGoogleSession,
    build_auth_service,
)
from gameservice.config import ConfigurationError, ServiceSettings, get_settings
from gameservice.config.settings import DEFAULT_SETTINGS_PATH
from gameservice.models import AuthType
from gameservice.utils.logging import configure_from_env, get_logger

logger = get_logger("main")

DEFAULT_PREFS_PATH = Path(".gameservice") / "preferences.json"

AUTH_TYPE_CHOICES = {
    "none": AuthType.NONE,
    "silent": AuthType.SILENT,
    "email": AuthType.EMAIL_AND_PASSWORD,
    "register": AuthType.REGISTER_PLAYFAB_ACCOUNT,
    "facebook": AuthType.FACEBOOK,
    "google": AuthType.GOOGLE,
    "apple": AuthType.APPLE,
}


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="PlayFab game service client")
    parser.add_argument("--settings", help="Path to the settings YAML file")
    parser.add_argument("--prefs", help="Path to the player preferences JSON file")
    parser.add_argument("--platform", help="Platform provider (desktop, android, ios)")

    sub = parser.add_subparsers(dest="command", required=True)

    settings_cmd = sub.add_parser("settings", help="Show or edit settings")
    settings_sub = settings_cmd.add_subparsers(dest="action", required=True)
    settings_sub.add_parser("show", help="Print the effective settings")
    set_cmd = settings_sub.add_parser("set", help="Change one setting and save")
    set_cmd.add_argument("key")
    set_cmd.add_argument("value")

    login_cmd = sub.add_parser("login", help="Authenticate the player")
    login_cmd.add_argument("--type", choices=sorted(AUTH_TYPE_CHOICES), help="Auth type to persist and use")
    login_cmd.add_argument("--email", default="")
    login_cmd.add_argument("--password", default=os.getenv("PLAYFAB_PASSWORD", ""))
    login_cmd.add_argument("--username", default="")
    login_cmd.add_argument("--auth-ticket", default="", help="Facebook/Google token")
    login_cmd.add_argument("--apple-user", default="")
    login_cmd.add_argument("--apple-token", default="", help="Apple identity token")
    login_cmd.add_argument("--remember-me", action=argparse.BooleanOptionalAction, default=None)

    stat_cmd = sub.add_parser("stat", help="Log in silently and post a statistic")
    stat_cmd.add_argument("name")
    stat_cmd.add_argument("value", type=int)

    sub.add_parser("unlink", help="Unlink this device from its account")
    sub.add_parser("clear", help="Forget remember-me and the custom id")

    return parser.parse_args(argv)


def _settings_path(args: argparse.Namespace) -> Path:
    return Path(args.settings or os.getenv("PLAYFAB_SETTINGS_FILE") or DEFAULT_SETTINGS_PATH)


def _show_settings(settings: ServiceSettings) -> None:
    data = settings.model_dump(mode="json")
    if data.get("secret_key"):
        data["secret_key"] = "**********"
    print(ServiceSettings.model_validate(data).to_yaml(), end="")


def _set_setting(args: argparse.Namespace) -> None:
    path = _settings_path(args)
    settings = ServiceSettings.load(path)
    if args.key not in ServiceSettings.model_fields:
        raise ConfigurationError(f"Unknown setting '{args.key}'")
    settings.update(**{args.key: args.value}).save(path)


def _build_service(args: argparse.Namespace, settings: ServiceSettings) -> AuthService:
    prefs = args.prefs or os.getenv("GAMESERVICE_PREFS_PATH") or DEFAULT_PREFS_PATH
    capabilities = {}
    auth_ticket = getattr(args, "auth_ticket", "")
    if auth_ticket:
        capabilities["facebook"] = StaticFacebookSession(auth_ticket)
        capabilities["google"] = StaticGoogleSession(auth_ticket)
    apple_token = getattr(args, "apple_token", "")
    if apple_token:
        capabilities["apple"] = StaticAppleSignIn(args.apple_user, apple_token.encode("utf-8"))
    return build_auth_service(settings, preferences_path=prefs, platform=args.platform, **capabilities)


def _attach_reporters(service: AuthService) -> None:
    service.need_authentication_ui.subscribe(
        lambda: print("Credentials required: pass --email/--password or choose another --type")
    )
    service.login_succeeded.subscribe(
        lambda result: print(f"Logged in as {result.playfab_id} (new account: {result.newly_created})")
    )
    service.login_failed.subscribe(lambda error: print(f"Login failed: {error}", file=sys.stderr))
    service.statistics_updated.subscribe(lambda _result: print("Statistic updated"))


async def _run(args: argparse.Namespace, settings: ServiceSettings) -> int:
    service = _build_service(args, settings)
    _attach_reporters(service)
    try:
        if args.command == "login":
            service.email = args.email
            service.password = args.password
            service.username = args.username
            service.auth_ticket = args.auth_ticket
            if args.remember_me is not None:
                service.remember_me = args.remember_me
            auth_type: Optional[AuthType] = AUTH_TYPE_CHOICES[args.type] if args.type else None
            await service.authenticate(auth_type)
        elif args.command == "stat":
            if await service.login_silently() is not None:
                await service.update_player_statistics(args.value, args.name)
        elif args.command == "unlink":
            await service.unlink_silent_auth()
        elif args.command == "clear":
            service.clear_data()
    finally:
        await service.close()

    return 0 if service.is_logged_in or args.command == "clear" else 1


def main(argv=None) -> int:
    """Main entry point."""
    load_dotenv(".env")
    configure_from_env()
    args = _parse_args(argv)

    try:
        if args.command == "settings":
            if args.action == "show":
                _show_settings(get_settings(_settings_path(args)))
            else:
                _set_setting(args)
            return 0

        return asyncio.run(_run(args, get_settings(_settings_path(args))))
    except ValueError as e:
        # ConfigurationError and unknown platform names
        logger.error(f"Configuration error: {e}")
        return 2
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
