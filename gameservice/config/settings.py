"""PlayFab service settings.

Settings are edited at development time and persisted as YAML. At runtime
they are only read: the backend client takes the endpoint, timeouts and
enabled API surfaces from here, and the auth service takes the default
request-info parameters.

Resolution order is file, then ``PLAYFAB_*`` environment variables (the
entry point loads ``.env`` with python-dotenv before reading them).
"""

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, SecretStr, ValidationError, field_serializer

from gameservice.models import GetPlayerCombinedInfoRequestParams

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path("playfab_settings.yaml")
DEFAULT_REQUEST_TIMEOUT = 30.0


class ConfigurationError(ValueError):
    """Raised when settings are missing or invalid."""


class RequestType(str, Enum):
    """Transport used by the backend client.

    ``custom`` expects the caller to hand an httpx transport to the client.
    """

    HTTPX = "httpx"
    CUSTOM = "custom"


_ENV_FIELDS = {
    "PLAYFAB_TITLE_ID": "title_id",
    "PLAYFAB_SECRET_KEY": "secret_key",
    "PLAYFAB_REQUEST_TYPE": "request_type",
    "PLAYFAB_ENABLE_ADMIN_API": "enable_admin_api",
    "PLAYFAB_ENABLE_CLIENT_API": "enable_client_api",
    "PLAYFAB_ENABLE_ENTITY_API": "enable_entity_api",
    "PLAYFAB_ENABLE_SERVER_API": "enable_server_api",
    "PLAYFAB_ENABLE_REQUEST_TIMES_API": "enable_request_times_api",
    "PLAYFAB_USE_CUSTOM_ID_AS_DEFAULT": "use_custom_id_as_default",
    "PLAYFAB_API_ENDPOINT": "api_endpoint",
    "PLAYFAB_REQUEST_TIMEOUT": "request_timeout",
    "PLAYFAB_INFO_REQUEST_PARAMS": "info_request_params",
}


class ServiceSettings(BaseModel):
    """PlayFab title configuration.

    :param title_id: PlayFab title id
    :param secret_key: Developer secret key, only needed by server/admin APIs
    :param request_type: Transport selection for the backend client
    :param info_request_params: Default request-info parameters for logins
    """

    title_id: str = ""
    secret_key: SecretStr = Field(default=SecretStr(""))
    request_type: RequestType = RequestType.HTTPX
    enable_admin_api: bool = False
    enable_client_api: bool = True
    enable_entity_api: bool = True
    enable_server_api: bool = False
    enable_request_times_api: bool = False
    use_custom_id_as_default: bool = False
    api_endpoint: Optional[str] = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    info_request_params: GetPlayerCombinedInfoRequestParams = Field(
        default_factory=GetPlayerCombinedInfoRequestParams
    )

    model_config = {"validate_assignment": True}

    @field_serializer("secret_key", when_used="json")
    def _dump_secret(self, value: SecretStr) -> str:
        return value.get_secret_value()

    @property
    def base_url(self) -> str:
        """Root URL of the title's API endpoint."""
        if self.api_endpoint:
            return self.api_endpoint.rstrip("/")
        self.require_title_id()
        return f"https://{self.title_id.lower()}.playfabapi.com"

    def require_title_id(self) -> str:
        if not self.title_id:
            raise ConfigurationError(
                "PlayFab title id is not configured (set PLAYFAB_TITLE_ID "
                "or title_id in the settings file)"
            )
        return self.title_id

    def enabled_surfaces(self) -> List[str]:
        """Names of the API surfaces switched on in these settings."""
        flags = {
            "admin": self.enable_admin_api,
            "client": self.enable_client_api,
            "entity": self.enable_entity_api,
            "server": self.enable_server_api,
            "request_times": self.enable_request_times_api,
        }
        return [name for name, enabled in flags.items() if enabled]

    def update(self, **changes: Any) -> "ServiceSettings":
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump(mode="json")
        data.update(changes)
        try:
            return ServiceSettings.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid settings: {exc}") from exc

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.model_dump(mode="json"), sort_keys=False)

    @classmethod
    def load(cls, path: Union[str, Path] = DEFAULT_SETTINGS_PATH) -> "ServiceSettings":
        """Load settings from a YAML file; a missing file yields defaults."""
        path = Path(path)
        if not path.exists():
            logger.debug(f"Settings file {path} not found, using defaults")
            return cls()

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Could not parse settings file {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError(f"Settings file {path} must contain a mapping")

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid settings in {path}: {exc}") from exc

    def save(self, path: Union[str, Path] = DEFAULT_SETTINGS_PATH) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_yaml(), encoding="utf-8")
        logger.info(f"Saved PlayFab settings to {path}")
        return path

    @classmethod
    def from_env(cls, base: Optional["ServiceSettings"] = None) -> "ServiceSettings":
        """Overlay ``PLAYFAB_*`` environment variables on ``base``."""
        base = base or cls()
        overrides: Dict[str, Any] = {}
        for env_name, field_name in _ENV_FIELDS.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            if field_name == "info_request_params":
                try:
                    overrides[field_name] = json.loads(raw)
                except json.JSONDecodeError as exc:
                    raise ConfigurationError(
                        f"{env_name} must be a JSON object: {exc}"
                    ) from exc
            else:
                overrides[field_name] = raw

        if not overrides:
            return base
        return base.update(**overrides)


def get_settings(path: Union[str, Path, None] = None) -> ServiceSettings:
    """Load settings from ``path`` (or ``PLAYFAB_SETTINGS_FILE``) plus env."""
    settings_path = path or os.getenv("PLAYFAB_SETTINGS_FILE") or DEFAULT_SETTINGS_PATH
    return ServiceSettings.from_env(ServiceSettings.load(settings_path))
