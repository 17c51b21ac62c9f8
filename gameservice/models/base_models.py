"""Shared Pydantic models for the game service client.

These mirror the JSON payloads of the PlayFab Client API. Field names are
snake_case in Python and PascalCase on the wire (``populate_by_name`` keeps
both spellings valid when building models by hand).

The models cover:
- Persisted auth selection (``AuthType``)
- Login requests/results and the request-info parameters blob
- Backend and local error payloads
- Statistics and display-name updates
"""

from datetime import datetime
from enum import IntEnum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

PLAYFAB_MODEL_CONFIG = ConfigDict(populate_by_name=True, extra="ignore")


class AuthType(IntEnum):
    """Login strategy selected by ``AuthService.authenticate``.

    Values are persisted as integers, so the order is part of the stored
    format.
    """

    NONE = 0
    SILENT = 1
    USERNAME_AND_PASSWORD = 2
    EMAIL_AND_PASSWORD = 3
    REGISTER_PLAYFAB_ACCOUNT = 4
    FACEBOOK = 5
    GOOGLE = 6
    APPLE = 7


# Auth Models
class GetPlayerCombinedInfoRequestParams(BaseModel):
    """Auxiliary player info to fetch alongside a login.

    Passed through unchanged to every login request.
    """

    get_character_inventories: bool = Field(default=False, alias="GetCharacterInventories")
    get_character_list: bool = Field(default=False, alias="GetCharacterList")
    get_player_profile: bool = Field(default=False, alias="GetPlayerProfile")
    get_player_statistics: bool = Field(default=False, alias="GetPlayerStatistics")
    get_title_data: bool = Field(default=False, alias="GetTitleData")
    get_user_account_info: bool = Field(default=False, alias="GetUserAccountInfo")
    get_user_data: bool = Field(default=False, alias="GetUserData")
    get_user_inventory: bool = Field(default=False, alias="GetUserInventory")
    get_user_read_only_data: bool = Field(default=False, alias="GetUserReadOnlyData")
    get_user_virtual_currency: bool = Field(default=False, alias="GetUserVirtualCurrency")
    player_statistic_names: Optional[List[str]] = Field(default=None, alias="PlayerStatisticNames")
    title_data_keys: Optional[List[str]] = Field(default=None, alias="TitleDataKeys")
    user_data_keys: Optional[List[str]] = Field(default=None, alias="UserDataKeys")
    user_read_only_data_keys: Optional[List[str]] = Field(default=None, alias="UserReadOnlyDataKeys")

    model_config = PLAYFAB_MODEL_CONFIG

    def to_wire(self) -> Dict[str, Any]:
        """Return the PascalCase payload, omitting unset key lists."""
        return self.model_dump(by_alias=True, exclude_none=True)


class EntityKey(BaseModel):
    id: str = Field(alias="Id")
    type: Optional[str] = Field(default=None, alias="Type")

    model_config = PLAYFAB_MODEL_CONFIG


class EntityTokenResponse(BaseModel):
    entity: Optional[EntityKey] = Field(default=None, alias="Entity")
    entity_token: Optional[str] = Field(default=None, alias="EntityToken")
    token_expiration: Optional[datetime] = Field(default=None, alias="TokenExpiration")

    model_config = PLAYFAB_MODEL_CONFIG


class LoginResult(BaseModel):
    """Result of any of the ``LoginWith*`` calls.

    :param playfab_id: Opaque player identifier
    :type playfab_id: str
    :param session_ticket: Session token for authenticated calls
    :type session_ticket: str
    :param newly_created: Whether the account was created by this login
    :type newly_created: bool
    """

    playfab_id: Optional[str] = Field(default=None, alias="PlayFabId")
    session_ticket: Optional[str] = Field(default=None, alias="SessionTicket")
    newly_created: bool = Field(default=False, alias="NewlyCreated")
    last_login_time: Optional[datetime] = Field(default=None, alias="LastLoginTime")
    entity_token: Optional[EntityTokenResponse] = Field(default=None, alias="EntityToken")
    info_result_payload: Optional[Dict[str, Any]] = Field(default=None, alias="InfoResultPayload")

    model_config = PLAYFAB_MODEL_CONFIG


class AddUsernamePasswordResult(BaseModel):
    username: Optional[str] = Field(default=None, alias="Username")

    model_config = PLAYFAB_MODEL_CONFIG


class AppleIdCredential(BaseModel):
    """Credential returned by a successful Sign in with Apple quick login."""

    user: str
    identity_token: bytes
    email: Optional[str] = None


# Statistics / profile models
class StatisticUpdate(BaseModel):
    statistic_name: str = Field(alias="StatisticName")
    value: int = Field(alias="Value")
    version: Optional[int] = Field(default=None, alias="Version")

    model_config = PLAYFAB_MODEL_CONFIG


class UpdatePlayerStatisticsResult(BaseModel):
    model_config = PLAYFAB_MODEL_CONFIG


class UpdateUserTitleDisplayNameResult(BaseModel):
    display_name: Optional[str] = Field(default=None, alias="DisplayName")

    model_config = PLAYFAB_MODEL_CONFIG


# Error models
class PlayFabError(BaseModel):
    """Error payload surfaced to ``login_failed`` subscribers.

    Two kinds exist: ``backend`` errors decoded from a PlayFab response
    (or a transport failure talking to it), and ``local`` precondition
    failures synthesized on the client.

    :param http_code: HTTP status code (0 for local errors)
    :type http_code: int
    :param error: PlayFab error name, e.g. ``InvalidParams``
    :type error: str
    :param error_code: Numeric PlayFab error code
    :type error_code: int
    :param error_message: Human readable message
    :type error_message: str
    """

    http_code: int = Field(default=0, alias="code")
    http_status: Optional[str] = Field(default=None, alias="status")
    error: str = Field(default="UnknownError", alias="error")
    error_code: int = Field(default=1001, alias="errorCode")
    error_message: str = Field(default="", alias="errorMessage")
    error_details: Optional[Dict[str, List[str]]] = Field(default=None, alias="errorDetails")
    source: Literal["backend", "local"] = "backend"

    model_config = PLAYFAB_MODEL_CONFIG

    @classmethod
    def local(
        cls, message: str, error: str = "UnknownError", error_code: int = 1001
    ) -> "PlayFabError":
        """Build a locally synthesized precondition failure."""
        return cls(
            error=error,
            error_code=error_code,
            error_message=message,
            source="local",
        )

    @property
    def is_local(self) -> bool:
        return self.source == "local"

    def generate_error_report(self) -> str:
        """Render the message followed by one line per detail entry."""
        lines = [self.error_message or self.error]
        for key, messages in (self.error_details or {}).items():
            lines.append(f"{key}: {', '.join(messages)}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return f"{self.error} ({self.error_code}): {self.error_message}"
