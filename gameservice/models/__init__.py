from .base_models import (
    AddUsernamePasswordResult,
    AppleIdCredential,
    AuthType,
    EntityKey,
    EntityTokenResponse,
    GetPlayerCombinedInfoRequestParams,
    LoginResult,
    PlayFabError,
    StatisticUpdate,
    UpdatePlayerStatisticsResult,
    UpdateUserTitleDisplayNameResult,
)

__all__ = [
    "AddUsernamePasswordResult",
    "AppleIdCredential",
    "AuthType",
    "EntityKey",
    "EntityTokenResponse",
    "GetPlayerCombinedInfoRequestParams",
    "LoginResult",
    "PlayFabError",
    "StatisticUpdate",
    "UpdatePlayerStatisticsResult",
    "UpdateUserTitleDisplayNameResult",
]
