"""Static social sign-in capabilities.

Headless hosts (bots, servers driving a test client, CI) obtain platform
tokens out of band and hand them over through these.
"""

from typing import Optional

from ...models import AppleIdCredential
from .base import AppleAuthError, AppleSignIn, FacebookSession, GoogleSession


class StaticFacebookSession(FacebookSession):
    """Facebook session backed by a known access token."""

    def __init__(self, access_token: Optional[str] = None, initialized: bool = True):
        self._access_token = access_token
        self._initialized = initialized

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_logged_in(self) -> bool:
        return self._initialized and bool(self._access_token)

    @property
    def access_token(self) -> Optional[str]:
        return self._access_token


class StaticGoogleSession(GoogleSession):
    def __init__(self, server_auth_code: Optional[str] = None):
        self._server_auth_code = server_auth_code

    @property
    def server_auth_code(self) -> Optional[str]:
        return self._server_auth_code


class StaticAppleSignIn(AppleSignIn):
    """Apple sign-in that replays a previously issued credential."""

    def __init__(self, user: Optional[str] = None, identity_token: Optional[bytes] = None):
        self._user = user
        self._identity_token = identity_token

    async def quick_login(self) -> AppleIdCredential:
        if not self._user or not self._identity_token:
            raise AppleAuthError("No authorized Apple ID credential available")
        return AppleIdCredential(user=self._user, identity_token=self._identity_token)
