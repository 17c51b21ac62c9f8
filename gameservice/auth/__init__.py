"""Player authentication.

``providers`` must be imported before ``registry`` so platform classes can
register themselves.
"""

from .providers import (
    AndroidPlatform,
    AppleAuthError,
    AppleSignIn,
    DesktopPlatform,
    FacebookSession,
    GoogleSession,
    IOSPlatform,
    PlatformProvider,
    ProviderConfig,
    StaticAppleSignIn,
    StaticFacebookSession,
    StaticGoogleSession,
)
from .registry import PlatformRegistry, create_platform, register_platform
from .events import EventChannel, LoginSink
from .service import AuthService, build_auth_service

__all__ = [
    "AndroidPlatform",
    "AppleAuthError",
    "AppleSignIn",
    "AuthService",
    "DesktopPlatform",
    "EventChannel",
    "FacebookSession",
    "GoogleSession",
    "IOSPlatform",
    "LoginSink",
    "PlatformProvider",
    "PlatformRegistry",
    "ProviderConfig",
    "StaticAppleSignIn",
    "StaticFacebookSession",
    "StaticGoogleSession",
    "build_auth_service",
    "create_platform",
    "register_platform",
]
