"""Capability providers package.

Platform providers are registered with ``PlatformRegistry`` when imported.
"""

from .base import (
    AppleAuthError,
    AppleSignIn,
    FacebookSession,
    GoogleSession,
    PlatformProvider,
    ProviderConfig,
)
# Import platforms to trigger auto-registration
from .platforms import AndroidPlatform, DesktopPlatform, IOSPlatform
from .social import StaticAppleSignIn, StaticFacebookSession, StaticGoogleSession

__all__ = [
    "AndroidPlatform",
    "AppleAuthError",
    "AppleSignIn",
    "DesktopPlatform",
    "FacebookSession",
    "GoogleSession",
    "IOSPlatform",
    "PlatformProvider",
    "ProviderConfig",
    "StaticAppleSignIn",
    "StaticFacebookSession",
    "StaticGoogleSession",
]
