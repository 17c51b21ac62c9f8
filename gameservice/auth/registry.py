"""Registry for platform providers.

Platforms register themselves by name so the entry point can pick one at
startup without the auth service knowing which platforms exist.
"""

import logging
import os
import sys
from typing import Dict, Optional, Type

from .providers.base import PlatformProvider, ProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_PLATFORM = "desktop"


class PlatformRegistry:
    """Registry for platform providers.

    The registry provides:
    - Provider registration and discovery
    - Dynamic provider instantiation
    - Testing support with clear/reset functionality
    """

    _providers: Dict[str, Type[PlatformProvider]] = {}

    @classmethod
    def register(
        cls, platform: str, provider_class: Type[PlatformProvider]
    ) -> None:
        """Register a provider class.

        :param platform: Unique identifier for the platform
        :type platform: str
        :param provider_class: Provider class to register
        :type provider_class: Type[PlatformProvider]
        :raises ValueError: If the platform is already registered
        """
        if platform in cls._providers:
            raise ValueError(f"Platform '{platform}' is already registered")

        cls._providers[platform] = provider_class
        logger.debug(f"Registered platform: {platform} -> {provider_class.__name__}")

    @classmethod
    def unregister(cls, platform: str) -> None:
        if platform in cls._providers:
            del cls._providers[platform]
            logger.debug(f"Unregistered platform: {platform}")

    @classmethod
    def get_provider_class(cls, platform: str) -> Optional[Type[PlatformProvider]]:
        return cls._providers.get(platform)

    @classmethod
    def create_provider(
        cls, platform: str, config: Optional[ProviderConfig] = None
    ) -> PlatformProvider:
        """Create a provider instance.

        :param platform: Platform to create a provider for
        :type platform: str
        :param config: Configuration for the provider
        :type config: Optional[ProviderConfig]
        :return: Provider instance
        :rtype: PlatformProvider
        :raises ValueError: If the platform is not registered
        """
        provider_class = cls.get_provider_class(platform)
        if not provider_class:
            available = ", ".join(sorted(cls._providers.keys()))
            raise ValueError(
                f"Unknown platform: '{platform}'. "
                f"Available platforms: {available or 'none'}"
            )

        return provider_class(config)

    @classmethod
    def list_providers(cls) -> Dict[str, Type[PlatformProvider]]:
        return cls._providers.copy()


def register_platform(platform: str):
    """Decorator to auto-register a platform provider class.

    Usage:
        @register_platform("android")
        class AndroidPlatform(PlatformProvider):
            ...
    """

    def decorator(provider_class: Type[PlatformProvider]):
        PlatformRegistry.register(platform, provider_class)
        return provider_class

    return decorator


def detect_platform_name() -> str:
    """Return ``GAMESERVICE_PLATFORM`` or the default desktop platform."""
    return os.getenv("GAMESERVICE_PLATFORM", DEFAULT_PLATFORM).strip().lower()


def create_platform(
    platform: Optional[str] = None, config: Optional[ProviderConfig] = None
) -> PlatformProvider:
    """Instantiate the provider for ``platform`` (detected when omitted)."""
    name = platform or detect_platform_name()
    if config is None:
        config = ProviderConfig(operating_system=sys.platform)
    return PlatformRegistry.create_provider(name, config)
