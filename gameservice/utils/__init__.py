"""Utility functions for the game service client."""

from .logging import configure_from_env, get_logger, setup_logging

__all__ = ["setup_logging", "get_logger", "configure_from_env"]
