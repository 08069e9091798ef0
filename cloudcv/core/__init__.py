"""Core configuration for the cloudcv bridge."""

from cloudcv.core.config import Settings, get_settings, reset_settings

__all__ = ["Settings", "get_settings", "reset_settings"]
