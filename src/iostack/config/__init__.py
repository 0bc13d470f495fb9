"""Configuration module for the IOStack client."""

from .settings import DEFAULT_PLATFORM_ROOT, ClientSettings, get_settings

__all__ = ["DEFAULT_PLATFORM_ROOT", "ClientSettings", "get_settings"]
