"""Application configuration."""

from .settings import EnvironmentOption, Settings, StoreBackend, get_settings, settings

__all__ = ["EnvironmentOption", "Settings", "StoreBackend", "get_settings", "settings"]
