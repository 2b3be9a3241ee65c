"""Configuration package - settings and logging."""
from .settings import ProviderConfig, Settings, get_settings

__all__ = ["ProviderConfig", "Settings", "get_settings"]
