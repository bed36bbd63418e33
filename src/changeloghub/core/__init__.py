"""Core application wiring."""

from .app_config import AppConfigManager, get_config, reload_config

__all__ = ["AppConfigManager", "get_config", "reload_config"]
