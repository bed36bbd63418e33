"""Configuration management for changeloghub."""

import os
from pathlib import Path
from typing import Any

import yaml

from changeloghub.models.app_config import AppConfig


class AppConfigManager:
    """Manages application configuration with YAML file and environment variable support."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. If None, uses CHANGELOGHUB_CONFIG_PATH
                        environment variable or defaults to ~/.config/changeloghub/config.yaml
        """
        if config_path is None:
            env_path = os.getenv("CHANGELOGHUB_CONFIG_PATH")
            if env_path:
                config_path = Path(env_path).expanduser()
            else:
                config_path = Path.home() / ".config" / "changeloghub" / "config.yaml"

        self.config_path = config_path
        self._config: AppConfig | None = None

    def load(self) -> AppConfig:
        """Load configuration from file and apply environment variable overrides.

        Returns:
            Loaded configuration
        """
        config_data: dict[str, Any] = {}

        # 1. Load from YAML file if it exists
        if self.config_path.exists():
            with open(self.config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}

        # 2. Create config object (applies defaults)
        config = AppConfig(**config_data)

        # 3. Apply environment variable overrides
        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: AppConfig) -> AppConfig:
        """Apply environment variable overrides.

        Environment variables use the format: CHANGELOGHUB_<SECTION>_<KEY>
        Examples:
            - CHANGELOGHUB_SERVER_PORT=9000
            - CHANGELOGHUB_CACHE_MODE=production

        Args:
            config: Base configuration

        Returns:
            Configuration with environment overrides applied
        """
        # Server overrides
        if port := os.getenv("CHANGELOGHUB_SERVER_PORT"):
            config.server.port = int(port)
        if host := os.getenv("CHANGELOGHUB_SERVER_HOST"):
            config.server.host = host

        # Upstream credentials
        if token := os.getenv("CHANGELOGHUB_GITHUB_TOKEN"):
            config.github.token = token
        if registry_url := os.getenv("CHANGELOGHUB_NPM_REGISTRY_URL"):
            config.npm.registry_url = registry_url

        # Cache overrides
        if mode := os.getenv("CHANGELOGHUB_CACHE_MODE"):
            if mode in ("development", "production"):
                config.cache.mode = mode  # type: ignore
        if redis_url := os.getenv("CHANGELOGHUB_CACHE_REDIS_URL"):
            config.cache.redis_url = redis_url

        # Webhook secrets
        if secret := os.getenv("CHANGELOGHUB_WEBHOOKS_GITHUB_SECRET"):
            config.webhooks.github_secret = secret
        if replicator_token := os.getenv("CHANGELOGHUB_WEBHOOKS_REPLICATOR_TOKEN"):
            config.webhooks.replicator_token = replicator_token
        if cron_secret := os.getenv("CHANGELOGHUB_WEBHOOKS_CRON_SECRET"):
            config.webhooks.cron_secret = cron_secret

        if registry_path := os.getenv("CHANGELOGHUB_REGISTRY_PATH"):
            config.registry.path = Path(registry_path).expanduser()

        if log_level := os.getenv("CHANGELOGHUB_ADVANCED_LOG_LEVEL"):
            if log_level.upper() in ("ERROR", "WARNING", "INFO", "DEBUG"):
                config.advanced.log_level = log_level.upper()  # type: ignore

        return config

    def get_config(self) -> AppConfig:
        """Get configuration (singleton pattern).

        Returns:
            Current configuration
        """
        if self._config is None:
            self._config = self.load()
        return self._config

    def reload(self) -> AppConfig:
        """Reload configuration from file.

        Returns:
            Reloaded configuration
        """
        self._config = self.load()
        return self._config


# Global configuration manager instance
_config_manager = AppConfigManager()


def get_config() -> AppConfig:
    """Get global application configuration.

    Returns:
        Application configuration
    """
    return _config_manager.get_config()


def reload_config() -> AppConfig:
    """Reload configuration from file.

    Returns:
        Reloaded configuration
    """
    return _config_manager.reload()
