from pathlib import Path

import pytest

from changeloghub.core.app_config import AppConfigManager


def test_defaults_without_file(tmp_path: Path) -> None:
    config = AppConfigManager(tmp_path / "missing.yaml").load()

    assert config.server.port == 8000
    assert config.cache.mode == "development"
    assert config.cache.is_dev
    assert config.registry.path is None
    assert config.advanced.log_level == "INFO"


def test_load_yaml_file(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "server:\n  port: 9000\ncache:\n  mode: production\n  redis_url: redis://cache:6379/1\n",
        encoding="utf-8",
    )

    config = AppConfigManager(path).load()

    assert config.server.port == 9000
    assert not config.cache.is_dev
    assert config.cache.redis_url == "redis://cache:6379/1"


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHANGELOGHUB_SERVER_PORT", "7000")
    monkeypatch.setenv("CHANGELOGHUB_GITHUB_TOKEN", "ghp_test")
    monkeypatch.setenv("CHANGELOGHUB_CACHE_MODE", "production")
    monkeypatch.setenv("CHANGELOGHUB_WEBHOOKS_CRON_SECRET", "cron")
    monkeypatch.setenv("CHANGELOGHUB_REGISTRY_PATH", str(tmp_path / "repos.yaml"))
    monkeypatch.setenv("CHANGELOGHUB_ADVANCED_LOG_LEVEL", "debug")

    config = AppConfigManager(tmp_path / "missing.yaml").load()

    assert config.server.port == 7000
    assert config.github.token == "ghp_test"
    assert config.cache.mode == "production"
    assert config.webhooks.cron_secret == "cron"
    assert config.registry.path == tmp_path / "repos.yaml"
    assert config.advanced.log_level == "DEBUG"


def test_invalid_cache_mode_is_ignored(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CHANGELOGHUB_CACHE_MODE", "staging")

    assert AppConfigManager(tmp_path / "missing.yaml").load().cache.mode == "development"


def test_config_path_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "custom.yaml"
    path.write_text("npm:\n  registry_url: https://npm.example.com\n", encoding="utf-8")
    monkeypatch.setenv("CHANGELOGHUB_CONFIG_PATH", str(path))

    manager = AppConfigManager()

    assert manager.config_path == path
    assert manager.get_config().npm.registry_url == "https://npm.example.com"
