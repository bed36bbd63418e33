"""Configuration data models for changeloghub."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ServerConfig(BaseModel):
    """Server configuration."""

    port: int = 8000
    host: str = "127.0.0.1"


class GitHubConfig(BaseModel):
    """GitHub API access."""

    token: str = ""
    api_url: str = "https://api.github.com"
    graphql_url: str = "https://api.github.com/graphql"


class NpmConfig(BaseModel):
    """Package registry access."""

    registry_url: str = "https://registry.npmjs.org"


class CacheConfig(BaseModel):
    """Cache configuration.

    In ``development`` mode the in-process mirror is the only store and Redis
    is never contacted. In ``production`` mode Redis is authoritative.
    """

    mode: Literal["development", "production"] = "development"
    redis_url: str = "redis://localhost:6379/0"

    @property
    def is_dev(self) -> bool:
        return self.mode == "development"


class WebhooksConfig(BaseModel):
    """Shared secrets for the webhook and cron endpoints."""

    github_secret: str = ""
    replicator_token: str = ""
    cron_secret: str = ""


class RegistryConfig(BaseModel):
    """Repository registry location. None uses the bundled registry."""

    path: Path | None = None

    @field_validator("path", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path | None) -> Path | None:
        """Expand user path for the registry file."""
        if v is None:
            return None
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class AdvancedConfig(BaseModel):
    """Advanced configuration."""

    log_level: Literal["ERROR", "WARNING", "INFO", "DEBUG"] = "INFO"
    http_timeout: float = 30.0  # Seconds, applied to GitHub and registry requests


class AppConfig(BaseModel):
    """Main application configuration."""

    server: ServerConfig = Field(default_factory=ServerConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    npm: NpmConfig = Field(default_factory=NpmConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    webhooks: WebhooksConfig = Field(default_factory=WebhooksConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)
