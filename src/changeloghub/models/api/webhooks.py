"""Webhook payload models."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class WebhookOwner(BaseModel):
    model_config = ConfigDict(extra="allow")

    login: str


class WebhookRepository(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    owner: WebhookOwner


class GitHubReleaseEvent(BaseModel):
    """The parts of a GitHub ``release`` event used for cache invalidation."""

    model_config = ConfigDict(extra="allow")

    action: str
    repository: WebhookRepository


class ReplicatorPackage(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    version: str | None = None


class ReplicatorEvent(BaseModel):
    """npm registry replicator event."""

    model_config = ConfigDict(extra="allow")

    event: str
    timestamp: int | None = None
    package: ReplicatorPackage


class InvalidationResult(BaseModel):
    """Outcome of a webhook-driven cache invalidation."""

    repository: str
    deleted: bool
    details: dict[str, Any] = {}
