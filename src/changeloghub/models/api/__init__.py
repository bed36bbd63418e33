"""API models package."""

from changeloghub.models.api.cron import RefreshResult
from changeloghub.models.api.feed import Feed, FeedAuthor, FeedItem
from changeloghub.models.api.releases import PaginatedReleases
from changeloghub.models.api.webhooks import (
    GitHubReleaseEvent,
    InvalidationResult,
    ReplicatorEvent,
    ReplicatorPackage,
)

__all__ = [
    "Feed",
    "FeedAuthor",
    "FeedItem",
    "GitHubReleaseEvent",
    "InvalidationResult",
    "PaginatedReleases",
    "RefreshResult",
    "ReplicatorEvent",
    "ReplicatorPackage",
]
