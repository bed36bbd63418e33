"""GitHub access and caching."""

from .cache import GitHubCache, repo_key, stable_release_id
from .client import GitHubClient

__all__ = ["GitHubCache", "GitHubClient", "repo_key", "stable_release_id"]
