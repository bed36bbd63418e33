"""Release models mirroring the GitHub release shape."""

from collections.abc import Iterable
from datetime import datetime
from typing import TypeVar

from pydantic import BaseModel, ConfigDict


class GitHubUser(BaseModel):
    """Subset of a GitHub user (or commit author) used for attribution."""

    model_config = ConfigDict(extra="allow")

    login: str | None = None
    name: str | None = None
    email: str | None = None
    html_url: str | None = None
    avatar_url: str | None = None


class RawRelease(BaseModel):
    """A release as returned by the GitHub API, or synthesized from a changelog.

    Unknown upstream fields are kept so cached entries round-trip unchanged.
    """

    model_config = ConfigDict(extra="allow")

    id: int
    tag_name: str | None = None
    name: str | None = None
    body: str | None = None
    created_at: datetime
    published_at: datetime | None = None
    author: GitHubUser | None = None
    html_url: str = ""
    prerelease: bool = False

    @property
    def timestamp(self) -> datetime:
        """Date used to order releases: publication, else creation."""
        return self.published_at or self.created_at


class MergedPackageRelease(RawRelease):
    """A release annotated with the logical package identity it belongs to."""

    clean_name: str
    clean_version: str


ReleaseT = TypeVar("ReleaseT", bound=RawRelease)


def newest_first(releases: Iterable[ReleaseT]) -> list[ReleaseT]:
    """Return releases ordered by ``published_at`` (or ``created_at``), most recent first."""
    return sorted(releases, key=lambda release: release.timestamp, reverse=True)
