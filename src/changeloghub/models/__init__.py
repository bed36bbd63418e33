"""Data models for changeloghub."""

from .app_config import AppConfig
from .changelog import Changelog, ChangelogVersionEntry
from .item import ItemDetails, ItemKind, LinkedItem
from .package import (
    CategorizedPackage,
    CategorizedPackageEntry,
    DiscoveredPackage,
    PackageInfo,
    PackageReleases,
    ReleasesRepository,
)
from .release import GitHubUser, MergedPackageRelease, RawRelease, newest_first
from .repository import (
    DEFAULT_OWNER,
    Category,
    ChangelogRewrite,
    ReleaseFilter,
    RepositoryDescriptor,
    RepositorySummary,
)

__all__ = [
    "AppConfig",
    "CategorizedPackage",
    "CategorizedPackageEntry",
    "Category",
    "Changelog",
    "ChangelogRewrite",
    "ChangelogVersionEntry",
    "DEFAULT_OWNER",
    "DiscoveredPackage",
    "GitHubUser",
    "ItemDetails",
    "ItemKind",
    "LinkedItem",
    "MergedPackageRelease",
    "PackageInfo",
    "PackageReleases",
    "RawRelease",
    "ReleaseFilter",
    "ReleasesRepository",
    "RepositoryDescriptor",
    "RepositorySummary",
    "newest_first",
]
