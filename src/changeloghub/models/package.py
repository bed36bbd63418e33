"""Discovered package models."""

from pydantic import BaseModel, Field

from changeloghub.models.release import MergedPackageRelease
from changeloghub.models.repository import Category, RepositoryDescriptor, RepositorySummary


class PackageInfo(BaseModel):
    """A logical package produced by a repository."""

    name: str
    description: str = ""
    deprecated: bool | str = False  # Registry deprecation flag or message


class DiscoveredPackage(BaseModel):
    """The packages discovered for one repository."""

    repository: RepositoryDescriptor
    packages: list[PackageInfo] = Field(default_factory=list)

    def find_package(self, name: str) -> PackageInfo | None:
        """Case-insensitive package lookup."""
        lowered = name.lower()
        for pkg in self.packages:
            if pkg.name.lower() == lowered:
                return pkg
        return None


class CategorizedPackageEntry(BaseModel):
    """A package alongside the repository producing it."""

    repository: RepositoryDescriptor
    pkg: PackageInfo


class CategorizedPackage(BaseModel):
    """All the packages of one category."""

    category: Category
    packages: list[CategorizedPackageEntry] = Field(default_factory=list)


class ReleasesRepository(RepositorySummary):
    """The authoritative repository of a package, with the package metadata."""

    pkg: PackageInfo


class PackageReleases(BaseModel):
    """Merged releases of a logical package."""

    releases_repo: ReleasesRepository
    releases: list[MergedPackageRelease] = Field(default_factory=list)
    # Repositories that failed to answer; their releases are missing from the merge
    unavailable_repositories: list[str] = Field(default_factory=list)
