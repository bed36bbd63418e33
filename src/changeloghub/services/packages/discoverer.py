"""Package discovery across the tracked repositories."""

import asyncio
import posixpath

from changeloghub.exceptions import ResourceNotFoundError, UpstreamError
from changeloghub.logger import get_logger
from changeloghub.models.package import (
    CategorizedPackage,
    CategorizedPackageEntry,
    DiscoveredPackage,
    PackageInfo,
)
from changeloghub.models.release import RawRelease
from changeloghub.models.repository import RepositoryDescriptor
from changeloghub.services.github import GitHubCache
from changeloghub.services.registry import RepositoryRegistry, RepositoryStrategy

from .memo import CachedComputation

logger = get_logger(__name__)


class PackageDiscoverer:
    """
    Derives the logical packages of every repository from its release tags.

    Discovery is expensive (one releases fetch per repository plus description
    and deprecation lookups), so its result is kept for the process lifetime
    and only replaced by a new discovery or an incremental repository update.
    """

    def __init__(self, github_cache: GitHubCache, registry: RepositoryRegistry) -> None:
        self._cache = github_cache
        self._registry = registry
        self._packages: CachedComputation[list[DiscoveredPackage]] = CachedComputation()

    async def discover_all(self) -> list[DiscoveredPackage]:
        """
        Discover the packages of all the repositories and store the result.

        Returns:
            Discovered packages, in registry order
        """
        discovered = await self._discover_all()
        self._packages.replace(discovered)
        return discovered

    async def _discover_all(self) -> list[DiscoveredPackage]:
        repositories = self._registry.repositories
        logger.info("Discovering packages", repositories=len(repositories))
        return list(await asyncio.gather(*(self._discover_repository(repository) for repository in repositories)))

    async def get_or_discover(self) -> list[DiscoveredPackage]:
        """
        Return the discovered packages, running a discovery on first access.

        Returns:
            All the discovered packages per repository
        """
        return await self._packages.get_or_compute(self._discover_all)

    async def get_or_discover_categorized(self) -> list[CategorizedPackage]:
        """
        Return the discovered packages grouped by category.

        Returns:
            Categories in order of first appearance, each with its packages
        """
        categories: dict[str, CategorizedPackage] = {}
        for discovered in await self.get_or_discover():
            category = discovered.repository.category
            group = categories.setdefault(category.slug, CategorizedPackage(category=category))
            group.packages.extend(
                CategorizedPackageEntry(repository=discovered.repository, pkg=pkg) for pkg in discovered.packages
            )
        return list(categories.values())

    async def discover_releases(self, owner: str, repo: str, releases: list[RawRelease]) -> None:
        """
        Recompute the packages of one repository from freshly fetched releases.

        Replaces the repository's entries (a repository may appear in several
        categories) without running a full discovery. Does nothing if no
        discovery happened yet: the next read discovers from scratch.

        Args:
            owner: Repository owner
            repo: Repository name
            releases: The repository's fetched releases
        """
        current = self._packages.value
        if not self._packages.is_computed or current is None:
            logger.debug("No discovery yet, skipping incremental update", repository=f"{owner}/{repo}")
            return

        refreshed = [
            await self._discover_repository(discovered.repository, releases)
            for discovered in current
            if discovered.repository.same_repository(owner, repo)
        ]

        # Other updates may have landed while discovering: swap into the latest list
        latest = self._packages.value
        if not self._packages.is_computed or latest is None:
            return
        updated = list(latest)
        for i, discovered in enumerate(updated):
            replacement = next((entry for entry in refreshed if entry.repository == discovered.repository), None)
            if replacement is not None:
                updated[i] = replacement
        self._packages.replace(updated)
        logger.info("Updated discovered packages", repository=f"{owner}/{repo}")

    def invalidate(self) -> None:
        """Forget the discovery; the next read runs a new one."""
        self._packages.invalidate()

    async def find_repository_for_package(self, package_name: str) -> DiscoveredPackage | None:
        """Find the first repository producing a package (exact name match)."""
        for discovered in await self.get_or_discover():
            if any(pkg.name == package_name for pkg in discovered.packages):
                return discovered
        return None

    async def _discover_repository(
        self, repository: RepositoryDescriptor, releases: list[RawRelease] | None = None
    ) -> DiscoveredPackage:
        if releases is None:
            releases = await self._cache.get_releases(repository)

        strategy = RepositoryStrategy(repository)
        names: dict[str, None] = {}
        for release in releases:
            if not release.tag_name or not strategy.filter_release(release):
                continue
            name, _ = strategy.extract_metadata(release.tag_name)
            if not name:
                logger.warning("Tag yields no package name", repository=repository.full_name, tag=release.tag_name)
                continue
            names.setdefault(name, None)

        descriptions = await self._get_descriptions(repository)
        packages = await asyncio.gather(
            *(self._build_package(repository, name, descriptions) for name in names)
        )
        return DiscoveredPackage(repository=repository, packages=list(packages))

    async def _get_descriptions(self, repository: RepositoryDescriptor) -> dict[str, str]:
        try:
            return await self._cache.get_descriptions(repository.repo_owner, repository.repo_name)
        except (UpstreamError, ResourceNotFoundError) as e:
            logger.warning("Could not load package descriptions", repository=repository.full_name, error=str(e))
            return {}

    async def _build_package(
        self, repository: RepositoryDescriptor, name: str, descriptions: dict[str, str]
    ) -> PackageInfo:
        deprecated: bool | str = False
        if not repository.registry_excluded:
            try:
                deprecated = await self._cache.get_package_deprecation(name)
            except UpstreamError as e:
                logger.warning("Could not check package deprecation", package=name, error=str(e))

        # A deprecated package's code may be gone, so its description is unreliable
        description = "" if deprecated else resolve_description(repository, name, descriptions)
        return PackageInfo(name=name, description=description, deprecated=deprecated)


def resolve_description(repository: RepositoryDescriptor, package_name: str, descriptions: dict[str, str]) -> str:
    """
    Find the description of a package among a repository's package.json files.

    Looks at ``packages/{dir}``, ``packages/{basename(dir)}`` then the root,
    where ``dir`` is the package's directory override or its name.
    """
    directory = repository.directory_overrides.get(package_name, package_name)
    candidates = [
        f"packages/{directory}/package.json",
        f"packages/{posixpath.basename(directory)}/package.json",
        "package.json",
    ]
    for path in candidates:
        if path in descriptions:
            return descriptions[path]
    return ""
