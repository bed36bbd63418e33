"""Release merging: one deduplicated release history per logical package."""

import asyncio
from typing import Protocol

import semver

from changeloghub.logger import get_logger
from changeloghub.models.package import DiscoveredPackage, PackageInfo, PackageReleases, ReleasesRepository
from changeloghub.models.release import MergedPackageRelease, RawRelease, newest_first
from changeloghub.models.repository import RepositoryDescriptor, RepositorySummary
from changeloghub.services.github import GitHubCache
from changeloghub.services.registry import RepositoryStrategy

logger = get_logger(__name__)


class ErrorReporter(Protocol):
    """External error tracker receiving data-quality anomalies."""

    def capture(self, message: str, **context: object) -> None: ...


def is_valid_version(version: str) -> bool:
    return semver.Version.is_valid(version)


class ReleaseMerger:
    """
    Gathers the releases of a package from every repository producing it.

    A package can move between repositories over its history. Versions are
    deduplicated (the first repository in registry order to provide a version
    wins) and the repository holding the newest version is the authoritative
    one.
    """

    def __init__(self, github_cache: GitHubCache, error_reporter: ErrorReporter | None = None) -> None:
        self._cache = github_cache
        self._reporter = error_reporter

    async def get_package_releases(
        self, package_name: str, discovered: list[DiscoveredPackage]
    ) -> PackageReleases | None:
        """
        Get all the releases of a single package.

        Args:
            package_name: Package name, matched case-insensitively
            discovered: All the discovered packages

        Returns:
            The authoritative repository alongside the merged releases (newest
            first), or None if no repository yields a valid release of it
        """
        contributors: list[tuple[RepositoryDescriptor, PackageInfo]] = []
        for entry in discovered:
            pkg = entry.find_package(package_name)
            if pkg is not None:
                contributors.append((entry.repository, pkg))
        if not contributors:
            return None

        fetched = await asyncio.gather(
            *(self._cache.get_releases(repository) for repository, _ in contributors), return_exceptions=True
        )

        unavailable: list[str] = []
        first_error: BaseException | None = None
        found_versions: set[str] = set()
        newest_version: semver.Version | None = None
        releases_repo: ReleasesRepository | None = None
        releases: list[MergedPackageRelease] = []

        for (repository, pkg), result in zip(contributors, fetched, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(
                    "Could not load releases, merging without them",
                    repository=repository.full_name,
                    package=package_name,
                    error=str(result),
                )
                unavailable.append(repository.full_name)
                first_error = first_error or result
                continue

            strategy = RepositoryStrategy(repository)
            valid = self._valid_releases(package_name, repository, strategy, result)
            logger.debug("Releases found", repository=repository.full_name, total=len(result), valid=len(valid))

            for release in valid:
                clean_name, clean_version = strategy.extract_metadata(release.tag_name or "")
                if clean_version in found_versions:
                    continue

                found_versions.add(clean_version)
                releases.append(
                    MergedPackageRelease(**release.model_dump(), clean_name=clean_name, clean_version=clean_version)
                )

                # The repository of the newest version is the package's current home
                version = semver.Version.parse(clean_version)
                if newest_version is None or version > newest_version:
                    newest_version = version
                    releases_repo = ReleasesRepository(
                        **RepositorySummary.from_descriptor(repository).model_dump(), pkg=pkg
                    )

        if len(unavailable) == len(contributors) and first_error is not None:
            raise first_error

        if releases_repo is None:
            # No repository yielded a valid release of this package
            return None

        return PackageReleases(
            releases_repo=releases_repo,
            releases=newest_first(releases),
            unavailable_repositories=unavailable,
        )

    def _valid_releases(
        self,
        package_name: str,
        repository: RepositoryDescriptor,
        strategy: RepositoryStrategy,
        releases: list[RawRelease],
    ) -> list[RawRelease]:
        """Releases of ``package_name`` in this repository, highest version first."""
        valid: list[tuple[semver.Version, RawRelease]] = []
        lowered = package_name.lower()
        for release in releases:
            if not release.tag_name:
                self._report("Release with empty tag_name", package_name, repository, release_id=release.id)
                continue
            name, version = strategy.extract_metadata(release.tag_name)
            if name.lower() != lowered or not strategy.filter_release(release):
                continue
            if not is_valid_version(version):
                self._report(
                    "Release with invalid version", package_name, repository, tag=release.tag_name, version=version
                )
                continue
            valid.append((semver.Version.parse(version), release))

        valid.sort(key=lambda item: item[0], reverse=True)
        return [release for _, release in valid]

    def _report(self, message: str, package_name: str, repository: RepositoryDescriptor, **context: object) -> None:
        logger.warning(message, package=package_name, repository=repository.full_name, **context)
        if self._reporter is not None:
            self._reporter.capture(message, package=package_name, repository=repository.full_name, **context)

    async def get_all_packages_releases(self, discovered: list[DiscoveredPackage]) -> list[MergedPackageRelease]:
        """
        Get the releases of every discovered package in one list.

        Package names shared by several repositories are merged once.

        Returns:
            All the releases, newest first
        """
        names: dict[str, str] = {}
        for entry in discovered:
            for pkg in entry.packages:
                names.setdefault(pkg.name.lower(), pkg.name)

        results = await asyncio.gather(
            *(self.get_package_releases(name, discovered) for name in names.values()), return_exceptions=True
        )

        releases: list[MergedPackageRelease] = []
        for name, result in zip(names.values(), results, strict=True):
            if isinstance(result, Exception):
                logger.error("Could not load package releases, skipping", package=name, error=str(result))
                continue
            if isinstance(result, BaseException):
                raise result
            if result is not None:
                releases.extend(result.releases)
        return newest_first(releases)
