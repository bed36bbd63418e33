"""Packages and releases API endpoints."""

from fastapi import APIRouter, Depends, Query, Request

from changeloghub.core.services import AppServices, get_services
from changeloghub.exceptions import ResourceNotFoundError
from changeloghub.logger import get_logger
from changeloghub.models.api import Feed, PaginatedReleases
from changeloghub.models.package import CategorizedPackage, DiscoveredPackage, PackageReleases
from changeloghub.services.feed import AGGREGATE_FEED_NAME, build_releases_feed

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["packages"])


@router.get("/packages", response_model=list[DiscoveredPackage])
async def list_packages(services: AppServices = Depends(get_services)) -> list[DiscoveredPackage]:
    """List the discovered packages of every tracked repository."""
    return await services.discoverer.get_or_discover()


@router.get("/packages/categorized", response_model=list[CategorizedPackage])
async def list_categorized_packages(services: AppServices = Depends(get_services)) -> list[CategorizedPackage]:
    """List the discovered packages grouped by category."""
    return await services.discoverer.get_or_discover_categorized()


@router.get("/packages/{package_name:path}/releases", response_model=PackageReleases)
async def get_package_releases(package_name: str, services: AppServices = Depends(get_services)) -> PackageReleases:
    """Get the merged releases of a single package."""
    discovered = await services.discoverer.get_or_discover()
    result = await services.merger.get_package_releases(package_name, discovered)
    if result is None:
        raise ResourceNotFoundError("packages.package.not_found", package=package_name)
    return result


@router.get("/packages/{package_name:path}/rss.json", response_model=Feed)
async def get_package_feed(
    package_name: str, request: Request, services: AppServices = Depends(get_services)
) -> Feed:
    """Get the releases feed of a package, or of every package with ``all``."""
    discovered = await services.discoverer.get_or_discover()
    if package_name.lower() == AGGREGATE_FEED_NAME.lower():
        display_name = AGGREGATE_FEED_NAME
        releases = await services.merger.get_all_packages_releases(discovered)
    else:
        result = await services.merger.get_package_releases(package_name, discovered)
        if result is None:
            raise ResourceNotFoundError("packages.package.not_found", package=package_name)
        display_name = result.releases_repo.pkg.name
        releases = result.releases

    logger.debug("Serving feed", package=display_name, items=len(releases))
    return build_releases_feed(display_name, releases, str(request.url))


@router.get("/releases", response_model=PaginatedReleases)
async def list_releases(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=200),
    services: AppServices = Depends(get_services),
) -> PaginatedReleases:
    """List the releases of every package, newest first."""
    discovered = await services.discoverer.get_or_discover()
    releases = await services.merger.get_all_packages_releases(discovered)
    start = (page - 1) * per_page
    return PaginatedReleases(
        page=page,
        per_page=per_page,
        total=len(releases),
        items=releases[start : start + per_page],
    )
