"""Scheduled refresh endpoint."""

import asyncio
import hmac

from fastapi import APIRouter, Depends, Header

from changeloghub.core.services import AppServices, get_services
from changeloghub.exceptions import AuthenticationError
from changeloghub.logger import get_logger
from changeloghub.models.api import RefreshResult
from changeloghub.models.repository import RepositoryDescriptor

logger = get_logger(__name__)
router = APIRouter(tags=["cron"])


@router.get("/cron", response_model=RefreshResult)
async def refresh_releases(
    authorization: str | None = Header(None),
    services: AppServices = Depends(get_services),
) -> RefreshResult:
    """Force a releases refresh of every tracked repository.

    Fresh releases also update the discovered packages in place, so readers
    never wait for a full discovery after a refresh.
    """
    secret = services.config.webhooks.cron_secret
    if not secret or not hmac.compare_digest((authorization or "").encode(), f"Bearer {secret}".encode()):
        raise AuthenticationError("cron.unauthorized")

    async def refresh(repository: RepositoryDescriptor) -> None:
        releases = await services.github_cache.fetch_and_cache_releases(repository)
        await services.discoverer.discover_releases(repository.repo_owner, repository.repo_name, releases)

    repositories = services.registry.unique_repositories()
    results = await asyncio.gather(*(refresh(repository) for repository in repositories), return_exceptions=True)

    outcome = RefreshResult()
    for repository, result in zip(repositories, results, strict=True):
        if isinstance(result, Exception):
            logger.error("Releases refresh failed", repository=repository.full_name, error=str(result))
            outcome.failed[repository.full_name] = str(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            outcome.refreshed.append(repository.full_name)
    logger.info("Releases refreshed", refreshed=len(outcome.refreshed), failed=len(outcome.failed))
    return outcome
