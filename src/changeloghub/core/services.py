"""Application service container.

Services are created once per process in the FastAPI lifespan and handed to
the routers through ``Depends(get_services)``.
"""

from dataclasses import dataclass

from fastapi import Request

from changeloghub.logger import get_logger
from changeloghub.models.app_config import AppConfig
from changeloghub.services.cache import CacheHandler, DurableStore, RedisJsonStore
from changeloghub.services.github import GitHubCache, GitHubClient
from changeloghub.services.npm import NpmRegistryClient
from changeloghub.services.packages import ErrorReporter, PackageDiscoverer, ReleaseMerger
from changeloghub.services.registry import RepositoryRegistry

logger = get_logger(__name__)


@dataclass
class AppServices:
    config: AppConfig
    registry: RepositoryRegistry
    cache: CacheHandler
    github: GitHubClient
    npm: NpmRegistryClient
    github_cache: GitHubCache
    discoverer: PackageDiscoverer
    merger: ReleaseMerger
    store: DurableStore | None = None

    async def aclose(self) -> None:
        """Release the HTTP clients and the store connection."""
        await self.github.close()
        await self.npm.close()
        if isinstance(self.store, RedisJsonStore):
            await self.store.close()


def build_services(
    config: AppConfig,
    registry: RepositoryRegistry | None = None,
    github: GitHubClient | None = None,
    npm: NpmRegistryClient | None = None,
    store: DurableStore | None = None,
    error_reporter: ErrorReporter | None = None,
) -> AppServices:
    """
    Wire every service from the configuration.

    Args:
        config: Application configuration
        registry: Repository registry; loaded from ``config.registry.path``
            or the bundled resource when omitted
        github: GitHub client override
        npm: npm registry client override
        store: Durable store override; created from ``cache.redis_url`` in
            production mode when omitted
        error_reporter: Optional receiver of release data anomalies

    Returns:
        The service container
    """
    if registry is None:
        registry = RepositoryRegistry.load(config.registry.path)
    if github is None:
        github = GitHubClient(
            token=config.github.token,
            api_url=config.github.api_url,
            graphql_url=config.github.graphql_url,
            timeout=config.advanced.http_timeout,
        )
    if npm is None:
        npm = NpmRegistryClient(registry_url=config.npm.registry_url, timeout=config.advanced.http_timeout)
    if store is None and not config.cache.is_dev:
        store = RedisJsonStore.from_url(config.cache.redis_url)

    cache = CacheHandler(store, is_dev=config.cache.is_dev)
    github_cache = GitHubCache(cache, github, npm)
    logger.info(
        "Services ready",
        cache_mode=config.cache.mode,
        repositories=len(registry.repositories),
        authenticated=bool(config.github.token),
    )
    return AppServices(
        config=config,
        registry=registry,
        cache=cache,
        github=github,
        npm=npm,
        github_cache=github_cache,
        discoverer=PackageDiscoverer(github_cache, registry),
        merger=ReleaseMerger(github_cache, error_reporter),
        store=store,
    )


def get_services(request: Request) -> AppServices:
    """FastAPI dependency returning the process-wide services."""
    return request.app.state.services
