"""Shared fixtures for the changeloghub tests."""

import pytest
from fakes import GITHUB_API, NPM_REGISTRY, FakeClock, FakeStore, FakeUpstream

from changeloghub.services.cache import CacheHandler
from changeloghub.services.github import GitHubCache, GitHubClient
from changeloghub.services.npm import NpmRegistryClient


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> FakeStore:
    return FakeStore(clock)


@pytest.fixture
def github_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def npm_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def dev_cache(clock: FakeClock) -> CacheHandler:
    return CacheHandler(None, is_dev=True, clock=clock)


@pytest.fixture
def github_cache(dev_cache: CacheHandler, github_upstream: FakeUpstream, npm_upstream: FakeUpstream) -> GitHubCache:
    github = GitHubClient(client=github_upstream.client(GITHUB_API))
    npm = NpmRegistryClient(client=npm_upstream.client(NPM_REGISTRY))
    return GitHubCache(dev_cache, github, npm)
