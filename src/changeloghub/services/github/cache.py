"""GitHub fetch layer with caching.

Every read goes through the CacheHandler first; on a miss the data is fetched
from GitHub (or the npm registry), normalized and stored with a per-namespace
TTL. Releases come either from the GitHub Releases API or, for repositories in
changelog mode, are synthesized from tags plus the parsed changelog file.
"""

import asyncio
import hashlib
import json
import posixpath
from typing import Any, Literal

from changeloghub.exceptions import ResourceNotFoundError, UpstreamError
from changeloghub.logger import get_logger
from changeloghub.models.changelog import Changelog
from changeloghub.models.item import ItemDetails, ItemKind, LinkedItem
from changeloghub.models.release import GitHubUser, RawRelease, newest_first
from changeloghub.models.repository import RepositoryDescriptor
from changeloghub.services.cache import CacheHandler
from changeloghub.services.changelog import parse_changelog
from changeloghub.services.npm.client import NpmRegistryClient
from changeloghub.services.registry import RepositoryStrategy

from .client import GitHubClient

logger = get_logger(__name__)

# TTLs in seconds
RELEASES_TTL = 60 * 15
DESCRIPTIONS_TTL = 60 * 60 * 24 * 10
MEMBERS_TTL = 60 * 60 * 24 * 2
ITEM_DETAILS_TTL = 60 * 60 * 2
ITEM_LIST_TTL = 60 * 60 * 2
DEPRECATION_TTL = 60 * 60 * 24 * 2

MISSING_CHANGELOG_BODY = "_No changelog provided for this version._"

# Path segments that never hold a published package.json
IGNORED_TREE_SEGMENTS = {"test", "tests", "__tests__", "fixtures", "node_modules", "playgrounds", "examples"}

ItemListKind = Literal["issues", "prs", "discussions"]

LINKED_PRS_QUERY = """
query ($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    issue(number: $number) {
      timelineItems(first: 100, itemTypes: [CONNECTED_EVENT, CROSS_REFERENCED_EVENT]) {
        nodes {
          ... on ConnectedEvent {
            subject { ... on PullRequest { number title url state merged repository { nameWithOwner } } }
          }
          ... on CrossReferencedEvent {
            source { ... on PullRequest { number title url state merged repository { nameWithOwner } } }
          }
        }
      }
    }
  }
}
"""

CLOSING_ISSUES_QUERY = """
query ($owner: String!, $name: String!, $number: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      closingIssuesReferences(first: 50) {
        nodes { number title url state repository { nameWithOwner } }
      }
    }
  }
}
"""


def repo_key(owner: str, repo: str, kind: str, extra: str | int | None = None) -> str:
    """Cache key of a repository-scoped entry."""
    key = f"repo:{owner}/{repo}:{kind}"
    return f"{key}:{extra}" if extra is not None else key


def owner_key(owner: str, kind: str) -> str:
    return f"owner:{owner}:{kind}"


def package_key(name: str, kind: str) -> str:
    return f"package:{name}:{kind}"


def stable_release_id(owner: str, repo: str, tag: str) -> int:
    """Identifier of a changelog-derived release.

    A 53-bit BLAKE2b digest of the tag's full name: stable across refreshes,
    collision resistant, and still an exact integer for JSON consumers.
    """
    digest = hashlib.blake2b(f"{owner}/{repo}@{tag}".encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big") & ((1 << 53) - 1)


class GitHubCache:
    """A fetch layer to reach the GitHub API with an additional caching mechanism."""

    def __init__(self, cache: CacheHandler, github: GitHubClient, npm: NpmRegistryClient) -> None:
        self._cache = cache
        self._github = github
        self._npm = npm

    @property
    def cache(self) -> CacheHandler:
        return self._cache

    # Releases

    async def get_releases(self, repository: RepositoryDescriptor) -> list[RawRelease]:
        """
        Get all the releases of a repository.

        Args:
            repository: Registry entry of the repository

        Returns:
            The releases, either cached or fetched
        """
        owner, repo = repository.repo_owner, repository.repo_name
        cache_key = repo_key(owner, repo, "releases")

        cached = await self._cache.get(cache_key)
        if cached is not None:
            logger.debug("Cache hit", key=cache_key)
            return [RawRelease.model_validate(release) for release in cached]

        logger.info("Cache miss, fetching from GitHub", key=cache_key, mode=repository.changes_mode)
        releases = await self._fetch_releases(repository)
        await self._store_releases(cache_key, releases)
        return releases

    async def fetch_and_cache_releases(self, repository: RepositoryDescriptor) -> list[RawRelease]:
        """
        Fetch the latest releases, bypassing the cache, and merge them into it.

        Releases already cached are kept (deduplicated by id) so history older
        than one API page is not lost.

        Returns:
            The freshly fetched releases
        """
        owner, repo = repository.repo_owner, repository.repo_name
        cache_key = repo_key(owner, repo, "releases")

        releases = await self._fetch_releases(repository)

        existing = await self._cache.get(cache_key) or []
        merged: dict[int, RawRelease] = {release.id: release for release in releases}
        for raw in existing:
            release = RawRelease.model_validate(raw)
            merged.setdefault(release.id, release)

        await self._store_releases(cache_key, newest_first(merged.values()))
        logger.info("Refreshed releases", repository=repository.full_name, fetched=len(releases))
        return releases

    async def _store_releases(self, cache_key: str, releases: list[RawRelease]) -> None:
        await self._cache.set(cache_key, [release.model_dump(mode="json") for release in releases], RELEASES_TTL)

    async def _fetch_releases(self, repository: RepositoryDescriptor) -> list[RawRelease]:
        if repository.changes_mode == "changelog":
            return await self._releases_from_changelog(repository)
        data = await self._github.list_releases(repository.repo_owner, repository.repo_name)
        return [RawRelease.model_validate(release) for release in data]

    async def _releases_from_changelog(self, repository: RepositoryDescriptor) -> list[RawRelease]:
        """Synthesize releases from the repository's tags and changelog file."""
        owner, repo = repository.repo_owner, repository.repo_name
        strategy = RepositoryStrategy(repository)

        tags = await self._github.list_tags(owner, repo)
        contents = await self._github.get_file_content(
            owner, repo, repository.changelog_path, ref=repository.changelog_ref
        )
        changelog = parse_changelog(strategy.rewrite_changelog(contents))

        commits = await asyncio.gather(
            *(self._github.get_commit(owner, repo, tag["commit"]["sha"]) for tag in tags)
        )

        return [
            self._synthesize_release(repository, strategy, changelog, tag["name"], commit)
            for tag, commit in zip(tags, commits, strict=True)
        ]

    def _synthesize_release(
        self,
        repository: RepositoryDescriptor,
        strategy: RepositoryStrategy,
        changelog: Changelog,
        tag_name: str,
        commit: dict[str, Any],
    ) -> RawRelease:
        owner, repo = repository.repo_owner, repository.repo_name
        clean_name, clean_version = strategy.extract_metadata(tag_name)
        entry = changelog.find_version(clean_version)

        git_commit = commit.get("commit") or {}
        git_author = git_commit.get("author") or {}
        git_committer = git_commit.get("committer") or {}
        github_author = commit.get("author") or {}

        return RawRelease(
            id=stable_release_id(owner, repo, tag_name),
            tag_name=tag_name,
            name=f"{clean_name}@{clean_version}",
            body=entry.body if entry else MISSING_CHANGELOG_BODY,
            created_at=git_committer.get("date") or git_author["date"],
            published_at=None,
            author=GitHubUser(
                login=github_author.get("login"),
                name=git_author.get("name"),
                email=git_author.get("email"),
                html_url=github_author.get("html_url"),
                avatar_url=github_author.get("avatar_url"),
            ),
            html_url=f"https://github.com/{owner}/{repo}/releases/tag/{tag_name}",
            prerelease="-" in tag_name,
        )

    async def delete_repo_entry(self, owner: str, repo: str, kind: str = "releases") -> bool:
        """
        Delete a repository entry from the cache.

        Returns:
            Whether an entry was actually deleted
        """
        return await self._cache.delete(repo_key(owner, repo, kind))

    async def exists(self, owner: str, repo: str, kind: str = "releases") -> bool:
        return await self._cache.exists(repo_key(owner, repo, kind))

    # Package descriptions

    async def get_descriptions(self, owner: str, repo: str) -> dict[str, str]:
        """
        Get the descriptions of every package.json of a repository.

        Returns:
            A mapping of package.json path to its description
        """
        cache_key = repo_key(owner, repo, "descriptions")
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        tree = await self._github.get_tree(owner, repo)
        paths = [
            item["path"]
            for item in tree.get("tree", [])
            if item.get("type") == "blob"
            and posixpath.basename(item["path"]) == "package.json"
            and not IGNORED_TREE_SEGMENTS.intersection(item["path"].split("/"))
        ]

        contents = await asyncio.gather(*(self._github.get_file_content(owner, repo, path) for path in paths))

        descriptions: dict[str, str] = {}
        for path, content in zip(paths, contents, strict=True):
            try:
                manifest = json.loads(content)
            except json.JSONDecodeError:
                logger.warning("Invalid package.json", repository=f"{owner}/{repo}", path=path)
                continue
            if isinstance(manifest, dict):
                descriptions[path] = manifest.get("description") or ""

        await self._cache.set(cache_key, descriptions, DESCRIPTIONS_TTL)
        return descriptions

    # Organization

    async def get_organization_members(self, owner: str) -> list[str]:
        """
        Get the public members of an organization.

        Returns:
            Member logins; empty when the list is unavailable
        """
        cache_key = owner_key(owner, "members")
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            members = await self._github.list_org_members(owner)
        except (UpstreamError, ResourceNotFoundError) as e:
            # Many owners have no public member list
            logger.warning("Could not list organization members", owner=owner, error=str(e))
            return []

        logins = [member["login"] for member in members]
        await self._cache.set(cache_key, logins, MEMBERS_TTL)
        return logins

    # Issues, pull requests and discussions

    async def get_item_details(self, owner: str, repo: str, kind: ItemKind, number: int) -> ItemDetails | None:
        """
        Get an issue, pull request or discussion with its comments and linked items.

        Returns:
            The details, or None when the item does not exist
        """
        cache_key = repo_key(owner, repo, kind, number)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return ItemDetails.model_validate(cached)

        try:
            details = await self._fetch_item_details(owner, repo, kind, number)
        except ResourceNotFoundError:
            logger.info("Item not found", repository=f"{owner}/{repo}", kind=kind, number=number)
            return None

        await self._cache.set(cache_key, details.model_dump(mode="json"), ITEM_DETAILS_TTL)
        return details

    async def _fetch_item_details(self, owner: str, repo: str, kind: ItemKind, number: int) -> ItemDetails:
        if kind == "discussion":
            info, comments = await asyncio.gather(
                self._github.get_discussion(owner, repo, number),
                self._github.list_discussion_comments(owner, repo, number),
            )
            return ItemDetails(kind=kind, info=info, comments=comments)

        if kind == "pr":
            info, comments, linked = await asyncio.gather(
                self._github.get_pull_request(owner, repo, number),
                self._github.list_issue_comments(owner, repo, number),
                self._get_closing_issues(owner, repo, number),
            )
        else:
            info, comments, linked = await asyncio.gather(
                self._github.get_issue(owner, repo, number),
                self._github.list_issue_comments(owner, repo, number),
                self._get_linked_pull_requests(owner, repo, number),
            )
            if "pull_request" in info:
                # Issue numbers are shared with PRs; do not show a PR as an issue
                raise ResourceNotFoundError("github.issue.not_found", number=number)
        return ItemDetails(kind=kind, info=info, comments=comments, linked=linked)

    async def _get_linked_pull_requests(self, owner: str, repo: str, number: int) -> list[LinkedItem]:
        data = await self._github.graphql(LINKED_PRS_QUERY, {"owner": owner, "name": repo, "number": number})
        issue = (data.get("repository") or {}).get("issue") or {}
        nodes = (issue.get("timelineItems") or {}).get("nodes") or []

        linked: dict[str, LinkedItem] = {}
        for node in nodes:
            pr = node.get("subject") or node.get("source")
            if not pr or "number" not in pr:
                continue
            item = _linked_item(pr)
            linked.setdefault(item.url, item)
        return list(linked.values())

    async def _get_closing_issues(self, owner: str, repo: str, number: int) -> list[LinkedItem]:
        data = await self._github.graphql(CLOSING_ISSUES_QUERY, {"owner": owner, "name": repo, "number": number})
        pull_request = (data.get("repository") or {}).get("pullRequest") or {}
        nodes = (pull_request.get("closingIssuesReferences") or {}).get("nodes") or []
        return [_linked_item(node) for node in nodes if node]

    async def get_issues(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return await self._get_item_list(owner, repo, "issues")

    async def get_pull_requests(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return await self._get_item_list(owner, repo, "prs")

    async def get_discussions(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return await self._get_item_list(owner, repo, "discussions")

    async def _get_item_list(self, owner: str, repo: str, kind: ItemListKind) -> list[dict[str, Any]]:
        cache_key = repo_key(owner, repo, kind)
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return cached

        if kind == "issues":
            items = await self._github.list_issues(owner, repo)
        elif kind == "prs":
            items = await self._github.list_pull_requests(owner, repo)
        else:
            items = await self._github.list_discussions(owner, repo)

        await self._cache.set(cache_key, items, ITEM_LIST_TTL)
        return items

    # Registry

    async def get_package_deprecation(self, package_name: str) -> bool | str:
        """
        Get whether a package is deprecated on the registry.

        Only non-deprecated results are cached: a deprecation flag may be
        transient and must not stick for the whole TTL.

        Returns:
            False, or the deprecation message (True when the registry gives no message)
        """
        cache_key = package_key(package_name, "deprecation")
        cached = await self._cache.get(cache_key)
        if cached is not None:
            return False

        deprecated = await self._npm.get_deprecation(package_name)
        if not deprecated:
            await self._cache.set(cache_key, {"deprecated": False}, DEPRECATION_TTL)
        return deprecated


def _linked_item(node: dict[str, Any]) -> LinkedItem:
    return LinkedItem(
        number=node["number"],
        title=node.get("title") or "",
        url=node.get("url") or "",
        state=node.get("state"),
        merged=node.get("merged"),
        repository=(node.get("repository") or {}).get("nameWithOwner"),
    )
