"""Thin async client for the GitHub REST and GraphQL APIs."""

import base64
from typing import Any

import httpx

from changeloghub import __version__
from changeloghub.exceptions import ResourceNotFoundError, UpstreamError
from changeloghub.logger import get_logger

logger = get_logger(__name__)

PER_PAGE = 100
API_VERSION = "2022-11-28"


class GitHubClient:
    """Issues GitHub API requests and maps failures to application errors.

    404 responses raise ``ResourceNotFoundError``; every other HTTP or
    transport failure raises ``UpstreamError``.
    """

    def __init__(
        self,
        token: str = "",
        api_url: str = "https://api.github.com",
        graphql_url: str = "https://api.github.com/graphql",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
            "User-Agent": f"changeloghub/{__version__}",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._graphql_url = graphql_url
        self._client = client or httpx.AsyncClient(
            base_url=api_url, headers=headers, timeout=timeout, follow_redirects=True
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:  # noqa: ANN401
        try:
            response = await self._client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 404:
                raise ResourceNotFoundError("github.resource.not_found", url=url) from e
            raise UpstreamError(
                "github.request.failed", retriable=status >= 500, status=status, url=url
            ) from e
        except httpx.HTTPError as e:
            raise UpstreamError("github.request.unreachable", retriable=True, error=str(e), url=url) from e
        return response.json()

    async def _get(self, url: str, **params: Any) -> Any:  # noqa: ANN401
        return await self._request("GET", url, params=params or None)

    # Releases and git data

    async def list_releases(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return await self._get(f"/repos/{owner}/{repo}/releases", per_page=PER_PAGE)

    async def list_tags(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return await self._get(f"/repos/{owner}/{repo}/tags", per_page=PER_PAGE)

    async def get_commit(self, owner: str, repo: str, ref: str) -> dict[str, Any]:
        return await self._get(f"/repos/{owner}/{repo}/commits/{ref}")

    async def get_tree(self, owner: str, repo: str, ref: str = "HEAD", recursive: bool = True) -> dict[str, Any]:
        if recursive:
            return await self._get(f"/repos/{owner}/{repo}/git/trees/{ref}", recursive=1)
        return await self._get(f"/repos/{owner}/{repo}/git/trees/{ref}")

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str | None = None) -> str:
        """
        Get a file's text contents.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path inside the repository
            ref: Optional branch, tag or commit

        Returns:
            Decoded file contents
        """
        params = {"ref": ref} if ref else {}
        data = await self._get(f"/repos/{owner}/{repo}/contents/{path}", **params)
        if isinstance(data, list):
            raise UpstreamError("github.content.is_directory", path=path)
        content = data.get("content") or ""
        if data.get("encoding") == "base64":
            return base64.b64decode(content).decode("utf-8")
        return content

    # Organization

    async def list_org_members(self, org: str) -> list[dict[str, Any]]:
        return await self._get(f"/orgs/{org}/members", per_page=PER_PAGE)

    # Issues, pull requests and discussions

    async def list_issues(self, owner: str, repo: str) -> list[dict[str, Any]]:
        issues = await self._get(f"/repos/{owner}/{repo}/issues", state="all", per_page=PER_PAGE)
        # The issues endpoint also returns pull requests
        return [issue for issue in issues if "pull_request" not in issue]

    async def list_pull_requests(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return await self._get(f"/repos/{owner}/{repo}/pulls", state="all", per_page=PER_PAGE)

    async def list_discussions(self, owner: str, repo: str) -> list[dict[str, Any]]:
        return await self._get(f"/repos/{owner}/{repo}/discussions", per_page=PER_PAGE)

    async def get_issue(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        return await self._get(f"/repos/{owner}/{repo}/issues/{number}")

    async def get_pull_request(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        return await self._get(f"/repos/{owner}/{repo}/pulls/{number}")

    async def get_discussion(self, owner: str, repo: str, number: int) -> dict[str, Any]:
        return await self._get(f"/repos/{owner}/{repo}/discussions/{number}")

    async def list_issue_comments(self, owner: str, repo: str, number: int) -> list[dict[str, Any]]:
        return await self._get(f"/repos/{owner}/{repo}/issues/{number}/comments", per_page=PER_PAGE)

    async def list_discussion_comments(self, owner: str, repo: str, number: int) -> list[dict[str, Any]]:
        return await self._get(f"/repos/{owner}/{repo}/discussions/{number}/comments", per_page=PER_PAGE)

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """
        Run a GraphQL query.

        Returns:
            The ``data`` member of the response

        Raises:
            UpstreamError: If the response carries GraphQL errors
        """
        payload = await self._request("POST", self._graphql_url, json={"query": query, "variables": variables})
        if payload.get("errors"):
            logger.warning("GraphQL query returned errors", errors=payload["errors"])
            raise UpstreamError("github.graphql.failed", error=str(payload["errors"]))
        return payload.get("data") or {}
