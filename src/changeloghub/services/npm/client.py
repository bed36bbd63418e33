"""npm registry lookups."""

from typing import Any
from urllib.parse import quote

import httpx

from changeloghub.exceptions import UpstreamError


class NpmRegistryClient:
    """Reads package manifests from an npm-compatible registry."""

    def __init__(
        self,
        registry_url: str = "https://registry.npmjs.org",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(base_url=registry_url, timeout=timeout)

    async def close(self) -> None:
        await self._client.aclose()

    async def get_latest(self, package_name: str) -> dict[str, Any] | None:
        """
        Get the manifest of a package's latest version.

        Args:
            package_name: Package name, scoped names included (``@sveltejs/kit``)

        Returns:
            The manifest, or None when the package is not published
        """
        url = f"/{quote(package_name, safe='@')}/latest"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as e:
            raise UpstreamError("npm.request.unreachable", retriable=True, error=str(e), package=package_name) from e

        if response.status_code == 404:
            return None
        if response.is_error:
            raise UpstreamError(
                "npm.request.failed",
                retriable=response.status_code >= 500,
                status=response.status_code,
                package=package_name,
            )
        return response.json()

    async def get_deprecation(self, package_name: str) -> bool | str:
        """
        Get the deprecation flag of a package.

        Returns:
            False when not deprecated, otherwise the deprecation message (or True)
        """
        manifest = await self.get_latest(package_name)
        if not manifest:
            return False
        deprecated = manifest.get("deprecated", False)
        if isinstance(deprecated, str):
            return deprecated or False
        return bool(deprecated)
