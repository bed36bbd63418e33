"""Repository registry: the static list of tracked repositories."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from changeloghub.exceptions import OperationalError
from changeloghub.logger import get_logger
from changeloghub.models.repository import Category, RepositoryDescriptor
from changeloghub.utils import get_resources_dir

logger = get_logger(__name__)

DEFAULT_REGISTRY_FILE = "repositories.yaml"


class RepositoryRegistry:
    """
    Holds the tracked repositories in registry order.

    Registry order matters: when two repositories could both claim the same
    package version, the one listed first wins.
    """

    def __init__(self, repositories: list[RepositoryDescriptor]) -> None:
        self._repositories = list(repositories)

    @classmethod
    def load(cls, path: Path | None = None) -> "RepositoryRegistry":
        """
        Load the registry from a YAML file.

        Args:
            path: Registry file; defaults to the bundled resources/repositories.yaml

        Returns:
            Loaded registry

        Raises:
            OperationalError: If the file is missing or malformed
        """
        registry_path = path or get_resources_dir() / DEFAULT_REGISTRY_FILE
        if not registry_path.exists():
            raise OperationalError("registry.file.not_found", path=str(registry_path))

        with open(registry_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        try:
            repositories = cls._parse(data)
        except (PydanticValidationError, AttributeError, KeyError, TypeError) as e:
            raise OperationalError("registry.file.invalid", path=str(registry_path), error=str(e)) from e

        logger.info("Loaded repository registry", path=str(registry_path), count=len(repositories))
        return cls(repositories)

    @staticmethod
    def _parse(data: dict[str, Any]) -> list[RepositoryDescriptor]:
        repositories = []
        for category_data in data.get("categories", []):
            category = Category(slug=category_data["slug"], name=category_data["name"])
            for repository_data in category_data.get("repositories", []):
                repositories.append(RepositoryDescriptor(category=category, **repository_data))
        return repositories

    @property
    def repositories(self) -> list[RepositoryDescriptor]:
        return list(self._repositories)

    @property
    def categories(self) -> list[Category]:
        """Categories in order of first appearance."""
        seen: dict[str, Category] = {}
        for repository in self._repositories:
            seen.setdefault(repository.category.slug, repository.category)
        return list(seen.values())

    def unique_repositories(self) -> list[RepositoryDescriptor]:
        """One descriptor per GitHub repository, first entry wins."""
        seen: set[str] = set()
        unique = []
        for repository in self._repositories:
            key = repository.full_name.lower()
            if key not in seen:
                seen.add(key)
                unique.append(repository)
        return unique

    def find(self, owner: str, name: str) -> list[RepositoryDescriptor]:
        """All registry entries for a GitHub repository (a repo may appear in several categories)."""
        return [repository for repository in self._repositories if repository.same_repository(owner, name)]
