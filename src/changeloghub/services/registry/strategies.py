"""Per-repository behavior, interpreted from registry data."""

import re

from changeloghub.models.release import RawRelease
from changeloghub.models.repository import RepositoryDescriptor, TagStrategy


def split_by_last(tag: str, separator: str) -> tuple[str, str]:
    """Split a string in two around the last occurrence of ``separator``.

    Without a separator the name is empty and the whole tag is the version.
    """
    index = tag.rfind(separator)
    if index == -1:
        return "", tag
    return tag[:index], tag[index + 1 :]


def strip_v(tag: str) -> str:
    return tag[1:] if tag.startswith("v") else tag


class RepositoryStrategy:
    """Capability interface of one repository: metadata, filtering, changelog rewrites."""

    def __init__(self, repository: RepositoryDescriptor) -> None:
        self.repository = repository
        self._rewrites = [
            (re.compile(rewrite.pattern, re.MULTILINE), rewrite.replacement)
            for rewrite in repository.changelog_rewrites
        ]

    def extract_metadata(self, tag: str) -> tuple[str, str]:
        """Map a tag to its ``(package name, version)``."""
        return extract_metadata(self.repository.tag_strategy, self.repository.repo_name, tag)

    def filter_release(self, release: RawRelease) -> bool:
        """Whether a release belongs to this repository entry."""
        release_filter = self.repository.release_filter
        if release_filter is None:
            return True
        tag = release.tag_name or ""
        if release_filter.tag_contains is not None and release_filter.tag_contains not in tag:
            return False
        if release_filter.tag_excludes is not None and release_filter.tag_excludes in tag:
            return False
        return True

    def rewrite_changelog(self, contents: str) -> str:
        """Apply the repository's changelog quirk fixes."""
        for pattern, replacement in self._rewrites:
            contents = pattern.sub(replacement, contents)
        return contents


def extract_metadata(strategy: TagStrategy, repo_name: str, tag: str) -> tuple[str, str]:
    """Interpret a tag strategy.

    Args:
        strategy: Registry tag strategy
        repo_name: Repository name, used as package name by single-package repos
        tag: Raw tag name

    Returns:
        Tuple of (package name, version)
    """
    if strategy == "split_last_at":
        return split_by_last(tag, "@")
    if strategy == "split_last_dash":
        return split_by_last(tag, "-")
    if strategy == "strip_v":
        return repo_name, strip_v(tag)
    if strategy == "at_or_strip_v":
        if "@" in tag:
            return split_by_last(tag, "@")
        return repo_name, strip_v(tag)
    raise ValueError(f"Unknown tag strategy: {strategy}")
