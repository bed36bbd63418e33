"""Repository registry models."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

DEFAULT_OWNER = "sveltejs"

ChangesMode = Literal["releases", "changelog"]

TagStrategy = Literal["split_last_at", "split_last_dash", "strip_v", "at_or_strip_v"]


class Category(BaseModel):
    """A group of repositories shown together."""

    slug: str
    name: str


class ReleaseFilter(BaseModel):
    """Tag-based filter applied to raw releases.

    A release passes when its tag contains ``tag_contains`` (if set) and does
    not contain ``tag_excludes`` (if set).
    """

    tag_contains: str | None = None
    tag_excludes: str | None = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "ReleaseFilter":
        if self.tag_contains is None and self.tag_excludes is None:
            raise ValueError("release_filter needs tag_contains or tag_excludes")
        return self


class ChangelogRewrite(BaseModel):
    """Multiline regex substitution applied to a changelog before parsing."""

    pattern: str
    replacement: str


class RepositoryDescriptor(BaseModel):
    """One tracked upstream repository."""

    category: Category
    repo_owner: str = DEFAULT_OWNER
    repo_name: str
    changes_mode: ChangesMode = "releases"
    tag_strategy: TagStrategy = "split_last_at"
    release_filter: ReleaseFilter | None = None
    changelog_rewrites: list[ChangelogRewrite] = Field(default_factory=list)
    changelog_path: str = "CHANGELOG.md"
    changelog_ref: str | None = None  # Branch override for repos whose default branch lacks the changelog
    registry_excluded: bool = False  # Packages not published to the npm registry
    directory_overrides: dict[str, str] = Field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    def same_repository(self, owner: str, name: str) -> bool:
        return self.repo_owner.lower() == owner.lower() and self.repo_name.lower() == name.lower()


class RepositorySummary(BaseModel):
    """Repository identity as exposed to API consumers."""

    category: Category
    repo_owner: str
    repo_name: str
    changes_mode: ChangesMode

    @classmethod
    def from_descriptor(cls, repository: RepositoryDescriptor) -> "RepositorySummary":
        return cls(
            category=repository.category,
            repo_owner=repository.repo_owner,
            repo_name=repository.repo_name,
            changes_mode=repository.changes_mode,
        )
