"""Release listing API models."""

from pydantic import BaseModel, Field

from changeloghub.models.release import MergedPackageRelease


class PaginatedReleases(BaseModel):
    """One page of the all-packages release list."""

    page: int
    per_page: int
    total: int
    items: list[MergedPackageRelease] = Field(default_factory=list)
