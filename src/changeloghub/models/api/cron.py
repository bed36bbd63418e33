"""Scheduled refresh API models."""

from pydantic import BaseModel, Field


class RefreshResult(BaseModel):
    """Outcome of a forced releases refresh."""

    refreshed: list[str] = Field(default_factory=list)
    failed: dict[str, str] = Field(default_factory=dict)  # repository -> error
