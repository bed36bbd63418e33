"""Issue, pull request and discussion models."""

from typing import Any, Literal

from pydantic import BaseModel, Field

ItemKind = Literal["issue", "pr", "discussion"]


class LinkedItem(BaseModel):
    """An issue or pull request cross-linked to another item."""

    number: int
    title: str
    url: str
    state: str | None = None
    merged: bool | None = None
    repository: str | None = None  # "owner/name"


class ItemDetails(BaseModel):
    """A single issue, pull request or discussion with its comments."""

    kind: ItemKind
    info: dict[str, Any]
    comments: list[dict[str, Any]] = Field(default_factory=list)
    linked: list[LinkedItem] = Field(default_factory=list)
