"""Parsed changelog models."""

from pydantic import BaseModel, ConfigDict, Field


class ChangelogVersionEntry(BaseModel):
    """One version section of a Markdown changelog."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None
    title: str = ""
    date: str | None = None
    body: str = ""
    # Subsection heading -> list item lines; "_" collects every list item
    parsed: dict[str, list[str]] = Field(default_factory=lambda: {"_": []})


class Changelog(BaseModel):
    """A parsed changelog file."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    versions: list[ChangelogVersionEntry] = Field(default_factory=list)

    def find_version(self, version: str) -> ChangelogVersionEntry | None:
        """Return the first entry whose version contains ``version``."""
        for entry in self.versions:
            if entry.version and version in entry.version:
                return entry
        return None
