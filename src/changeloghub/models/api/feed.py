"""JSON Feed 1.1 models used for the releases feeds."""

from pydantic import BaseModel, Field


class FeedAuthor(BaseModel):
    name: str
    url: str | None = None
    avatar: str | None = None


class FeedItem(BaseModel):
    id: str
    url: str
    title: str
    summary: str
    content_text: str
    date_published: str
    authors: list[FeedAuthor] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class Feed(BaseModel):
    version: str = "https://jsonfeed.org/version/1.1"
    title: str
    description: str
    home_page_url: str
    feed_url: str
    language: str = "en"
    items: list[FeedItem] = Field(default_factory=list)
