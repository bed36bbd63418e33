"""JSON Feed rendering of merged releases."""

from collections.abc import Iterable

from changeloghub.models.api.feed import Feed, FeedAuthor, FeedItem
from changeloghub.models.release import MergedPackageRelease

AGGREGATE_FEED_NAME = "All"


def build_releases_feed(package_name: str, releases: Iterable[MergedPackageRelease], feed_url: str) -> Feed:
    """
    Build the releases feed of a package, or of every package.

    Args:
        package_name: Display name of the package, ``All`` for the aggregate feed
        releases: Releases to list, in feed order
        feed_url: Public URL of the feed itself

    Returns:
        A JSON Feed 1.1 document
    """
    subject = "all the packages" if package_name.lower() == AGGREGATE_FEED_NAME.lower() else package_name
    return Feed(
        title=f"{package_name} releases",
        description=f"The releases feed for {subject}.",
        home_page_url=feed_url.removesuffix("/rss.json"),
        feed_url=feed_url,
        items=[_feed_item(release) for release in releases],
    )


def _feed_item(release: MergedPackageRelease) -> FeedItem:
    authors = []
    if release.author is not None and (release.author.name or release.author.login):
        authors.append(
            FeedAuthor(
                name=release.author.name or release.author.login or "",
                url=release.author.html_url,
                avatar=release.author.avatar_url,
            )
        )
    return FeedItem(
        id=str(release.id),
        url=release.html_url,
        title=f"{release.clean_name}@{release.clean_version}",
        summary=f"{release.clean_name} {release.clean_version} release",
        content_text=release.body or "",
        date_published=release.timestamp.isoformat(),
        authors=authors,
        tags=["prerelease"] if release.prerelease else [],
    )
