"""Releases feeds."""

from .builder import AGGREGATE_FEED_NAME, build_releases_feed

__all__ = ["AGGREGATE_FEED_NAME", "build_releases_feed"]
