"""Package discovery and release merging."""

from .discoverer import PackageDiscoverer, resolve_description
from .memo import CachedComputation
from .releases import ErrorReporter, ReleaseMerger

__all__ = ["CachedComputation", "ErrorReporter", "PackageDiscoverer", "ReleaseMerger", "resolve_description"]
