"""Repository registry."""

from .service import RepositoryRegistry
from .strategies import RepositoryStrategy, extract_metadata, split_by_last

__all__ = ["RepositoryRegistry", "RepositoryStrategy", "extract_metadata", "split_by_last"]
