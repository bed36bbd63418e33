"""npm registry access."""

from .client import NpmRegistryClient

__all__ = ["NpmRegistryClient"]
