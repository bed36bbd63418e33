"""Utilities for changeloghub."""

from changeloghub.utils.paths import get_resources_dir

__all__ = ["get_resources_dir"]
