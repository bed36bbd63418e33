"""Path utilities for changeloghub."""

from pathlib import Path


def get_resources_dir() -> Path:
    """Get the resources directory path.

    Resources ship inside the package at src/changeloghub/resources.

    Returns:
        Path to the resources directory
    """
    # This file is at src/changeloghub/utils/paths.py
    return Path(__file__).parent.parent / "resources"
