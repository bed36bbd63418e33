"""changeloghub: release aggregation for a family of GitHub repositories."""

__version__ = "0.1.0"
