"""Changelog parsing."""

from .parser import parse_changelog

__all__ = ["parse_changelog"]
