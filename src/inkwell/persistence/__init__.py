"""Bounded in-memory persistence for analysis results."""

from __future__ import annotations

from inkwell.core.config import AppSettings
from inkwell.persistence.memory_backend import ResultCache


def create_persistence(settings: AppSettings | None = None) -> ResultCache | None:
    """Create the result cache from application settings.

    Returns:
        A ResultCache, or None when caching is disabled.
    """
    if settings is None:
        settings = AppSettings()

    if not settings.cache.enabled:
        return None

    return ResultCache(max_entries=settings.cache.max_entries)
