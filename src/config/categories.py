# src/config/categories.py — v1
"""Declarative category table for the transient tier.

Each category is an independent partition with its own TTL and capacity.
Overrides from Settings.category_overrides are merged on top.
"""

from __future__ import annotations

from gencache.cache.models import StoreConfig

HOUR = 60 * 60
DAY = 24 * HOUR

# Fallback for categories not listed below.
DEFAULT_CONFIG = StoreConfig(max_age=DAY, max_entries=100)

DEFAULT_CATEGORIES: dict[str, StoreConfig] = {
    # Application state snapshots
    "materials": StoreConfig(max_age=DAY, max_entries=100),
    "journeys": StoreConfig(max_age=DAY, max_entries=50),
    "progress": StoreConfig(max_age=HOUR, max_entries=200),
    "analytics": StoreConfig(max_age=HOUR, max_entries=100),
    # Generated content
    "tts": StoreConfig(max_age=7 * DAY, max_entries=500),
    "audio": StoreConfig(max_age=7 * DAY, max_entries=500),
    "video": StoreConfig(max_age=7 * DAY, max_entries=100),
    "scene": StoreConfig(max_age=7 * DAY, max_entries=100),
    "image": StoreConfig(max_age=7 * DAY, max_entries=200),
    "explanation": StoreConfig(max_age=DAY, max_entries=200),
    "quiz": StoreConfig(max_age=DAY, max_entries=200),
    "question": StoreConfig(max_age=DAY, max_entries=200),
    "text": StoreConfig(max_age=DAY, max_entries=200),
}

# Categories holding per-owner state, purged by ContentCache.invalidate_owner.
OWNER_SCOPED_CATEGORIES: list[str] = ["materials", "journeys", "progress", "analytics"]

# Offline actions wait for sync longer than regular analytics snapshots.
OFFLINE_ACTIONS_MAX_AGE = 7 * DAY


def resolve_categories(
    overrides: dict[str, StoreConfig] | None = None,
) -> dict[str, StoreConfig]:
    """Merge overrides over the default table."""
    table = dict(DEFAULT_CATEGORIES)
    if overrides:
        table.update(overrides)
    return table
