"""Quality-adaptive TTL cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

from whale_scout.cache.models import CacheEntry
from whale_scout.cache.ttl_cache import TTLCache

if TYPE_CHECKING:
    from whale_scout.core.config import CacheConfig

__all__ = ["CacheEntry", "TTLCache", "create_wallet_cache"]


def create_wallet_cache(config: CacheConfig) -> TTLCache:
    """Build the wallet cache from ``CacheConfig``."""
    return TTLCache(
        max_entries=config.max_entries,
        default_ttl_seconds=config.default_ttl_seconds,
        quality_ttls=config.quality_ttls,
    )
