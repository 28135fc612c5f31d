"""Bounded TTL cache whose entry lifetime depends on the value's quality."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Mapping
from typing import Any

from whale_scout.cache.models import CacheEntry
from whale_scout.core.types import Clock

log = logging.getLogger(__name__)


class TTLCache:
    """Dict-backed cache with per-quality TTLs and single-entry eviction.

    Stale entries read as absent but stay in place until evicted, so
    ``get_stale`` can still hand them out as a last resort. When an insert
    pushes the size over ``max_entries`` the one entry with the oldest
    ``stored_at`` is dropped.

    Not locked: callers mutate it from a single coroutine at a time.
    """

    def __init__(
        self,
        max_entries: int = 500,
        default_ttl_seconds: float = 6 * 3600.0,
        quality_ttls: Mapping[str, float] | None = None,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self._max_entries = max_entries
        self._default_ttl = default_ttl_seconds
        self._quality_ttls = dict(quality_ttls or {})
        self._clock = clock
        self._store: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any | None:
        """Return the value if present and fresh, else None."""
        entry = self._store.get(key)
        if entry is None or not entry.is_fresh(self._clock()):
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def get_stale(self, key: str) -> Any | None:
        """Return the value regardless of freshness."""
        entry = self._store.get(key)
        return entry.value if entry is not None else None

    def put(self, key: str, value: Any, quality: str | None = None) -> None:
        ttl = self._quality_ttls.get(quality, self._default_ttl) if quality else self._default_ttl
        # Re-insert so dict order follows stored_at
        self._store.pop(key, None)
        self._store[key] = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock(),
            ttl_seconds=ttl,
            quality=quality,
        )
        if len(self._store) > self._max_entries:
            oldest = min(self._store.values(), key=lambda e: e.stored_at)
            del self._store[oldest.key]
            log.debug("Evicted cache entry %s", oldest.key)

    def split_by_freshness(self, keys: Iterable[str]) -> tuple[list[str], list[str]]:
        """Partition ``keys`` into (fresh, stale_or_absent), preserving order."""
        now = self._clock()
        fresh: list[str] = []
        missing: list[str] = []
        for key in keys:
            entry = self._store.get(key)
            if entry is not None and entry.is_fresh(now):
                fresh.append(key)
            else:
                missing.append(key)
        return fresh, missing

    def invalidate(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()
        self._hits = 0
        self._misses = 0

    def stats(self) -> dict[str, Any]:
        lookups = self._hits + self._misses
        return {
            "size": len(self._store),
            "max_entries": self._max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0,
        }

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store
