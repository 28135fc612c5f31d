"""Cache entry model."""

from __future__ import annotations

import dataclasses
from typing import Any


@dataclasses.dataclass
class CacheEntry:
    """Cached value with the TTL chosen at insertion time."""

    key: str
    value: Any
    stored_at: float
    ttl_seconds: float
    quality: str | None = None

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl_seconds
