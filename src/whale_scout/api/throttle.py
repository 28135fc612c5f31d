"""Inbound per-client request limits for the HTTP API.

Every route group ("refresh", "whales", "high_value", "api") gets its own
sliding window per client address, each backed by a ``RateLimiter`` in
non-blocking mode. Over the limit, the request is refused with
``RateLimitedError`` (HTTP 429) instead of being queued.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from fastapi import Request

from whale_scout.core.config import ThrottleConfig
from whale_scout.core.types import Clock
from whale_scout.exceptions import RateLimitedError
from whale_scout.resilience import RateLimiter

log = logging.getLogger(__name__)


class RequestThrottle:
    """Per-group, per-client sliding windows."""

    def __init__(self, config: ThrottleConfig, *, clock: Clock = time.monotonic) -> None:
        self._config = config
        self._clock = clock
        self._limits: dict[str, tuple[int, float]] = {
            "refresh": (config.refresh_limit, config.refresh_window_seconds),
            "whales": (config.whales_limit, config.whales_window_seconds),
            "high_value": (config.high_value_limit, config.high_value_window_seconds),
            "api": (config.api_limit, config.api_window_seconds),
        }
        self._windows: dict[tuple[str, str], RateLimiter] = {}
        self.rejected = 0

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def tracked_clients(self) -> int:
        return len(self._windows)

    def check(self, group: str, client: str) -> None:
        """Count one request from ``client`` against ``group``.

        Raises ``RateLimitedError`` carrying the seconds until a slot frees up.
        """
        if not self._config.enabled:
            return
        limit, window = self._limits[group]
        key = (group, client)
        limiter = self._windows.get(key)
        if limiter is None:
            if len(self._windows) >= self._config.max_clients:
                self._prune()
            limiter = RateLimiter(
                limit,
                limit,
                window_seconds=window,
                burst_window_seconds=window,
                clock=self._clock,
            )
            self._windows[key] = limiter

        retry_after = limiter.try_acquire()
        if retry_after > 0:
            self.rejected += 1
            log.info("Throttled %s on %s, retry in %.1fs", client, group, retry_after)
            raise RateLimitedError(
                f"Too many {group} requests: max {limit} per {window:g}s",
                retry_after=retry_after,
            )

    def _prune(self) -> None:
        for key in [k for k, limiter in self._windows.items() if limiter.idle]:
            del self._windows[key]


def client_key(request: Request) -> str:
    return request.client.host if request.client is not None else "unknown"


def throttle(group: str) -> Callable[[Request], None]:
    """Dependency that applies the ``group`` limit to the calling client."""

    def _check(request: Request) -> None:
        throttles: RequestThrottle | None = getattr(request.app.state, "throttle", None)
        if throttles is not None:
            throttles.check(group, client_key(request))

    return _check
