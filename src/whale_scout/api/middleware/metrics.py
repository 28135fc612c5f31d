"""Request timing and error counters for the HTTP API."""

from __future__ import annotations

import logging
import time
from collections import defaultdict, deque
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, Response
from starlette.routing import Match

from whale_scout.core.types import Clock

log = logging.getLogger(__name__)


def _summary(samples: deque[float]) -> dict[str, float | int]:
    if not samples:
        return {"count": 0, "avg_ms": 0.0, "min_ms": 0.0, "max_ms": 0.0, "latest_ms": 0.0}
    return {
        "count": len(samples),
        "avg_ms": round(sum(samples) / len(samples), 3),
        "min_ms": round(min(samples), 3),
        "max_ms": round(max(samples), 3),
        "latest_ms": round(samples[-1], 3),
    }


def format_uptime(seconds: float) -> str:
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


class PerformanceMonitor:
    """Response-time statistics, error counts and process uptime.

    Only the most recent ``window`` durations are kept per route and overall,
    so averages track recent behavior. ``requests_total`` counts every request.
    """

    def __init__(self, *, window: int = 1_000, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._started = clock()
        self._window = window
        self._overall: deque[float] = deque(maxlen=window)
        self._routes: dict[str, deque[float]] = defaultdict(lambda: deque(maxlen=self._window))
        self._errors: dict[str, int] = defaultdict(int)
        self.requests_total = 0

    def record(self, route: str, duration_ms: float, status_code: int) -> None:
        self.requests_total += 1
        self._overall.append(duration_ms)
        self._routes[route].append(duration_ms)
        if status_code >= 400:
            self._errors[f"http_{status_code}"] += 1

    def record_error(self, error_type: str) -> None:
        self._errors[error_type] += 1

    @property
    def uptime_seconds(self) -> float:
        return self._clock() - self._started

    def snapshot(self) -> dict[str, Any]:
        uptime = self.uptime_seconds
        return {
            "uptime": {"seconds": round(uptime, 3), "formatted": format_uptime(uptime)},
            "requests_total": self.requests_total,
            "response_time": _summary(self._overall),
            "routes": {route: _summary(samples) for route, samples in sorted(self._routes.items())},
            "errors": dict(self._errors),
        }


def _route_label(request: Request) -> str:
    # Route templates keep per-wallet paths from exploding the route table
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return f"{request.method} {getattr(route, 'path', request.url.path)}"
    return f"{request.method} unmatched"


def register_metrics_middleware(app: FastAPI, monitor: PerformanceMonitor) -> None:
    """Time every request and feed ``monitor``."""

    @app.middleware("http")
    async def record_request(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            monitor.record_error("server_error")
            monitor.record(_route_label(request), (time.perf_counter() - started) * 1000, 500)
            raise
        monitor.record(_route_label(request), (time.perf_counter() - started) * 1000, response.status_code)
        return response
