"""Tests for the request performance monitor."""

from __future__ import annotations

import pytest

from whale_scout.api.middleware.metrics import PerformanceMonitor, format_uptime


class TestPerformanceMonitor:
    def test_empty_snapshot(self, clock) -> None:
        snap = PerformanceMonitor(clock=clock).snapshot()
        assert snap["requests_total"] == 0
        assert snap["response_time"]["count"] == 0
        assert snap["errors"] == {}
        assert snap["uptime"] == {"seconds": 0, "formatted": "0s"}

    def test_records_timing_per_route_and_errors(self, clock) -> None:
        monitor = PerformanceMonitor(clock=clock)
        monitor.record("GET /api/whales", 10.0, 200)
        monitor.record("GET /api/whales", 30.0, 200)
        monitor.record("POST /api/refresh/{address}", 50.0, 502)
        monitor.record_error("server_error")

        snap = monitor.snapshot()
        assert snap["requests_total"] == 3
        assert snap["response_time"]["avg_ms"] == pytest.approx(30.0)
        assert snap["response_time"]["min_ms"] == 10.0
        assert snap["response_time"]["max_ms"] == 50.0
        assert snap["response_time"]["latest_ms"] == 50.0
        assert snap["routes"]["GET /api/whales"]["count"] == 2
        assert snap["errors"] == {"http_502": 1, "server_error": 1}

    def test_keeps_recent_window_but_counts_all(self, clock) -> None:
        monitor = PerformanceMonitor(window=2, clock=clock)
        for ms in (100.0, 1.0, 3.0):
            monitor.record("GET /health", ms, 200)
        snap = monitor.snapshot()
        assert snap["requests_total"] == 3
        assert snap["response_time"]["count"] == 2
        assert snap["response_time"]["max_ms"] == 3.0

    def test_uptime_follows_clock(self, clock) -> None:
        monitor = PerformanceMonitor(clock=clock)
        clock.advance(3_725)
        assert monitor.uptime_seconds == 3_725
        assert monitor.snapshot()["uptime"]["formatted"] == "1h 2m 5s"


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(42, "42s"), (125, "2m 5s"), (3_600, "1h 0m 0s"), (90_061, "1d 1h 1m")],
)
def test_format_uptime(seconds: float, expected: str) -> None:
    assert format_uptime(seconds) == expected
