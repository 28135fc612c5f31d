"""Tests for the HTTP API, driven through TestClient against a fake-backed runtime."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.fakes.fake_analyzer import FakeWalletAnalyzer
from tests.fakes.fake_discovery import FakeDiscoverySource
from tests.fakes.fake_event_sink import RecordingEventSink
from tests.fakes.fake_persistence import FakeReadModelStore
from tests.fakes.wallets import address_for, make_wallet
from whale_scout.api.app import create_app
from whale_scout.api.routes.credits import credit_recommendations
from whale_scout.core.config import AppSettings, BudgetConfig, CircuitBreakerConfig, ThrottleConfig
from whale_scout.exceptions import UpstreamError
from whale_scout.services import Runtime, build_runtime


def _runtime(
    settings: AppSettings,
    *,
    analyzer: FakeWalletAnalyzer | None = None,
    discovery: FakeDiscoverySource | None = None,
    wallets: list | None = None,
) -> Runtime:
    return build_runtime(
        settings,
        analyzer=analyzer or FakeWalletAnalyzer(),
        discovery=discovery or FakeDiscoverySource(),
        store=FakeReadModelStore(wallets),
        events_sink=RecordingEventSink(),
    )


def _seeded() -> list:
    return [
        make_wallet(address_for(1), balance_usd=1_500_000, win_rate=82, transactions=60),
        make_wallet(address_for(2), balance_usd=600_000, win_rate=55),
        make_wallet(address_for(3), balance_usd=40_000, win_rate=71),
    ]


class TestHealth:
    def test_health(self, settings) -> None:
        with TestClient(create_app(_runtime(settings))) as client:
            assert client.get("/health").json() == {"status": "ok"}

    def test_ready_after_startup(self, settings) -> None:
        with TestClient(create_app(_runtime(settings))) as client:
            resp = client.get("/ready")
            assert resp.status_code == 200
            assert resp.json()["status"] == "ready"

    def test_not_ready_before_startup(self, settings) -> None:
        client = TestClient(create_app(_runtime(settings)))
        resp = client.get("/ready")
        assert resp.status_code == 503

    def test_status_reports_components(self, settings) -> None:
        with TestClient(create_app(_runtime(settings, wallets=_seeded()))) as client:
            body = client.get("/api/status").json()
        assert body["tracking"]["wallets_tracked"] == 3
        assert body["tracking"]["last_cycle"] is None
        assert body["breaker"]["state"] == "closed"
        assert body["credits"]["used"] == 0
        assert {"load", "waiting"} <= set(body["limiter"])
        assert "hit_rate" in body["cache"]


class TestWhaleQueries:
    def test_lists_tracked_wallets_largest_first(self, settings) -> None:
        with TestClient(create_app(_runtime(settings, wallets=_seeded()))) as client:
            body = client.get("/api/whales").json()
        assert body["count"] == 3
        assert [w["address"] for w in body["wallets"]] == [address_for(i) for i in (1, 2, 3)]

    def test_filters_and_sorts(self, settings) -> None:
        with TestClient(create_app(_runtime(settings, wallets=_seeded()))) as client:
            body = client.get(
                "/api/whales", params={"min_win_rate": 60, "sort_by": "win_rate", "limit": 1}
            ).json()
        assert body["count"] == 1
        assert body["total_count"] == 3
        assert body["wallets"][0]["address"] == address_for(1)

    def test_get_single_whale(self, settings) -> None:
        with TestClient(create_app(_runtime(settings, wallets=_seeded()))) as client:
            resp = client.get(f"/api/whales/{address_for(2)}")
        assert resp.status_code == 200
        assert resp.json()["whale"]["address"] == address_for(2)

    def test_unknown_whale_is_404(self, settings) -> None:
        with TestClient(create_app(_runtime(settings))) as client:
            assert client.get(f"/api/whales/{address_for(9)}").status_code == 404

    def test_invalid_address_is_400(self, settings) -> None:
        with TestClient(create_app(_runtime(settings))) as client:
            resp = client.get("/api/whales/not-an-address")
        assert resp.status_code == 400
        assert resp.json()["kind"] == "invalid"

    def test_top_performers_uses_defaults(self, settings) -> None:
        with TestClient(create_app(_runtime(settings, wallets=_seeded()))) as client:
            body = client.get("/api/top-performers").json()
        # 55% win rate and the 40k wallet both miss the default bar
        assert [p["address"] for p in body["performers"]] == [address_for(1)]

    def test_stats(self, settings) -> None:
        with TestClient(create_app(_runtime(settings, wallets=_seeded()))) as client:
            body = client.get("/api/stats").json()
        assert body["total_wallets"] == 3
        assert body["performance"]["total_value"] == 2_140_000


class TestCredits:
    def test_fresh_budget(self, settings) -> None:
        with TestClient(create_app(_runtime(settings))) as client:
            body = client.get("/api/credits").json()
        assert body["credits"]["monthly"]["remaining"] == settings.budget.monthly_budget
        assert body["credits"]["daily"]["total"] == settings.budget.daily_limit
        assert body["recommendations"] == ["Credit usage is optimal"]
        assert body["next_delay_seconds"] == 3 * 3600

    def test_recommendations(self) -> None:
        recs = credit_recommendations(0.9, 0.75, 100_000)
        assert len(recs) == 3
        assert credit_recommendations(0.1, 0.1, 1_000_000) == ["Credit usage is optimal"]


class TestManualRefresh:
    def test_refresh_returns_whale_and_credits(self, settings) -> None:
        with TestClient(create_app(_runtime(settings))) as client:
            resp = client.post(f"/api/refresh/{address_for(5)}")
        assert resp.status_code == 200
        body = resp.json()
        assert body["whale"]["address"] == address_for(5)
        assert body["credits"]["used"] == settings.budget.cost_per_call

    def test_non_whale_is_404(self, settings) -> None:
        analyzer = FakeWalletAnalyzer({address_for(5): None})
        with TestClient(create_app(_runtime(settings, analyzer=analyzer))) as client:
            resp = client.post(f"/api/refresh/{address_for(5)}")
        assert resp.status_code == 404
        assert resp.json()["kind"] == "not_whale"

    def test_budget_refusal_is_429(self, settings) -> None:
        settings.budget = BudgetConfig(monthly_budget=50, daily_limit=50)
        analyzer = FakeWalletAnalyzer()
        with TestClient(create_app(_runtime(settings, analyzer=analyzer))) as client:
            resp = client.post(f"/api/refresh/{address_for(5)}")
        assert resp.status_code == 429
        body = resp.json()
        assert body["kind"] == "budget"
        assert body["credits"] == {"remaining": 50, "required": 100}
        assert analyzer.calls == []

    def test_upstream_failure_then_breaker_open(self, settings) -> None:
        settings.breaker = CircuitBreakerConfig(failure_threshold=1, recovery_timeout_seconds=60)
        addr = address_for(5)
        analyzer = FakeWalletAnalyzer({addr: UpstreamError("bad gateway", status_code=502)})
        with TestClient(create_app(_runtime(settings, analyzer=analyzer))) as client:
            first = client.post(f"/api/refresh/{addr}")
            second = client.post(f"/api/refresh/{addr}")

        assert first.status_code == 502
        assert first.json()["kind"] == "transient"
        assert second.status_code == 503
        assert second.json()["kind"] == "breaker"
        assert int(second.headers["Retry-After"]) >= 1
        assert analyzer.calls == [addr]

    def test_busy_is_409(self, settings) -> None:
        analyzer = FakeWalletAnalyzer()
        runtime = _runtime(settings, analyzer=analyzer)
        with TestClient(create_app(runtime)) as client:
            # Hold the tracking lock the way a running cycle does
            client.portal.call(runtime.tracking.lock.acquire)
            try:
                resp = client.post(f"/api/refresh/{address_for(5)}")
            finally:
                client.portal.call(runtime.tracking.lock.release)
            after = client.post(f"/api/refresh/{address_for(5)}")

        assert resp.status_code == 409
        assert resp.json()["kind"] == "busy"
        assert after.status_code == 200
        assert analyzer.calls == [address_for(5)]

    def test_unexpected_analyzer_error_is_transient(self, settings) -> None:
        addr = address_for(5)
        analyzer = FakeWalletAnalyzer({addr: RuntimeError("socket reset")})
        with TestClient(create_app(_runtime(settings, analyzer=analyzer))) as client:
            resp = client.post(f"/api/refresh/{addr}")

        assert resp.status_code == 502
        assert resp.headers["content-type"].startswith("application/json")
        body = resp.json()
        assert body["kind"] == "transient"
        assert "socket reset" in body["error"]


class TestCycleTrigger:
    def test_runs_cycle(self, settings) -> None:
        discovery = FakeDiscoverySource([address_for(i) for i in range(4)])
        with TestClient(create_app(_runtime(settings, discovery=discovery))) as client:
            resp = client.post("/api/cycle")
            whales = client.get("/api/whales").json()
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert body["result"]["succeeded"] == 4
        assert whales["count"] == 4


class TestThrottle:
    def test_refresh_limited_per_window(self, settings) -> None:
        settings.throttle = ThrottleConfig(refresh_limit=2, refresh_window_seconds=300)
        analyzer = FakeWalletAnalyzer()
        with TestClient(create_app(_runtime(settings, analyzer=analyzer))) as client:
            ok = [client.post(f"/api/refresh/{address_for(i)}") for i in range(2)]
            limited = client.post(f"/api/refresh/{address_for(3)}")
            cycle = client.post("/api/cycle")

        assert [r.status_code for r in ok] == [200, 200]
        assert limited.status_code == 429
        body = limited.json()
        assert body["kind"] == "throttled"
        assert 0 < body["retry_after"] <= 300
        assert 0 < int(limited.headers["Retry-After"]) <= 300
        # Cycle triggers share the refresh allowance
        assert cycle.status_code == 429
        assert analyzer.calls == [address_for(0), address_for(1)]

    def test_whales_limit_leaves_other_routes_open(self, settings) -> None:
        settings.throttle = ThrottleConfig(whales_limit=3)
        with TestClient(create_app(_runtime(settings, wallets=_seeded()))) as client:
            statuses = [client.get("/api/whales").status_code for _ in range(4)]
            credits = client.get("/api/credits")

        assert statuses == [200, 200, 200, 429]
        assert credits.status_code == 200

    def test_general_api_limit(self, settings) -> None:
        settings.throttle = ThrottleConfig(api_limit=2)
        with TestClient(create_app(_runtime(settings))) as client:
            statuses = [client.get("/api/credits").status_code for _ in range(3)]
            health = client.get("/health")

        assert statuses == [200, 200, 429]
        assert health.status_code == 200

    def test_disabled(self, settings) -> None:
        settings.throttle = ThrottleConfig(enabled=False, api_limit=1)
        with TestClient(create_app(_runtime(settings))) as client:
            statuses = {client.get("/api/credits").status_code for _ in range(3)}
        assert statuses == {200}


class TestRequestMetrics:
    def test_status_reports_request_metrics(self, settings) -> None:
        with TestClient(create_app(_runtime(settings, wallets=_seeded()))) as client:
            client.get("/api/whales")
            client.get(f"/api/whales/{address_for(2)}")
            client.get(f"/api/whales/{address_for(9)}")
            body = client.get("/api/status").json()

        metrics = body["metrics"]
        # The status request itself is recorded after its body is built
        assert metrics["requests_total"] == 3
        assert metrics["response_time"]["count"] == 3
        assert metrics["routes"]["GET /api/whales/{address}"]["count"] == 2
        assert metrics["routes"]["GET /api/whales"]["count"] == 1
        assert metrics["errors"] == {"http_404": 1}
        assert metrics["uptime"]["seconds"] >= 0
        assert body["throttle"] == {"enabled": True, "rejected": 0}

    def test_throttled_requests_counted_as_errors(self, settings) -> None:
        settings.throttle = ThrottleConfig(api_limit=1)
        with TestClient(create_app(_runtime(settings))) as client:
            client.get("/api/credits")
            client.get("/api/credits")
            monitor = client.app.state.monitor
            throttle = client.app.state.throttle

        assert monitor.snapshot()["errors"] == {"http_429": 1}
        assert throttle.rejected == 1
