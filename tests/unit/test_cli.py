"""Tests for the typer CLI, with the runtime swapped for a fake-backed one."""

from __future__ import annotations

from unittest.mock import patch

from typer.testing import CliRunner

from tests.fakes.fake_analyzer import FakeWalletAnalyzer
from tests.fakes.fake_discovery import FakeDiscoverySource
from tests.fakes.fake_event_sink import RecordingEventSink
from tests.fakes.fake_persistence import FakeReadModelStore
from tests.fakes.wallets import address_for
from whale_scout.cli.main import app
from whale_scout.services import build_runtime

runner = CliRunner()


def _fake_runtime(addresses: list[str]):
    def factory(settings):
        return build_runtime(
            settings,
            analyzer=FakeWalletAnalyzer(),
            discovery=FakeDiscoverySource(addresses),
            store=FakeReadModelStore(),
            events_sink=RecordingEventSink(),
        )

    return factory


class TestCycleCommand:
    def test_prints_report(self, monkeypatch):
        monkeypatch.setenv("WHALE_PROVIDER_API_KEY", "test-key")
        with patch("whale_scout.cli.main.build_runtime", _fake_runtime([address_for(1), address_for(2)])):
            result = runner.invoke(app, ["cycle"])
        assert result.exit_code == 0, result.output
        assert "Cycle completed" in result.output
        assert "Tracked whales" in result.output

    def test_missing_api_key_exits_2(self, monkeypatch):
        monkeypatch.delenv("WHALE_PROVIDER_API_KEY", raising=False)
        result = runner.invoke(app, ["cycle"])
        assert result.exit_code == 2
        assert "WHALE_PROVIDER_API_KEY" in result.output


class TestDiscoverCommand:
    def test_lists_candidates(self):
        with patch("whale_scout.cli.main.build_runtime", _fake_runtime([address_for(1)])):
            result = runner.invoke(app, ["discover", "--api-key", "k"])
        assert result.exit_code == 0, result.output
        assert address_for(1) in result.output
        assert "1 candidates" in result.output
