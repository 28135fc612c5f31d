"""Shared fixtures for whale-scout tests."""

from __future__ import annotations

from datetime import datetime

import pytest

from tests.fakes.fake_analyzer import FakeWalletAnalyzer
from tests.fakes.fake_clock import FakeClock, FakeWallClock
from tests.fakes.fake_discovery import FakeDiscoverySource
from tests.fakes.fake_event_sink import RecordingEventSink
from tests.fakes.fake_persistence import FakeReadModelStore
from whale_scout.core.config import (
    AppSettings,
    PersistenceConfig,
    ProviderConfig,
    RateLimitConfig,
    SchedulerConfig,
)


@pytest.fixture
def settings() -> AppSettings:
    """Test settings: dummy key, in-memory persistence, no background loop."""
    return AppSettings(
        provider=ProviderConfig(api_key="test-key"),
        rate_limit=RateLimitConfig(requests_per_second=1_000, burst_limit=5_000),
        persistence=PersistenceConfig(backend="memory"),
        scheduler=SchedulerConfig(enabled=False),
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock(datetime(2024, 3, 14, 12, 0, 0))


@pytest.fixture
def event_sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def analyzer() -> FakeWalletAnalyzer:
    return FakeWalletAnalyzer()


@pytest.fixture
def discovery() -> FakeDiscoverySource:
    return FakeDiscoverySource()


@pytest.fixture
def read_store() -> FakeReadModelStore:
    return FakeReadModelStore()
