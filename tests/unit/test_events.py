"""Tests for the lifecycle event sinks."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from whale_scout.hooks import LoggingEventSink, NullEventSink
from whale_scout.hooks import events
from whale_scout.interfaces.protocols import IEventSink


class TestLoggingEventSink:
    def test_routes_warnings_by_event(self):
        logger = MagicMock()
        with patch("whale_scout.hooks.events.structlog.get_logger", return_value=logger):
            sink = LoggingEventSink(service="whale-scout")
        bound = logger.bind.return_value

        sink.emit(events.CYCLE_COMPLETED, succeeded=3)
        sink.emit(events.LOW_BUDGET, remaining=10)

        logger.bind.assert_called_once_with(service="whale-scout")
        bound.info.assert_called_once_with(events.CYCLE_COMPLETED, succeeded=3)
        bound.warning.assert_called_once_with(events.LOW_BUDGET, remaining=10)

    def test_satisfies_protocol(self):
        assert isinstance(LoggingEventSink(), IEventSink)
        assert isinstance(NullEventSink(), IEventSink)

    def test_null_sink_discards(self):
        assert NullEventSink().emit(events.CYCLE_STARTED, tracked=1) is None
