"""Structured lifecycle events emitted by the scheduler core.

Event names are stable strings so log pipelines can filter on them.
"""

from __future__ import annotations

from typing import Any

import structlog

CYCLE_STARTED = "cycle_started"
CYCLE_COMPLETED = "cycle_completed"
CYCLE_SKIPPED = "cycle_skipped"
CYCLE_FAILED = "cycle_failed"
BREAKER_STATE_CHANGED = "breaker_state_changed"
LOW_BUDGET = "low_budget"
BUDGET_RESET = "budget_reset"
MANUAL_REFRESH = "manual_refresh"

_WARNING_EVENTS = frozenset({CYCLE_SKIPPED, CYCLE_FAILED, LOW_BUDGET})


class LoggingEventSink:
    """Default ``IEventSink``: writes each event as a structlog record."""

    def __init__(self, logger_name: str = "whale_scout.events", **context: Any) -> None:
        self._log = structlog.get_logger(logger_name).bind(**context)

    def emit(self, event: str, **fields: Any) -> None:
        if event in _WARNING_EVENTS:
            self._log.warning(event, **fields)
        else:
            self._log.info(event, **fields)


class NullEventSink:
    """Discards events."""

    def emit(self, event: str, **fields: Any) -> None:
        return None
