"""Observability hooks: structured logging and lifecycle events."""

from __future__ import annotations

from whale_scout.hooks.events import LoggingEventSink, NullEventSink
from whale_scout.hooks.logging_config import setup_logging

__all__ = [
    "LoggingEventSink",
    "NullEventSink",
    "setup_logging",
]
