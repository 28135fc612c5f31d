"""Shared type aliases for the framework layer."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TypeVar

T = TypeVar("T")

# Monotonic seconds source (``time.monotonic`` in production, fakes in tests)
Clock = Callable[[], float]

# Local wall-clock source used for calendar windows
WallClock = Callable[[], datetime]

# Zero-arg coroutine factory wrapped by the limiter and breaker
AsyncCall = Callable[[], Awaitable[T]]
