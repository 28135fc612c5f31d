"""Circuit breaker: stops spending calls on an upstream that keeps failing."""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, TypeVar

from whale_scout.core.types import AsyncCall, Clock
from whale_scout.exceptions import CircuitOpenError
from whale_scout.hooks import events
from whale_scout.interfaces.protocols import IEventSink
from whale_scout.resilience.breaker_store import IBreakerStore, MemoryBreakerStore

log = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Failing, reject calls
    HALF_OPEN = "half_open"  # Trial calls test recovery


class CircuitBreaker:
    """Wraps an async call and tracks consecutive failures.

    CLOSED -> OPEN after ``failure_threshold`` consecutive failures. While OPEN
    every call fails fast with ``CircuitOpenError``. The first call after
    ``recovery_timeout_seconds`` moves the breaker to HALF_OPEN and is let
    through as a trial; ``success_threshold`` consecutive trial successes close
    it again, any trial failure re-opens it and restarts the timer. Only one
    trial runs at a time.

    Failure counts and timestamps are delegated to an ``IBreakerStore``; when
    none is provided an in-process ``MemoryBreakerStore`` sharing the
    breaker's clock is used.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout_seconds: float = 60.0,
        success_threshold: int = 3,
        *,
        store: IBreakerStore | None = None,
        breaker_key: str = "default",
        clock: Clock = time.monotonic,
        events_sink: IEventSink | None = None,
    ) -> None:
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout_seconds
        self._success_threshold = success_threshold
        self._clock = clock
        self._store: IBreakerStore = store if store is not None else MemoryBreakerStore(clock)
        self._breaker_key = breaker_key
        self._events = events_sink
        self._state = CircuitState.CLOSED
        self._half_open_successes = 0
        self._trial_in_flight = False

    @property
    def state(self) -> CircuitState:
        """Current state. Reading it never triggers the OPEN -> HALF_OPEN move."""
        return self._state

    async def execute(self, fn: AsyncCall[T]) -> T:
        """Run ``fn`` through the breaker.

        Raises ``CircuitOpenError`` without calling ``fn`` when the breaker is
        open (or a half-open trial is already running). Exceptions from ``fn``
        are counted and re-raised unchanged.
        """
        self._before_call()
        try:
            result = await fn()
        except Exception:
            self._on_failure()
            raise
        except BaseException:
            # Cancellation is neither a success nor a failure
            self._trial_in_flight = False
            raise
        self._on_success()
        return result

    def reset(self) -> None:
        """Manually reset the circuit breaker to CLOSED."""
        self._store.reset(self._breaker_key)
        self._half_open_successes = 0
        self._trial_in_flight = False
        self._transition(CircuitState.CLOSED, reason="manual reset")

    def stats(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "failures": self._store.get_failure_count(self._breaker_key),
            "last_failure_time": self._store.get_last_failure_time(self._breaker_key),
            "half_open_successes": self._half_open_successes,
            "failure_threshold": self._failure_threshold,
            "recovery_timeout_seconds": self._recovery_timeout,
        }

    def _before_call(self) -> None:
        if self._state == CircuitState.OPEN:
            elapsed = self._clock() - self._store.get_last_failure_time(self._breaker_key)
            if elapsed > self._recovery_timeout:
                self._half_open_successes = 0
                self._transition(CircuitState.HALF_OPEN, reason="recovery timeout elapsed")
            else:
                failure_count = self._store.get_failure_count(self._breaker_key)
                raise CircuitOpenError(
                    f"Circuit breaker OPEN: {failure_count} consecutive failures. "
                    f"Retry after {self._recovery_timeout}s.",
                    retry_after=max(0.0, self._recovery_timeout - elapsed),
                )

        if self._state == CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                raise CircuitOpenError("Circuit breaker HALF_OPEN: trial call in flight.")
            self._trial_in_flight = True

    def _on_success(self) -> None:
        if self._state == CircuitState.HALF_OPEN:
            self._trial_in_flight = False
            self._half_open_successes += 1
            if self._half_open_successes >= self._success_threshold:
                self._store.reset(self._breaker_key)
                self._transition(CircuitState.CLOSED, reason="trial calls succeeded")
        elif self._state == CircuitState.CLOSED:
            self._store.reset(self._breaker_key)
        # A late success from a call started before the breaker opened changes nothing

    def _on_failure(self) -> None:
        count = self._store.record_failure(self._breaker_key)
        if self._state == CircuitState.HALF_OPEN:
            self._trial_in_flight = False
            self._half_open_successes = 0
            self._transition(CircuitState.OPEN, reason="trial call failed")
        elif self._state == CircuitState.CLOSED and count >= self._failure_threshold:
            self._transition(CircuitState.OPEN, reason=f"{count} consecutive failures")

    def _transition(self, new_state: CircuitState, *, reason: str) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        if new_state == CircuitState.OPEN:
            log.warning("Circuit breaker %s → OPEN (%s)", self._breaker_key, reason)
        else:
            log.info("Circuit breaker %s → %s (%s)", self._breaker_key, new_state.name, reason)
        if self._events is not None:
            self._events.emit(
                events.BREAKER_STATE_CHANGED,
                breaker=self._breaker_key,
                old_state=old_state.value,
                new_state=new_state.value,
                reason=reason,
            )
