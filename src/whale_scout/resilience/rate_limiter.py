"""Sliding-window rate limiter with a short-window rate cap and a burst cap.

Callers are admitted strictly in arrival order. A single pump task owns the
waiter queue and wakes the head waiter when enough weight has left the window
(or when a failed call hands its slot back).
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections import deque
from typing import Any, TypeVar

from whale_scout.core.types import AsyncCall, Clock

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclasses.dataclass(eq=False)
class _Sample:
    """One admitted call. Compared by identity so a failed call removes only itself."""

    timestamp: float
    weight: int


@dataclasses.dataclass(eq=False)
class _Waiter:
    weight: int
    future: asyncio.Future[_Sample]


class RateLimiter:
    """Admit weighted calls while both windows stay under their caps.

    - weights admitted in the trailing ``window_seconds`` never exceed ``rate``
    - weights admitted in the trailing ``burst_window_seconds`` never exceed ``burst``

    A call that raises removes its own sample, so failed calls do not consume
    capacity.
    """

    def __init__(
        self,
        rate: int,
        burst: int,
        window_seconds: float = 1.0,
        burst_window_seconds: float = 10.0,
        *,
        clock: Clock = time.monotonic,
        min_wait: float = 0.01,
    ) -> None:
        if rate <= 0 or burst <= 0:
            raise ValueError("rate and burst must be positive")
        if burst_window_seconds < window_seconds:
            raise ValueError("burst_window_seconds must be >= window_seconds")
        self._rate = rate
        self._burst = burst
        self._window = window_seconds
        self._burst_window = burst_window_seconds
        self._clock = clock
        self._min_wait = min_wait

        self._samples: deque[_Sample] = deque()
        self._waiters: deque[_Waiter] = deque()
        self._wake = asyncio.Event()
        self._pump_task: asyncio.Task[None] | None = None

    async def execute(self, fn: AsyncCall[T], weight: int = 1) -> T:
        """Wait for capacity, then run ``fn``.

        Raises ``ValueError`` immediately when ``weight`` can never fit.
        """
        if weight > self._rate or weight > self._burst:
            raise ValueError(
                f"weight {weight} exceeds rate cap {self._rate} or burst cap {self._burst}"
            )
        sample = await self._acquire(weight)
        try:
            return await fn()
        except Exception:
            self._release(sample)
            raise

    def try_acquire(self, weight: int = 1) -> float:
        """Admit ``weight`` now without waiting.

        Returns ``0.0`` when admitted, otherwise the seconds until it would
        fit. Never jumps ahead of queued waiters.
        """
        if weight > self._rate or weight > self._burst:
            raise ValueError(
                f"weight {weight} exceeds rate cap {self._rate} or burst cap {self._burst}"
            )
        delay = self._wait_time(weight)
        if self._waiters:
            return max(delay, self._min_wait)
        if delay > 0:
            return delay
        self._admit(weight)
        return 0.0

    def stats(self) -> dict[str, Any]:
        now = self._clock()
        self._purge(now)
        return {
            "load": sum(s.weight for s in self._samples),
            "window_load": sum(s.weight for s in self._samples if now - s.timestamp < self._window),
            "waiting": len(self._waiters),
            "rate": self._rate,
            "burst": self._burst,
        }

    @property
    def waiting(self) -> int:
        return len(self._waiters)

    @property
    def idle(self) -> bool:
        """No admitted weight left in either window and nobody queued."""
        self._purge(self._clock())
        return not self._samples and not self._waiters

    # ── Admission ────────────────────────────────────────────────────

    async def _acquire(self, weight: int) -> _Sample:
        if not self._waiters and self._wait_time(weight) <= 0:
            return self._admit(weight)

        waiter = _Waiter(weight, asyncio.get_running_loop().create_future())
        self._waiters.append(waiter)
        self._ensure_pump()
        try:
            return await waiter.future
        except asyncio.CancelledError:
            if waiter.future.done() and not waiter.future.cancelled():
                self._release(waiter.future.result())
            else:
                try:
                    self._waiters.remove(waiter)
                except ValueError:
                    pass
                self._wake.set()
            raise

    def _ensure_pump(self) -> None:
        if self._pump_task is None or self._pump_task.done():
            self._pump_task = asyncio.get_running_loop().create_task(self._pump())
        else:
            self._wake.set()

    async def _pump(self) -> None:
        while self._waiters:
            head = self._waiters[0]
            if head.future.done():
                # Cancelled while queued
                self._waiters.popleft()
                continue

            self._wake.clear()
            delay = self._wait_time(head.weight)
            if delay <= 0:
                self._waiters.popleft()
                head.future.set_result(self._admit(head.weight))
                continue

            try:
                await asyncio.wait_for(self._wake.wait(), timeout=max(delay, self._min_wait))
            except asyncio.TimeoutError:
                pass

    def _admit(self, weight: int) -> _Sample:
        sample = _Sample(self._clock(), weight)
        self._samples.append(sample)
        return sample

    def _release(self, sample: _Sample) -> None:
        try:
            self._samples.remove(sample)
        except ValueError:
            return  # Already purged
        if self._waiters:
            self._wake.set()

    # ── Window arithmetic ────────────────────────────────────────────

    def _purge(self, now: float) -> None:
        while self._samples and now - self._samples[0].timestamp >= self._burst_window:
            self._samples.popleft()

    def _wait_time(self, weight: int) -> float:
        """Seconds until ``weight`` fits both caps; ``0`` if it fits now."""
        now = self._clock()
        self._purge(now)
        in_window = [s for s in self._samples if now - s.timestamp < self._window]
        return max(
            _time_until_fits(in_window, self._rate, weight, self._window, now),
            _time_until_fits(list(self._samples), self._burst, weight, self._burst_window, now),
        )


def _time_until_fits(
    samples: list[_Sample], cap: int, weight: int, span: float, now: float
) -> float:
    """How long until enough of the oldest ``samples`` age out of ``span``."""
    load = sum(s.weight for s in samples)
    excess = load + weight - cap
    if excess <= 0:
        return 0.0
    freed = 0
    for sample in sorted(samples, key=lambda s: s.timestamp):
        freed += sample.weight
        if freed >= excess:
            return max(0.0, sample.timestamp + span - now)
    return span
