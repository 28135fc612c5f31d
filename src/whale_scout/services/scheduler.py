"""Adaptive refresh scheduler: one tracking cycle at a time, paced by budget."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from datetime import datetime, timedelta, timezone
from enum import Enum

from whale_scout.budget import CreditLedger
from whale_scout.core.config import BatchConfig, BudgetConfig, SchedulerConfig
from whale_scout.core.types import Clock
from whale_scout.hooks import events
from whale_scout.interfaces.protocols import IDiscoverySource, IEventSink
from whale_scout.models import CycleReport, CycleStatus
from whale_scout.services.tracking_service import TrackingService

log = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


class AdaptiveScheduler:
    """Drives periodic tracking cycles.

    Each cycle rolls the ledger, skips itself when ``min_cycle_cost`` does not
    fit, picks candidates (tracked set or fresh discovery), runs a tracking
    pass, then picks the next delay from the remaining daily budget. Cycle
    exceptions never escape; they turn into a ``failure_retry_seconds`` delay.
    """

    def __init__(
        self,
        tracking: TrackingService,
        discovery: IDiscoverySource,
        ledger: CreditLedger,
        config: SchedulerConfig,
        budget: BudgetConfig,
        batch: BatchConfig | None = None,
        *,
        clock: Clock = time.monotonic,
        events_sink: IEventSink | None = None,
    ) -> None:
        self._tracking = tracking
        self._discovery = discovery
        self._ledger = ledger
        self._config = config
        self._budget = budget
        self._batch = batch or BatchConfig()
        self._clock = clock
        self._events = events_sink

        self._state = SchedulerState.IDLE
        self._running = False
        self._last_discovery: float | None = None
        self._last_report: CycleReport | None = None
        self._next_run_at: datetime | None = None
        self._cycles = 0

        self._task: asyncio.Task[None] | None = None
        self._wake = asyncio.Event()
        self._stopping = False
        self._triggered = False
        self._rearm = False

    # ── Reads ────────────────────────────────────────────────────────

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def last_report(self) -> CycleReport | None:
        return self._last_report

    @property
    def next_run_at(self) -> datetime | None:
        return self._next_run_at

    @property
    def cycles(self) -> int:
        return self._cycles

    def compute_next_delay(self) -> float:
        """Long wait when the daily budget is thin, short when it is abundant."""
        daily_remaining = self._ledger.daily_remaining
        if daily_remaining < self._config.low_daily_remaining:
            return self._config.low_budget_interval_seconds
        if daily_remaining > self._config.abundant_daily_remaining:
            return self._config.abundant_interval_seconds
        return self._config.default_interval_seconds

    # ── Cycle ────────────────────────────────────────────────────────

    async def run_cycle(self) -> CycleReport | None:
        """Run one cycle now. Returns ``None`` if a cycle is already running.

        When the background loop is active, its timer restarts from this
        cycle's ``next_delay_seconds``.
        """
        report = await self._run_cycle()
        if report is not None and self._task is not None and not self._stopping:
            self._rearm = True
            self._wake.set()
        return report

    async def _run_cycle(self) -> CycleReport | None:
        if self._running:
            log.debug("Cycle already running, ignoring wake-up")
            return None

        self._running = True
        if self._state != SchedulerState.STOPPED:
            self._state = SchedulerState.RUNNING
        started = self._clock()
        started_at = datetime.now(timezone.utc)
        self._emit(events.CYCLE_STARTED, tracked=len(self._tracking.tracked_addresses))

        try:
            async with self._tracking.lock:
                report = await self._cycle(started_at)
        except Exception as exc:
            log.exception("Tracking cycle failed")
            report = CycleReport(
                status=CycleStatus.FAILED,
                started_at=started_at,
                tracked_total=len(self._tracking.tracked_addresses),
                next_delay_seconds=self._config.failure_retry_seconds,
                reason=f"{type(exc).__name__}: {exc}",
            )
            self._emit(events.CYCLE_FAILED, error=report.reason, retry_in=report.next_delay_seconds)
        finally:
            self._running = False
            if self._state == SchedulerState.RUNNING:
                self._state = SchedulerState.IDLE

        report.duration_ms = (self._clock() - started) * 1000
        self._cycles += 1
        self._last_report = report
        return report

    async def _cycle(self, started_at: datetime) -> CycleReport:
        self._ledger.rollover_if_needed()

        if not self._ledger.reserve(self._budget.min_cycle_cost):
            usage = self._ledger.snapshot()
            self._emit(
                events.CYCLE_SKIPPED,
                reason="insufficient_budget",
                remaining=usage.remaining,
                daily_remaining=usage.daily_remaining,
                required=self._budget.min_cycle_cost,
            )
            return CycleReport(
                status=CycleStatus.SKIPPED,
                started_at=started_at,
                tracked_total=len(self._tracking.tracked_addresses),
                next_delay_seconds=self._config.skip_cooldown_seconds,
                reason="insufficient budget",
            )

        candidates, discovered = await self._select_candidates()
        result = await self._tracking.track(candidates, priority=self._batch.cycle_priority)
        delay = self.compute_next_delay()
        tracked_total = len(self._tracking.tracked_addresses)
        self._emit(
            events.CYCLE_COMPLETED,
            candidates=result.candidates,
            cache_hits=result.cache_hits,
            succeeded=result.succeeded,
            failed=result.failed,
            breaker_rejected=result.breaker_rejected,
            deferred=result.deferred,
            credits_spent=result.credits_spent,
            tracked=tracked_total,
            next_delay_seconds=delay,
        )
        return CycleReport(
            status=CycleStatus.COMPLETED,
            started_at=started_at,
            discovered=discovered,
            tracked_total=tracked_total,
            result=result,
            next_delay_seconds=delay,
        )

    async def _select_candidates(self) -> tuple[list[str], bool]:
        tracked = self._tracking.tracked_addresses
        discovery_due = (
            self._last_discovery is None
            or self._clock() - self._last_discovery >= self._config.rediscover_interval_seconds
        )
        if len(tracked) >= self._config.min_tracked_wallets and not discovery_due:
            return tracked[: self._config.max_wallets_to_track], False

        try:
            found = await self._discovery.discover()
        except Exception as exc:
            # Failed calls are free
            log.warning("Discovery failed, reusing tracked set: %s", exc)
            found = []
        else:
            self._ledger.record(self._budget.discovery_cost)
        self._last_discovery = self._clock()

        if not found:
            log.info("Discovery returned nothing, reusing %d tracked wallets", len(tracked))
            return tracked[: self._config.max_wallets_to_track], True

        merged = list(dict.fromkeys([*found, *tracked]))
        log.info("Discovery returned %d candidates (%d after merge)", len(found), len(merged))
        return merged[: self._config.max_wallets_to_track], True

    # ── Loop ─────────────────────────────────────────────────────────

    def start(self) -> None:
        """Schedule the first cycle after ``initial_delay_seconds``."""
        if self._task is not None and not self._task.done():
            return
        self._stopping = False
        self._triggered = False
        self._rearm = False
        self._state = SchedulerState.IDLE
        self._wake.clear()
        self._task = asyncio.get_running_loop().create_task(self._loop(), name="whale-scheduler")
        log.info("Scheduler started; first cycle in %.0fs", self._config.initial_delay_seconds)

    def trigger(self) -> None:
        """Wake the loop so the next cycle runs now instead of at its timer."""
        self._triggered = True
        self._wake.set()

    async def stop(self, grace_seconds: float | None = None) -> None:
        """Stop scheduling; let an in-flight cycle finish within the grace period."""
        grace = self._config.shutdown_grace_seconds if grace_seconds is None else grace_seconds
        self._stopping = True
        self._state = SchedulerState.STOPPED
        self._next_run_at = None
        self._wake.set()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=grace)
        except asyncio.TimeoutError:
            log.warning("Cycle still running after %.0fs grace, cancelling", grace)
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        log.info("Scheduler stopped")

    async def _loop(self) -> None:
        delay = self._config.initial_delay_seconds
        while not self._stopping:
            self._next_run_at = datetime.now(timezone.utc) + timedelta(seconds=delay)
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._wake.wait(), timeout=delay)
            self._wake.clear()
            if self._stopping:
                break
            if self._rearm and not self._triggered and self._last_report is not None:
                # A cycle ran outside the loop; restart the timer from its delay
                self._rearm = False
                delay = self._last_report.next_delay_seconds
                log.info("Next cycle in %.0fs (after out-of-band cycle)", delay)
                continue
            self._rearm = False
            self._triggered = False
            report = await self._run_cycle()
            if report is None:
                # An out-of-band cycle is in flight; its completion re-arms the timer
                delay = self._config.default_interval_seconds
            else:
                delay = report.next_delay_seconds
                log.info("Next cycle in %.0fs (%s)", delay, report.status.value)

    def _emit(self, event: str, **fields: object) -> None:
        if self._events is not None:
            self._events.emit(event, **fields)
