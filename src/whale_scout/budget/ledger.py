"""Client-side credit ledger with monthly and daily windows.

The provider exposes no usage API on the free plan, so spend is estimated
locally: every completed upstream call is charged its configured cost. The
ledger never raises; ``reserve`` returning ``False`` is the signal to defer
or fall back to cached data.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from whale_scout.core.types import WallClock
from whale_scout.hooks import events
from whale_scout.interfaces.protocols import IEventSink
from whale_scout.models import CreditUsage

log = logging.getLogger(__name__)


def next_month_start(now: datetime) -> datetime:
    """First instant of the calendar month after ``now`` (same tzinfo)."""
    if now.month == 12:
        return now.replace(year=now.year + 1, month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
    return now.replace(month=now.month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


class CreditLedger:
    """Tracks consumed and remaining credits for the current month and day.

    Single-owner state: only the tracking service mutates it, under its lock.
    """

    def __init__(
        self,
        monthly_budget: int,
        daily_limit: int,
        *,
        low_budget_threshold: int = 10_000,
        now: WallClock = datetime.now,
        events_sink: IEventSink | None = None,
    ) -> None:
        self._budget = monthly_budget
        self._daily_limit = daily_limit
        self._low_threshold = low_budget_threshold
        self._now = now
        self._events = events_sink

        current = now()
        self._used_monthly = 0
        self._used_daily = 0
        self._day: date = current.date()
        self._reset_at = next_month_start(current)
        self._low_warned = False

    # ── Reads ────────────────────────────────────────────────────────

    @property
    def budget(self) -> int:
        return self._budget

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    @property
    def used_monthly(self) -> int:
        return self._used_monthly

    @property
    def remaining_monthly(self) -> int:
        return max(0, self._budget - self._used_monthly)

    @property
    def used_daily(self) -> int:
        return self._used_daily

    @property
    def daily_remaining(self) -> int:
        return max(0, self._daily_limit - self._used_daily)

    @property
    def reset_at(self) -> datetime:
        return self._reset_at

    def reserve(self, cost: int) -> bool:
        """Return whether ``cost`` fits both the monthly and daily budget.

        Does not charge anything.
        """
        self.rollover_if_needed()
        return self.remaining_monthly >= cost and self._used_daily + cost <= self._daily_limit

    def snapshot(self) -> CreditUsage:
        self.rollover_if_needed()
        return CreditUsage(
            used=self._used_monthly,
            remaining=self.remaining_monthly,
            budget=self._budget,
            daily_used=self._used_daily,
            daily_limit=self._daily_limit,
            daily_remaining=self.daily_remaining,
            reset_at=self._reset_at,
        )

    def usage_rates(self) -> tuple[float, float]:
        """Fractions of the monthly and daily budget already spent."""
        self.rollover_if_needed()
        return self._used_monthly / self._budget, self._used_daily / self._daily_limit

    # ── Writes ───────────────────────────────────────────────────────

    def record(self, cost: int) -> None:
        """Charge ``cost`` credits against both windows."""
        if cost <= 0:
            return
        self.rollover_if_needed()
        self._used_monthly += cost
        self._used_daily += cost

        remaining = self.remaining_monthly
        if remaining < self._low_threshold and not self._low_warned:
            self._low_warned = True
            log.warning("Low credits: %d remaining (threshold %d)", remaining, self._low_threshold)
            if self._events is not None:
                self._events.emit(events.LOW_BUDGET, remaining=remaining, threshold=self._low_threshold)

    def rollover_if_needed(self) -> None:
        """Reset the daily and/or monthly window when the clock crossed a boundary.

        Idempotent: repeated calls within the same day and month do nothing.
        """
        current = self._now()

        if current.date() != self._day:
            log.info("Daily credit window reset (%d used on %s)", self._used_daily, self._day)
            self._used_daily = 0
            self._day = current.date()

        if current >= self._reset_at:
            log.info("Monthly credit window reset (%d used)", self._used_monthly)
            self._used_monthly = 0
            self._reset_at = next_month_start(current)
            self._low_warned = False
            if self._events is not None:
                self._events.emit(events.BUDGET_RESET, reset_at=self._reset_at.isoformat())

