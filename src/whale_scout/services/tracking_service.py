"""Tracking pass: cache split, budget gate, guarded analyzer calls, merge.

The scheduler and the manual refresh endpoint both go through this service so
they share one ledger, limiter, breaker and cache.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence

from whale_scout.batching import BatchProcessor
from whale_scout.budget import CreditLedger
from whale_scout.cache import TTLCache
from whale_scout.core.config import AnalyzerConfig, BatchConfig, BudgetConfig
from whale_scout.exceptions import (
    BudgetExhaustedError,
    CircuitOpenError,
    InvalidAddressError,
    PersistenceError,
    RefreshInProgressError,
    UpstreamError,
    WhaleScoutError,
)
from whale_scout.hooks import events
from whale_scout.interfaces.protocols import IEventSink, IReadModelStore, IWalletAnalyzer
from whale_scout.models import ItemOutcome, ItemStatus, TrackResult, WhaleWallet
from whale_scout.resilience import CircuitBreaker, RateLimiter
from whale_scout.scoring.heuristics import is_valid_solana_address, wallet_quality

log = logging.getLogger(__name__)

# Outcome plus the exception that produced it, for callers that re-raise
_Fetched = tuple[ItemOutcome, Exception | None]


class TrackingService:
    """Owns the tracked whale set and every mutation of ledger and cache.

    ``lock`` serializes tracking passes: the scheduler waits for it, manual
    refreshes fail fast with ``RefreshInProgressError`` while it is held.
    """

    def __init__(
        self,
        analyzer: IWalletAnalyzer,
        ledger: CreditLedger,
        limiter: RateLimiter,
        breaker: CircuitBreaker,
        cache: TTLCache,
        store: IReadModelStore,
        *,
        budget: BudgetConfig,
        batch: BatchConfig,
        analyzer_config: AnalyzerConfig,
        max_tracked: int = 200,
        weight_per_call: int = 1,
        events_sink: IEventSink | None = None,
    ) -> None:
        self._analyzer = analyzer
        self._ledger = ledger
        self._limiter = limiter
        self._breaker = breaker
        self._cache = cache
        self._store = store
        self._budget = budget
        self._batch = batch
        self._analyzer_config = analyzer_config
        self._max_tracked = max_tracked
        self._weight = weight_per_call
        self._events = events_sink

        self._lock = asyncio.Lock()
        self._tracked: dict[str, WhaleWallet] = {}
        self._inflight_cost = 0
        self._processor: BatchProcessor[str, _Fetched] = BatchProcessor(
            self._process_chunk, chunk_size=batch.chunk_size
        )

    # ── Reads ────────────────────────────────────────────────────────

    @property
    def lock(self) -> asyncio.Lock:
        return self._lock

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def processor(self) -> BatchProcessor[str, _Fetched]:
        return self._processor

    @property
    def tracked(self) -> list[WhaleWallet]:
        """Tracked wallets, largest balance first."""
        return sorted(self._tracked.values(), key=lambda w: w.balance.total_balance_usd, reverse=True)

    @property
    def tracked_addresses(self) -> list[str]:
        return list(self._tracked)

    def get(self, address: str) -> WhaleWallet | None:
        return self._tracked.get(address)

    # ── Tracking pass ────────────────────────────────────────────────

    async def track(self, candidates: Iterable[str], priority: int | None = None) -> TrackResult:
        """Refresh ``candidates`` and publish the merged tracked set.

        Callers must hold ``lock``.
        """
        addresses = list(dict.fromkeys(candidates))
        fresh, stale = self._cache.split_by_freshness(addresses)
        result = TrackResult(candidates=len(addresses), cache_hits=len(fresh), fetched=len(stale))

        for address in fresh:
            wallet = self._cache.get(address)
            if wallet is not None:
                self._tracked[address] = wallet

        spent_before = self._ledger.used_monthly
        fetched = await self._processor.submit(
            stale, priority=self._batch.cycle_priority if priority is None else priority
        )
        for outcome, _ in fetched:
            self._apply(outcome, result)
        result.credits_spent = self._ledger.used_monthly - spent_before
        result.fetched -= result.deferred

        self._enforce_cap()
        result.wallets = self.tracked
        self.publish()
        log.info(
            "Tracking pass: %d candidates, %d cache hits, %d ok, %d empty, %d failed, "
            "%d breaker-rejected, %d deferred, %d credits",
            result.candidates,
            result.cache_hits,
            result.succeeded,
            result.empty,
            result.failed,
            result.breaker_rejected,
            result.deferred,
            result.credits_spent,
        )
        return result

    async def refresh_one(self, address: str) -> ItemOutcome:
        """Manually re-analyze one wallet through the shared guards.

        Raises the error matching the failure kind instead of counting it.
        """
        if not is_valid_solana_address(address):
            raise InvalidAddressError(f"Invalid Solana address: {address}")
        if self._lock.locked():
            raise RefreshInProgressError("A tracking cycle is running, try again shortly")

        async with self._lock:
            self._ledger.rollover_if_needed()
            remaining = self._ledger.remaining_monthly
            required = max(self._budget.manual_refresh_min_credits, self._budget.cost_per_call)
            if remaining < required or not self._ledger.reserve(self._budget.cost_per_call):
                raise BudgetExhaustedError(
                    f"Insufficient credits for a manual refresh ({remaining} remaining)",
                    remaining=remaining,
                    required=required,
                )

            [(outcome, exc)] = await self._processor.submit([address], priority=self._batch.manual_priority)
            if self._events is not None:
                self._events.emit(events.MANUAL_REFRESH, address=address, status=outcome.status.value)
            if exc is not None:
                raise exc
            if outcome.status == ItemStatus.DEFERRED:
                raise BudgetExhaustedError(
                    "Credit budget exhausted", remaining=self._ledger.remaining_monthly, required=required
                )

            self._apply(outcome, TrackResult())
            self.publish()
            return outcome

    def publish(self) -> None:
        try:
            self._store.publish(self.tracked)
        except PersistenceError:
            log.exception("Publishing the tracked set failed; will retry next pass")

    def load_from_store(self) -> int:
        """Seed the tracked set from the last published read model."""
        wallets = self._store.load()
        self._tracked = {w.address: w for w in wallets}
        self._enforce_cap()
        log.info("Loaded %d tracked whales from store", len(self._tracked))
        return len(self._tracked)

    # ── Internals ────────────────────────────────────────────────────

    async def _process_chunk(self, addresses: Sequence[str]) -> list[_Fetched]:
        return list(await asyncio.gather(*(self._fetch_one(a) for a in addresses)))

    async def _fetch_one(self, address: str) -> _Fetched:
        cost = self._budget.cost_per_call
        if not self._ledger.reserve(self._inflight_cost + cost):
            return ItemOutcome(address=address, status=ItemStatus.DEFERRED), None

        self._inflight_cost += cost
        try:
            wallet = await self._breaker.execute(
                lambda: self._limiter.execute(lambda: self._analyze(address), self._weight)
            )
        except CircuitOpenError as exc:
            return ItemOutcome(address=address, status=ItemStatus.BREAKER_OPEN, error=str(exc)), exc
        except Exception as exc:
            log.warning("Analyzer failed for %s: %s", address, exc)
            return ItemOutcome(address=address, status=ItemStatus.FAILED, error=str(exc)), exc
        finally:
            self._inflight_cost -= cost

        self._ledger.record(cost)
        if wallet is None:
            return ItemOutcome(address=address, status=ItemStatus.EMPTY), None
        return ItemOutcome(address=address, status=ItemStatus.OK, wallet=wallet), None

    async def _analyze(self, address: str) -> WhaleWallet | None:
        try:
            return await self._analyzer.analyze(address)
        except WhaleScoutError:
            raise
        except Exception as exc:
            # Anything else out of the analyzer is an upstream failure
            raise UpstreamError(f"Analyzer failed for {address}: {exc}") from exc

    def _apply(self, outcome: ItemOutcome, result: TrackResult) -> None:
        address = outcome.address
        if outcome.status == ItemStatus.OK and outcome.wallet is not None:
            wallet = outcome.wallet
            previous = self._tracked.get(address)
            if previous is not None:
                wallet = wallet.model_copy(update={"discovered_date": previous.discovered_date})
            quality = wallet_quality(
                wallet.stats,
                wallet.balance,
                high_win_rate=self._analyzer_config.high_quality_win_rate,
                high_balance_usd=self._analyzer_config.high_quality_balance_usd,
            )
            self._cache.put(address, wallet, quality=quality)
            self._tracked[address] = wallet
            result.succeeded += 1
            return

        if outcome.status == ItemStatus.EMPTY:
            # No longer qualifies
            self._tracked.pop(address, None)
            self._cache.invalidate(address)
            result.empty += 1
            return

        if outcome.status == ItemStatus.FAILED:
            result.failed += 1
        elif outcome.status == ItemStatus.BREAKER_OPEN:
            result.breaker_rejected += 1
        elif outcome.status == ItemStatus.DEFERRED:
            result.deferred += 1

        # Not refreshed this pass: fall back to whatever the cache still holds
        if address not in self._tracked:
            stale = self._cache.get_stale(address)
            if stale is not None:
                self._tracked[address] = stale

    def _enforce_cap(self) -> None:
        if len(self._tracked) <= self._max_tracked:
            return
        keep = self.tracked[: self._max_tracked]
        self._tracked = {w.address: w for w in keep}
