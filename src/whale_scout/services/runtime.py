"""Wires every service from ``AppSettings``; no module-level singletons."""

from __future__ import annotations

import dataclasses
import logging

from whale_scout.budget import CreditLedger
from whale_scout.cache import TTLCache, create_wallet_cache
from whale_scout.core.config import AppSettings
from whale_scout.hooks import LoggingEventSink
from whale_scout.interfaces.protocols import (
    IDiscoverySource,
    IEventSink,
    IReadModelStore,
    IWalletAnalyzer,
)
from whale_scout.persistence import WalletStore, create_backend
from whale_scout.providers.helius import HeliusClient, HeliusDiscoverySource, HeliusWalletAnalyzer
from whale_scout.providers.price import SolPriceOracle
from whale_scout.resilience import CircuitBreaker, RateLimiter
from whale_scout.services.scheduler import AdaptiveScheduler
from whale_scout.services.tracking_service import TrackingService

log = logging.getLogger(__name__)


@dataclasses.dataclass
class Runtime:
    """Long-lived service graph shared by the API, the scheduler and the CLI."""

    settings: AppSettings
    ledger: CreditLedger
    limiter: RateLimiter
    breaker: CircuitBreaker
    cache: TTLCache
    store: IReadModelStore
    tracking: TrackingService
    scheduler: AdaptiveScheduler
    discovery: IDiscoverySource
    events: IEventSink
    helius: HeliusClient | None = None
    prices: SolPriceOracle | None = None

    async def aclose(self) -> None:
        await self.scheduler.stop()
        # Let analyzer calls already handed to the processor finish before closing clients
        await self.tracking.processor.join()
        if self.helius is not None:
            await self.helius.aclose()
        if self.prices is not None:
            await self.prices.aclose()


def build_runtime(
    settings: AppSettings,
    *,
    analyzer: IWalletAnalyzer | None = None,
    discovery: IDiscoverySource | None = None,
    store: IReadModelStore | None = None,
    events_sink: IEventSink | None = None,
) -> Runtime:
    """Construct the service graph.

    ``analyzer`` / ``discovery`` / ``store`` default to the Helius and
    persistence implementations; tests pass fakes.
    """
    sink = events_sink or LoggingEventSink(service=settings.observability.service_name)

    helius: HeliusClient | None = None
    prices: SolPriceOracle | None = None
    if analyzer is None or discovery is None:
        helius = HeliusClient(settings.provider)
    if analyzer is None:
        prices = SolPriceOracle(settings.provider)
        analyzer = HeliusWalletAnalyzer(helius, prices, settings.analyzer)
    if discovery is None:
        discovery = HeliusDiscoverySource(helius, max_candidates=settings.scheduler.max_wallets_to_track)
    if store is None:
        store = WalletStore(create_backend(settings.persistence), key=settings.persistence.key)

    budget = settings.budget
    ledger = CreditLedger(
        budget.monthly_budget,
        budget.daily_limit,
        low_budget_threshold=budget.low_budget_threshold,
        events_sink=sink,
    )
    rl = settings.rate_limit
    limiter = RateLimiter(
        rl.requests_per_second,
        rl.burst_limit,
        window_seconds=rl.window_seconds,
        burst_window_seconds=rl.burst_window_seconds,
    )
    br = settings.breaker
    breaker = CircuitBreaker(
        br.failure_threshold,
        br.recovery_timeout_seconds,
        br.success_threshold,
        breaker_key="analyzer",
        events_sink=sink,
    )
    cache = create_wallet_cache(settings.cache)

    tracking = TrackingService(
        analyzer,
        ledger,
        limiter,
        breaker,
        cache,
        store,
        budget=budget,
        batch=settings.batch,
        analyzer_config=settings.analyzer,
        max_tracked=settings.scheduler.max_wallets_to_track,
        weight_per_call=rl.weight_per_call,
        events_sink=sink,
    )
    scheduler = AdaptiveScheduler(
        tracking,
        discovery,
        ledger,
        settings.scheduler,
        budget,
        settings.batch,
        events_sink=sink,
    )
    log.debug("Runtime built (persistence=%s)", settings.persistence.backend)
    return Runtime(
        settings=settings,
        ledger=ledger,
        limiter=limiter,
        breaker=breaker,
        cache=cache,
        store=store,
        tracking=tracking,
        scheduler=scheduler,
        discovery=discovery,
        events=sink,
        helius=helius,
        prices=prices,
    )
