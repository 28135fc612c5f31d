"""whale-scout: credit-budgeted resilient fetch scheduler for Solana whale wallets.

Typical wiring::

    from whale_scout import AppSettings, build_runtime

    runtime = build_runtime(AppSettings())
    report = await runtime.scheduler.run_cycle()
"""

from __future__ import annotations

from whale_scout.batching import BatchProcessor
from whale_scout.budget import CreditLedger
from whale_scout.cache import TTLCache
from whale_scout.core.config import AppSettings
from whale_scout.exceptions import (
    BudgetExhaustedError,
    CircuitOpenError,
    RefreshInProgressError,
    UpstreamError,
    WhaleScoutError,
)
from whale_scout.models import CreditUsage, CycleReport, TrackResult, WhaleWallet
from whale_scout.resilience import CircuitBreaker, CircuitState, RateLimiter
from whale_scout.services import AdaptiveScheduler, Runtime, TrackingService, build_runtime

__all__ = [
    "AdaptiveScheduler",
    "AppSettings",
    "BatchProcessor",
    "BudgetExhaustedError",
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
    "CreditLedger",
    "CreditUsage",
    "CycleReport",
    "RateLimiter",
    "RefreshInProgressError",
    "Runtime",
    "TTLCache",
    "TrackResult",
    "TrackingService",
    "UpstreamError",
    "WhaleScoutError",
    "WhaleWallet",
    "build_runtime",
]
