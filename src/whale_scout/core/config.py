"""Nested pydantic-settings configuration for the application.

Each group reads its own ``WHALE_<GROUP>_*`` env vars, e.g.::

    export WHALE_PROVIDER_API_KEY=...
    export WHALE_BUDGET_MONTHLY_BUDGET=10000000
    export WHALE_SCHEDULER_DEFAULT_INTERVAL_SECONDS=21600
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

_HOUR = 3600.0


class ProviderConfig(BaseSettings):
    """Upstream data provider (Helius) connection settings.

    Env vars use ``WHALE_PROVIDER_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_PROVIDER_"}

    base_url: str = "https://api.helius.xyz"
    api_key: str = ""
    timeout: float = 30.0
    user_agent: str = "whale-scout/1.0"
    transaction_limit: int = Field(default=25, ge=1, le=100)
    holder_limit: int = Field(default=50, ge=1, le=1000)
    price_timeout: float = 5.0
    price_ttl_seconds: float = 300.0
    fallback_sol_price: float = 100.0


class BudgetConfig(BaseSettings):
    """Credit budget and per-call cost estimates.

    Env vars use ``WHALE_BUDGET_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_BUDGET_"}

    monthly_budget: int = Field(default=10_000_000, gt=0)
    daily_limit: int = Field(default=333_333, gt=0)
    low_budget_threshold: int = 10_000
    cost_per_call: int = Field(default=2, ge=0)  # balance + transactions
    discovery_cost: int = Field(default=1, ge=0)
    min_cycle_cost: int = Field(default=50_000, ge=0)
    manual_refresh_min_credits: int = Field(default=100, ge=0)


class RateLimitConfig(BaseSettings):
    """Outbound request throttling.

    Env vars use ``WHALE_RATE_LIMIT_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_RATE_LIMIT_"}

    requests_per_second: int = Field(default=10, gt=0)
    burst_limit: int = Field(default=50, gt=0)
    window_seconds: float = Field(default=1.0, gt=0.0)
    burst_window_seconds: float = Field(default=10.0, gt=0.0)
    weight_per_call: int = Field(default=1, gt=0)


class CircuitBreakerConfig(BaseSettings):
    """Circuit breaker around the analyzer call.

    Env vars use ``WHALE_BREAKER_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_BREAKER_"}

    failure_threshold: int = Field(default=5, gt=0)
    recovery_timeout_seconds: float = Field(default=60.0, ge=0.0)
    success_threshold: int = Field(default=3, gt=0)


class CacheConfig(BaseSettings):
    """Quality-adaptive wallet cache.

    Env vars use ``WHALE_CACHE_`` prefix. ``quality_ttls`` is JSON::

        export WHALE_CACHE_QUALITY_TTLS='{"high": 43200}'
    """

    model_config = {"env_prefix": "WHALE_CACHE_"}

    max_entries: int = Field(default=500, gt=0)
    default_ttl_seconds: float = 6 * _HOUR
    quality_ttls: dict[str, float] = Field(default_factory=lambda: {"high": 12 * _HOUR})


class BatchConfig(BaseSettings):
    """Batch processor chunking.

    Env vars use ``WHALE_BATCH_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_BATCH_"}

    chunk_size: int = Field(default=20, gt=0)
    cycle_priority: int = 1
    manual_priority: int = 5


class SchedulerConfig(BaseSettings):
    """Adaptive refresh scheduling.

    Env vars use ``WHALE_SCHEDULER_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_SCHEDULER_"}

    enabled: bool = True
    initial_delay_seconds: float = 5.0
    default_interval_seconds: float = 6 * _HOUR
    abundant_interval_seconds: float = 3 * _HOUR
    low_budget_interval_seconds: float = 12 * _HOUR
    low_daily_remaining: int = 50_000
    abundant_daily_remaining: int = 200_000
    skip_cooldown_seconds: float = 1 * _HOUR
    failure_retry_seconds: float = 0.5 * _HOUR
    rediscover_interval_seconds: float = 24 * _HOUR
    min_tracked_wallets: int = 150
    max_wallets_to_track: int = Field(default=200, gt=0)
    shutdown_grace_seconds: float = 30.0


class AnalyzerConfig(BaseSettings):
    """Thresholds that decide whether a wallet is worth tracking.

    Env vars use ``WHALE_ANALYZER_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_ANALYZER_"}

    min_balance_usd: float = 25_000.0
    min_win_rate: float = 40.0
    high_quality_win_rate: float = 70.0
    high_quality_balance_usd: float = 100_000.0


class PersistenceConfig(BaseSettings):
    """Read-model persistence.

    Env vars use ``WHALE_PERSISTENCE_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_PERSISTENCE_"}

    backend: Literal["file", "memory"] = "file"
    store_path: Path = Path("./data")
    key: str = "whales"


class ObservabilityConfig(BaseSettings):
    """Observability configuration.

    Env vars use ``WHALE_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_OBSERVABILITY_"}

    service_name: str = "whale-scout"
    log_level: str = "INFO"


class APIConfig(BaseSettings):
    """HTTP API configuration.

    Env vars use ``WHALE_API_`` prefix.
    """

    model_config = {"env_prefix": "WHALE_API_"}

    title: str = "whale-scout"
    description: str = "Credit-budgeted whale wallet tracker"
    host: str = "0.0.0.0"
    port: int = 8080


class ThrottleConfig(BaseSettings):
    """Inbound per-client request limits on the HTTP API.

    Env vars use ``WHALE_THROTTLE_`` prefix. Each route group allows
    ``*_limit`` requests per client in a sliding ``*_window_seconds``.
    """

    model_config = {"env_prefix": "WHALE_THROTTLE_"}

    enabled: bool = True
    refresh_limit: int = Field(default=5, gt=0)
    refresh_window_seconds: float = Field(default=300.0, gt=0.0)
    whales_limit: int = Field(default=60, gt=0)
    whales_window_seconds: float = Field(default=60.0, gt=0.0)
    high_value_limit: int = Field(default=120, gt=0)
    high_value_window_seconds: float = Field(default=60.0, gt=0.0)
    api_limit: int = Field(default=200, gt=0)
    api_window_seconds: float = Field(default=60.0, gt=0.0)
    max_clients: int = Field(default=10_000, gt=0)


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs.

    Each sub-config reads its own ``WHALE_<GROUP>_*`` env vars.
    """

    provider: ProviderConfig = ProviderConfig()
    budget: BudgetConfig = BudgetConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    breaker: CircuitBreakerConfig = CircuitBreakerConfig()
    cache: CacheConfig = CacheConfig()
    batch: BatchConfig = BatchConfig()
    scheduler: SchedulerConfig = SchedulerConfig()
    analyzer: AnalyzerConfig = AnalyzerConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    observability: ObservabilityConfig = ObservabilityConfig()
    api: APIConfig = APIConfig()
    throttle: ThrottleConfig = ThrottleConfig()
