"""Call guards: circuit breaker and sliding-window rate limiter."""

from whale_scout.resilience.breaker_store import IBreakerStore, MemoryBreakerStore
from whale_scout.resilience.circuit_breaker import CircuitBreaker, CircuitState
from whale_scout.resilience.rate_limiter import RateLimiter

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "IBreakerStore",
    "MemoryBreakerStore",
    "RateLimiter",
]
