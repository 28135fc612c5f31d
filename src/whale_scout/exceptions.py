"""Exception hierarchy for whale-scout.

Every error carries a ``kind`` so the HTTP layer (and any other caller) can
tell budget refusals, breaker rejections and genuine upstream failures apart.
"""


class WhaleScoutError(Exception):
    """Base exception for all whale-scout errors."""

    kind = "internal"


class BudgetExhaustedError(WhaleScoutError):
    """Raised when a manual fetch is refused because credits are too low."""

    kind = "budget"

    def __init__(self, message: str, remaining: int = 0, required: int = 0) -> None:
        super().__init__(message)
        self.remaining = remaining
        self.required = required


class CircuitOpenError(WhaleScoutError):
    """Breaker is open; the call was not attempted and cost nothing."""

    kind = "breaker"

    def __init__(self, message: str, retry_after: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class UpstreamError(WhaleScoutError):
    """Transport errors, timeouts, 5xx/429 from the data provider."""

    kind = "transient"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderResponseError(UpstreamError):
    """Provider answered, but the payload could not be interpreted."""


class RefreshInProgressError(WhaleScoutError):
    """A manual fetch would overlap a running tracking cycle."""

    kind = "busy"


class InvalidAddressError(WhaleScoutError):
    """Raised when a wallet address is not a valid base58 Solana address."""

    kind = "invalid"


class PersistenceError(WhaleScoutError):
    """Raised when a persistence backend operation fails."""

    kind = "persistence"


class RateLimitedError(WhaleScoutError):
    """An inbound API client went over its request allowance."""

    kind = "throttled"

    def __init__(self, message: str, retry_after: float = 0.0) -> None:
        super().__init__(message)
        self.retry_after = retry_after
