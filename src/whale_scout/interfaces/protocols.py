"""Contracts for the collaborators the fetch scheduler talks to.

The scheduler core never imports a concrete provider; it is handed objects
that satisfy these protocols at construction time.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable

from whale_scout.models import WhaleWallet


@runtime_checkable
class IWalletAnalyzer(Protocol):
    """Turns a raw address into a scored wallet.

    One call is one unit of metered work. Implementations must not retry
    internally; any exception counts as a single failed unit.
    """

    async def analyze(self, address: str) -> WhaleWallet | None:
        """Return the wallet if it qualifies as a whale, ``None`` otherwise."""
        ...


@runtime_checkable
class IDiscoverySource(Protocol):
    """Best-effort source of candidate addresses."""

    async def discover(self) -> list[str]:
        """Return candidate addresses; an empty list on failure."""
        ...


@runtime_checkable
class IReadModelStore(Protocol):
    """Destination for the published tracked set."""

    def publish(self, wallets: Sequence[WhaleWallet]) -> None:
        """Replace the published read model with ``wallets``."""
        ...

    def load(self) -> list[WhaleWallet]:
        """Return the last published read model, or an empty list."""
        ...


@runtime_checkable
class IEventSink(Protocol):
    """Receives structured lifecycle events (cycle, breaker, budget)."""

    def emit(self, event: str, **fields: Any) -> None:
        """Record a single named event with key/value fields."""
        ...
