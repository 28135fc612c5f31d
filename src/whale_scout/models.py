"""Pydantic data models for whale-scout.

Wallet models mirror the published read model; the usage and report models
are what the ledger, tracking service and scheduler hand back to callers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

RiskLevel = Literal["LOW", "MEDIUM", "HIGH"]
WalletCategory = Literal["WHALE", "SUPER_WHALE", "MEGA_WHALE"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Wallet models ────────────────────────────────────────────────────


class WalletBalance(BaseModel):
    """USD-denominated balance snapshot of a wallet."""

    sol: float = 0.0
    usdc: float = 0.0
    total_tokens_usd: float = 0.0
    total_balance_usd: float = 0.0


class WalletStats(BaseModel):
    """Trading statistics derived from recent swap transactions."""

    total_transactions: int = 0
    successful_trades: int = 0
    win_rate: float = 0.0
    avg_profit_loss: float = 0.0
    last_active_date: Optional[datetime] = None
    profitable_trades: int = 0
    total_volume: float = 0.0


class WhaleWallet(BaseModel):
    """A tracked wallet that passed the analyzer's balance and win-rate bar."""

    address: str
    name: str
    description: str = ""
    balance: WalletBalance
    stats: WalletStats
    win_rate: str = ""
    enabled: bool = True
    discovered_date: datetime = Field(default_factory=_utcnow)
    last_updated: datetime = Field(default_factory=_utcnow)
    source: str = "HELIUS"
    risk_level: RiskLevel = "HIGH"
    category: WalletCategory = "WHALE"
    tags: list[str] = Field(default_factory=list)


# ── Budget models ────────────────────────────────────────────────────


class CreditUsage(BaseModel):
    """Immutable snapshot of the credit ledger."""

    model_config = {"frozen": True}

    used: int
    remaining: int
    budget: int
    daily_used: int
    daily_limit: int
    daily_remaining: int
    reset_at: datetime


# ── Tracking / scheduling reports ────────────────────────────────────


class ItemStatus(str, Enum):
    """Outcome of a single analyzer call inside a batch."""

    OK = "ok"  # Analyzer returned a whale
    EMPTY = "empty"  # Analyzer ran, wallet not interesting
    FAILED = "failed"  # Transient upstream failure
    BREAKER_OPEN = "breaker_open"  # Rejected without being attempted
    DEFERRED = "deferred"  # Not attempted, budget would be exceeded


class ItemOutcome(BaseModel):
    """Per-address result carried through the batch processor."""

    address: str
    status: ItemStatus
    wallet: Optional[WhaleWallet] = None
    error: str = ""


class TrackResult(BaseModel):
    """Aggregate counts for one tracking pass over a candidate set."""

    candidates: int = 0
    cache_hits: int = 0
    fetched: int = 0
    succeeded: int = 0
    empty: int = 0
    failed: int = 0
    breaker_rejected: int = 0
    deferred: int = 0
    credits_spent: int = 0
    wallets: list[WhaleWallet] = Field(default_factory=list)


class CycleStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class CycleReport(BaseModel):
    """What one scheduler cycle did and when the next one fires."""

    status: CycleStatus
    started_at: datetime = Field(default_factory=_utcnow)
    duration_ms: float = 0.0
    discovered: bool = False
    tracked_total: int = 0
    result: TrackResult = Field(default_factory=TrackResult)
    next_delay_seconds: float = 0.0
    reason: str = ""
