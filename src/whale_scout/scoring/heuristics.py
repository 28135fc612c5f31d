"""Pure scoring helpers used by the analyzer and discovery source.

No I/O; every function is deterministic so wallets scored twice from the same
payload compare equal.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from whale_scout.models import RiskLevel, WalletBalance, WalletCategory, WalletStats

_BASE58_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")

HIGH_QUALITY = "high"


def is_valid_solana_address(address: str) -> bool:
    return bool(_BASE58_ADDRESS.match(address))


def display_name(address: str) -> str:
    return f"Whale {address[:8]}"


def calculate_risk_level(win_rate: float, transactions: int, balance_usd: float) -> RiskLevel:
    """LOW for proven large traders, MEDIUM for solid mid-size ones, HIGH otherwise."""
    if win_rate >= 80 and transactions >= 50 and balance_usd >= 500_000:
        return "LOW"
    if win_rate >= 65 and transactions >= 20 and balance_usd >= 100_000:
        return "MEDIUM"
    return "HIGH"


def determine_category(balance_usd: float) -> WalletCategory:
    if balance_usd >= 1_000_000:
        return "MEGA_WHALE"
    if balance_usd >= 500_000:
        return "SUPER_WHALE"
    return "WHALE"


def format_number(value: float) -> str:
    """Compact notation: 1.5B, 2.3M, 75.0K, 950."""
    if value >= 1_000_000_000:
        return f"{value / 1_000_000_000:.1f}B"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:.0f}"


def build_tags(balance: WalletBalance, stats: WalletStats) -> list[str]:
    return [
        determine_category(balance.total_balance_usd),
        f"${format_number(balance.total_balance_usd)}",
        f"{stats.win_rate:.0f}%WR",
    ]


def wallet_quality(
    stats: WalletStats,
    balance: WalletBalance,
    *,
    high_win_rate: float = 70.0,
    high_balance_usd: float = 100_000.0,
) -> str | None:
    """Cache quality tier; ``"high"`` wallets are cached longer."""
    if stats.win_rate >= high_win_rate and balance.total_balance_usd >= high_balance_usd:
        return HIGH_QUALITY
    return None


def stats_from_transactions(transactions: Iterable[Mapping[str, Any]]) -> WalletStats:
    """Derive trading stats from enhanced swap transactions.

    A transaction without ``transactionError`` counts as a successful trade.
    An empty history scores a neutral 50% win rate.
    """
    txs = list(transactions)
    total = len(txs)
    successful = 0
    last_active: datetime | None = None

    for tx in txs:
        ts = tx.get("timestamp")
        if ts:
            when = datetime.fromtimestamp(float(ts), tz=timezone.utc)
            if last_active is None or when > last_active:
                last_active = when
        if not tx.get("transactionError"):
            successful += 1

    win_rate = (successful / total) * 100 if total else 50.0
    return WalletStats(
        total_transactions=total,
        successful_trades=successful,
        win_rate=win_rate,
        avg_profit_loss=(win_rate - 50) * 5,
        last_active_date=last_active,
        profitable_trades=successful,
        total_volume=total * 200.0,
    )


def baseline_stats(known_whale: bool) -> WalletStats:
    """Conservative stats used when the transaction history is unavailable."""
    win_rate = 70.0 if known_whale else 55.0
    transactions = 50 if known_whale else 25
    trades = int(transactions * win_rate / 100)
    return WalletStats(
        total_transactions=transactions,
        successful_trades=trades,
        win_rate=win_rate,
        avg_profit_loss=(win_rate - 50) * 8,
        last_active_date=None,
        profitable_trades=trades,
        total_volume=transactions * 300.0,
    )
