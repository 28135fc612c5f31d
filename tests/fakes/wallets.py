"""Builders for test wallets and valid-looking addresses."""

from __future__ import annotations

from whale_scout.models import WalletBalance, WalletStats, WhaleWallet

_DIGITS = "123456789ABCDEFGHJ"


def address_for(i: int) -> str:
    """Deterministic base58-valid 40-char address."""
    mapped = "".join(_DIGITS[int(d)] for d in f"{i:04d}")
    return f"Wha1e{mapped}" + "x" * 31


def make_wallet(
    address: str,
    *,
    balance_usd: float = 50_000.0,
    win_rate: float = 60.0,
    transactions: int = 25,
) -> WhaleWallet:
    return WhaleWallet(
        address=address,
        name=f"Whale {address[:8]}",
        balance=WalletBalance(sol=0.0, usdc=balance_usd, total_balance_usd=balance_usd),
        stats=WalletStats(
            total_transactions=transactions,
            successful_trades=int(transactions * win_rate / 100),
            win_rate=win_rate,
        ),
        win_rate=f"{win_rate:.1f}%",
    )
