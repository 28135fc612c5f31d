"""Wallet analyzer: balance and swap history into a scored ``WhaleWallet``."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from whale_scout.core.config import AnalyzerConfig
from whale_scout.exceptions import UpstreamError
from whale_scout.models import WalletBalance, WalletStats, WhaleWallet
from whale_scout.providers.helius.client import HeliusClient
from whale_scout.providers.helius.discovery import KNOWN_WHALES, USDC_MINT
from whale_scout.providers.price import SolPriceOracle
from whale_scout.scoring.heuristics import (
    baseline_stats,
    build_tags,
    calculate_risk_level,
    determine_category,
    display_name,
    stats_from_transactions,
)

log = logging.getLogger(__name__)

LAMPORTS_PER_SOL = 1_000_000_000

# Non-USDC tokens worth counting; valued at a flat conservative estimate
PRIORITY_TOKENS = frozenset(
    {
        "So11111111111111111111111111111111111111112",  # wSOL
        "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN",  # JUP
        "mSoLzYCxHdYgdzU16g5QSh3i5K3z3KZK7ytfqcJm7So",  # mSOL
        "bSo13r4TkiE4KumL71LsHTPpL2euBYLFx6h9HP3piy1",  # bSOL
    }
)
PRIORITY_TOKEN_USD_ESTIMATE = 0.5


class HeliusWalletAnalyzer:
    """``IWalletAnalyzer`` backed by Helius.

    Returns ``None`` for wallets under ``min_balance_usd`` or
    ``min_win_rate``. Failure of the account lookup propagates as
    ``UpstreamError``; the token and transaction lookups degrade instead.
    """

    def __init__(
        self,
        client: HeliusClient,
        price_oracle: SolPriceOracle,
        config: AnalyzerConfig,
    ) -> None:
        self._client = client
        self._prices = price_oracle
        self._config = config

    async def analyze(self, address: str) -> WhaleWallet | None:
        balance = await self.get_balance(address)
        if balance is None or balance.total_balance_usd < self._config.min_balance_usd:
            return None

        stats = await self.get_stats(address)
        if stats.win_rate < self._config.min_win_rate:
            return None

        now = datetime.now(timezone.utc)
        return WhaleWallet(
            address=address,
            name=display_name(address),
            description=f"Tracked whale with {stats.win_rate:.1f}% win rate",
            balance=balance,
            stats=stats,
            win_rate=f"{stats.win_rate:.1f}%",
            discovered_date=now,
            last_updated=now,
            risk_level=calculate_risk_level(
                stats.win_rate, stats.total_transactions, balance.total_balance_usd
            ),
            category=determine_category(balance.total_balance_usd),
            tags=build_tags(balance, stats),
        )

    async def get_balance(self, address: str) -> WalletBalance | None:
        account = await self._client.get_account(address)
        if account is None:
            return None
        sol = float(account.get("lamports") or 0) / LAMPORTS_PER_SOL

        usdc = 0.0
        tokens_usd = 0.0
        try:
            tokens = await self._client.get_token_accounts(address)
        except UpstreamError as exc:
            log.debug("Token accounts unavailable for %s, SOL only: %s", address, exc)
            tokens = []
        for token in tokens:
            amount = _token_amount(token)
            mint = token.get("mint")
            if mint == USDC_MINT:
                usdc += amount
            elif mint in PRIORITY_TOKENS:
                tokens_usd += amount * PRIORITY_TOKEN_USD_ESTIMATE

        sol_price = await self._prices.get_price()
        return WalletBalance(
            sol=sol,
            usdc=usdc,
            total_tokens_usd=tokens_usd,
            total_balance_usd=sol * sol_price + usdc + tokens_usd,
        )

    async def get_stats(self, address: str) -> WalletStats:
        try:
            transactions = await self._client.get_swap_transactions(address)
        except UpstreamError as exc:
            log.debug("Swap history unavailable for %s, using baseline: %s", address, exc)
            return baseline_stats(address in KNOWN_WHALES)
        return stats_from_transactions(transactions)


def _token_amount(token: dict) -> float:
    try:
        return float(token.get("amount") or 0) / 10 ** int(token.get("decimals") or 0)
    except (TypeError, ValueError):
        return 0.0
