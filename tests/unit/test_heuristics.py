"""Tests for the pure wallet scoring helpers."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from whale_scout.models import WalletBalance, WalletStats
from whale_scout.scoring.heuristics import (
    HIGH_QUALITY,
    baseline_stats,
    build_tags,
    calculate_risk_level,
    determine_category,
    display_name,
    format_number,
    is_valid_solana_address,
    stats_from_transactions,
    wallet_quality,
)

_ADDRESS = "9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM"


class TestAddressValidation:
    def test_accepts_base58(self):
        assert is_valid_solana_address(_ADDRESS)

    @pytest.mark.parametrize("address", ["", "short", "0" * 44, "O" + _ADDRESS[1:], _ADDRESS + "abc"])
    def test_rejects_invalid(self, address):
        assert not is_valid_solana_address(address)

    def test_display_name_uses_prefix(self):
        assert display_name(_ADDRESS) == "Whale 9WzDXwBb"


class TestClassification:
    @pytest.mark.parametrize(
        ("win_rate", "transactions", "balance", "expected"),
        [
            (85, 60, 600_000, "LOW"),
            (85, 40, 600_000, "MEDIUM"),
            (70, 25, 150_000, "MEDIUM"),
            (70, 25, 90_000, "HIGH"),
            (50, 100, 5_000_000, "HIGH"),
        ],
    )
    def test_risk_level(self, win_rate, transactions, balance, expected):
        assert calculate_risk_level(win_rate, transactions, balance) == expected

    @pytest.mark.parametrize(
        ("balance", "expected"),
        [(1_000_000, "MEGA_WHALE"), (500_000, "SUPER_WHALE"), (499_999, "WHALE")],
    )
    def test_category(self, balance, expected):
        assert determine_category(balance) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(1_500_000_000, "1.5B"), (2_340_000, "2.3M"), (75_000, "75.0K"), (950, "950")],
    )
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    def test_tags(self):
        balance = WalletBalance(total_balance_usd=1_200_000)
        stats = WalletStats(win_rate=72.4)
        assert build_tags(balance, stats) == ["MEGA_WHALE", "$1.2M", "72%WR"]

    def test_quality_requires_both_thresholds(self):
        rich = WalletBalance(total_balance_usd=150_000)
        poor = WalletBalance(total_balance_usd=50_000)
        assert wallet_quality(WalletStats(win_rate=75), rich) == HIGH_QUALITY
        assert wallet_quality(WalletStats(win_rate=75), poor) is None
        assert wallet_quality(WalletStats(win_rate=60), rich) is None


class TestStatsFromTransactions:
    def test_counts_errors_as_losses(self):
        txs = [
            {"timestamp": 1_700_000_000},
            {"timestamp": 1_700_000_500, "transactionError": {"InstructionError": [0, "Custom"]}},
            {"timestamp": 1_700_000_100},
            {"timestamp": 1_700_000_200},
        ]
        stats = stats_from_transactions(txs)
        assert stats.total_transactions == 4
        assert stats.successful_trades == 3
        assert stats.win_rate == 75.0
        assert stats.avg_profit_loss == 125.0
        assert stats.total_volume == 800.0
        assert stats.last_active_date == datetime.fromtimestamp(1_700_000_500, tz=timezone.utc)

    def test_empty_history_is_neutral(self):
        stats = stats_from_transactions([])
        assert stats.win_rate == 50.0
        assert stats.avg_profit_loss == 0.0
        assert stats.last_active_date is None


class TestBaselineStats:
    def test_known_whale_gets_higher_baseline(self):
        known = baseline_stats(known_whale=True)
        other = baseline_stats(known_whale=False)
        assert (known.win_rate, known.total_transactions) == (70.0, 50)
        assert (other.win_rate, other.total_transactions) == (55.0, 25)
        assert known.avg_profit_loss == 160.0

    def test_deterministic(self):
        assert baseline_stats(True) == baseline_stats(True)
