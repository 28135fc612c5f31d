"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from whale_scout.core.config import AppSettings

log = logging.getLogger(__name__)


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_api_key(settings)
    _check_budget(settings)
    _check_rate_limit(settings)


def _check_api_key(settings: AppSettings) -> None:
    """The provider rejects anonymous calls, so an empty key is fatal."""
    if not settings.provider.api_key.strip():
        raise ValueError(
            "WHALE_PROVIDER_API_KEY is required. "
            "Set it via environment variable before starting the tracker."
        )


def _check_budget(settings: AppSettings) -> None:
    budget = settings.budget
    if budget.daily_limit > budget.monthly_budget:
        raise ValueError(
            f"WHALE_BUDGET_DAILY_LIMIT ({budget.daily_limit}) exceeds "
            f"WHALE_BUDGET_MONTHLY_BUDGET ({budget.monthly_budget})."
        )
    if budget.min_cycle_cost > budget.daily_limit:
        log.warning(
            "WHALE_BUDGET_MIN_CYCLE_COST (%d) is above the daily limit (%d); "
            "every scheduled cycle will be skipped.",
            budget.min_cycle_cost,
            budget.daily_limit,
        )


def _check_rate_limit(settings: AppSettings) -> None:
    rl = settings.rate_limit
    if rl.burst_limit < rl.requests_per_second:
        raise ValueError(
            f"WHALE_RATE_LIMIT_BURST_LIMIT ({rl.burst_limit}) must be >= "
            f"WHALE_RATE_LIMIT_REQUESTS_PER_SECOND ({rl.requests_per_second})."
        )
    if rl.burst_window_seconds < rl.window_seconds:
        raise ValueError("WHALE_RATE_LIMIT_BURST_WINDOW_SECONDS must be >= WINDOW_SECONDS.")
