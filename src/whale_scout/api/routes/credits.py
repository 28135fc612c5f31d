"""Credit usage endpoint."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from whale_scout.api.deps import get_runtime
from whale_scout.services.runtime import Runtime

router = APIRouter(tags=["credits"])

HIGH_MONTHLY_USAGE = 0.8
HIGH_DAILY_USAGE = 0.7
LOW_REMAINING_CREDITS = 500_000


def credit_recommendations(monthly_rate: float, daily_rate: float, remaining: int) -> list[str]:
    """Plain-language hints for operators based on current burn."""
    recommendations = []
    if monthly_rate > HIGH_MONTHLY_USAGE:
        recommendations.append("High monthly usage: consider reducing tracking frequency")
    if daily_rate > HIGH_DAILY_USAGE:
        recommendations.append("High daily usage: rely on cached data until the daily reset")
    if remaining < LOW_REMAINING_CREDITS:
        recommendations.append("Low credits remaining: enable conservative scheduling")
    return recommendations or ["Credit usage is optimal"]


@router.get("/credits")
async def credits(runtime: Runtime = Depends(get_runtime)) -> dict[str, Any]:
    ledger = runtime.ledger
    usage = ledger.snapshot()
    monthly_rate, daily_rate = ledger.usage_rates()
    return {
        "credits": {
            "monthly": {
                "used": usage.used,
                "remaining": usage.remaining,
                "total": usage.budget,
                "usage_percentage": monthly_rate * 100,
            },
            "daily": {
                "used": usage.daily_used,
                "remaining": usage.daily_remaining,
                "total": usage.daily_limit,
                "usage_percentage": daily_rate * 100,
            },
            "reset_at": usage.reset_at.isoformat(),
        },
        "next_delay_seconds": runtime.scheduler.compute_next_delay(),
        "recommendations": credit_recommendations(monthly_rate, daily_rate, usage.remaining),
    }
