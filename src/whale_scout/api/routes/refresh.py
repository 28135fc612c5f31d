"""Manual refresh and on-demand cycle triggers."""

from __future__ import annotations

import time
from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from whale_scout.api.deps import get_runtime
from whale_scout.models import ItemStatus
from whale_scout.services.runtime import Runtime

router = APIRouter(tags=["refresh"])


@router.post("/refresh/{address}")
async def refresh_wallet(address: str, runtime: Runtime = Depends(get_runtime)) -> JSONResponse:
    """Re-analyze one wallet now.

    Budget, breaker, upstream and overlap failures surface through the error
    handlers with their ``kind``.
    """
    started = time.perf_counter()
    outcome = await runtime.tracking.refresh_one(address)
    duration_ms = (time.perf_counter() - started) * 1000
    credits = runtime.ledger.snapshot().model_dump(mode="json")

    if outcome.status != ItemStatus.OK or outcome.wallet is None:
        analyzer = runtime.settings.analyzer
        return JSONResponse(
            status_code=404,
            content={
                "error": "Wallet does not meet whale criteria",
                "kind": "not_whale",
                "criteria": {"min_balance": analyzer.min_balance_usd, "min_win_rate": analyzer.min_win_rate},
                "credits": credits,
            },
        )
    return JSONResponse(
        content={
            "whale": outcome.wallet.model_dump(mode="json"),
            "duration_ms": duration_ms,
            "credits": credits,
        }
    )


@router.post("/cycle")
async def run_cycle(runtime: Runtime = Depends(get_runtime)) -> dict[str, Any]:
    """Run a tracking cycle now; reports ``running`` if one is already in flight."""
    report = await runtime.scheduler.run_cycle()
    if report is None:
        return {"status": "running"}
    return report.model_dump(mode="json", exclude={"result": {"wallets"}})
