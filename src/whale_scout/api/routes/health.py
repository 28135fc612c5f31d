"""Health, readiness and status endpoints."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from whale_scout.api.deps import get_runtime
from whale_scout.api.throttle import throttle
from whale_scout.services.runtime import Runtime

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check: always 200 while the process is up."""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request) -> JSONResponse:
    """Readiness check: 503 until the runtime is built."""
    if getattr(request.app.state, "runtime", None) is None:
        return JSONResponse(status_code=503, content={"status": "starting"})
    return JSONResponse(content={"status": "ready"})


@router.get("/api/status", dependencies=[Depends(throttle("api"))])
async def status(request: Request, runtime: Runtime = Depends(get_runtime)) -> dict[str, Any]:
    """Tracking state, component stats and HTTP request metrics."""
    scheduler = runtime.scheduler
    last = scheduler.last_report
    throttles = request.app.state.throttle
    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "tracking": {
            "state": scheduler.state.value,
            "running": scheduler.is_running,
            "cycles": scheduler.cycles,
            "wallets_tracked": len(runtime.tracking.tracked_addresses),
            "next_run_at": scheduler.next_run_at.isoformat() if scheduler.next_run_at else None,
            "last_cycle": last.model_dump(mode="json", exclude={"result": {"wallets"}}) if last else None,
        },
        "credits": runtime.ledger.snapshot().model_dump(mode="json"),
        "breaker": runtime.breaker.stats(),
        "limiter": runtime.limiter.stats(),
        "cache": runtime.cache.stats(),
        "batch": {"pending": runtime.tracking.processor.pending},
        "metrics": request.app.state.monitor.snapshot(),
        "throttle": {"enabled": throttles.enabled, "rejected": throttles.rejected},
    }
