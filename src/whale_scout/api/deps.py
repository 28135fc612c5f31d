"""Request-scoped accessors for the service graph on ``app.state``."""

from __future__ import annotations

from fastapi import HTTPException, Request

from whale_scout.services.runtime import Runtime


def get_runtime(request: Request) -> Runtime:
    runtime: Runtime | None = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return runtime
