"""Global exception handlers mapping domain exceptions to HTTP responses."""

from __future__ import annotations

import logging
import math

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from whale_scout.exceptions import (
    BudgetExhaustedError,
    CircuitOpenError,
    RateLimitedError,
    WhaleScoutError,
)

log = logging.getLogger(__name__)

STATUS_BY_KIND: dict[str, int] = {
    "budget": 429,
    "throttled": 429,
    "breaker": 503,
    "transient": 502,
    "busy": 409,
    "invalid": 400,
    "persistence": 500,
    "internal": 500,
}


def _whole_seconds(seconds: float) -> int:
    return max(1, math.ceil(seconds))


def register_error_handlers(app: FastAPI) -> None:
    """Register exception-to-HTTP-status mappings."""

    @app.exception_handler(BudgetExhaustedError)
    async def handle_budget_error(request: Request, exc: BudgetExhaustedError) -> JSONResponse:
        return JSONResponse(
            status_code=STATUS_BY_KIND[exc.kind],
            content={
                "error": str(exc),
                "kind": exc.kind,
                "credits": {"remaining": exc.remaining, "required": exc.required},
            },
        )

    @app.exception_handler(CircuitOpenError)
    async def handle_breaker_error(request: Request, exc: CircuitOpenError) -> JSONResponse:
        retry_after = _whole_seconds(exc.retry_after)
        return JSONResponse(
            status_code=STATUS_BY_KIND[exc.kind],
            content={"error": str(exc), "kind": exc.kind, "retry_after": exc.retry_after},
            headers={"Retry-After": str(retry_after)},
        )

    @app.exception_handler(RateLimitedError)
    async def handle_throttled(request: Request, exc: RateLimitedError) -> JSONResponse:
        return JSONResponse(
            status_code=STATUS_BY_KIND[exc.kind],
            content={"error": str(exc), "kind": exc.kind, "retry_after": _whole_seconds(exc.retry_after)},
            headers={"Retry-After": str(_whole_seconds(exc.retry_after))},
        )

    @app.exception_handler(WhaleScoutError)
    async def handle_generic_error(request: Request, exc: WhaleScoutError) -> JSONResponse:
        status = STATUS_BY_KIND.get(exc.kind, 500)
        if status >= 500:
            log.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content={"error": str(exc), "kind": exc.kind})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        log.exception("%s %s raised an unexpected error", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error", "kind": "internal"})
