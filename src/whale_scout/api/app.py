"""FastAPI application with lifespan management."""

from __future__ import annotations

import importlib.metadata
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Depends, FastAPI

from whale_scout.api.middleware.error_handler import register_error_handlers
from whale_scout.api.middleware.metrics import PerformanceMonitor, register_metrics_middleware
from whale_scout.api.routes import credits, health, refresh, whales
from whale_scout.api.throttle import RequestThrottle, throttle
from whale_scout.core.config import APIConfig, AppSettings, ThrottleConfig
from whale_scout.core.startup_checks import validate_settings
from whale_scout.hooks import setup_logging
from whale_scout.services.runtime import Runtime, build_runtime

log = logging.getLogger(__name__)


def _get_version() -> str:
    """Read package version from installed metadata, with dev fallback."""
    try:
        return importlib.metadata.version("whale-scout")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


def create_app(runtime: Runtime | None = None) -> FastAPI:
    """Build the app.

    With ``runtime`` the lifespan uses it as-is (tests inject one built from
    fakes); otherwise settings are read from the environment, validated and
    wired with ``build_runtime``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        rt = runtime
        if rt is None:
            settings = AppSettings()
            validate_settings(settings)
            setup_logging(settings.observability)
            rt = build_runtime(settings)

        rt.tracking.load_from_store()
        if rt.settings.scheduler.enabled:
            rt.scheduler.start()
        app.state.settings = rt.settings
        app.state.runtime = rt
        try:
            yield
        finally:
            await rt.aclose()
            app.state.runtime = None

    api_config = runtime.settings.api if runtime is not None else APIConfig()
    app = FastAPI(
        title=api_config.title,
        description=api_config.description,
        version=_get_version(),
        lifespan=lifespan,
    )
    # Inbound limits and request metrics live with the app, not the runtime
    app.state.throttle = RequestThrottle(
        runtime.settings.throttle if runtime is not None else ThrottleConfig()
    )
    app.state.monitor = PerformanceMonitor()
    register_error_handlers(app)
    register_metrics_middleware(app, app.state.monitor)

    general = Depends(throttle("api"))
    app.include_router(health.router)
    app.include_router(whales.router, prefix="/api", dependencies=[general])
    app.include_router(credits.router, prefix="/api", dependencies=[general])
    app.include_router(refresh.router, prefix="/api", dependencies=[Depends(throttle("refresh")), general])
    return app
