"""Tracking service, adaptive scheduler and runtime wiring."""

from whale_scout.services.runtime import Runtime, build_runtime
from whale_scout.services.scheduler import AdaptiveScheduler, SchedulerState
from whale_scout.services.tracking_service import TrackingService

__all__ = ["AdaptiveScheduler", "Runtime", "SchedulerState", "TrackingService", "build_runtime"]
