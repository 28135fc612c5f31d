"""Priority batch processor."""

from whale_scout.batching.processor import BatchProcessor

__all__ = ["BatchProcessor"]
