"""Priority-ordered batch execution with a single drain loop."""

from __future__ import annotations

import asyncio
import dataclasses
import heapq
import itertools
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Generic, TypeVar

log = logging.getLogger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")

ChunkProcessor = Callable[[list[ItemT]], Awaitable[list[ResultT]]]


@dataclasses.dataclass(eq=False)
class _Job(Generic[ItemT, ResultT]):
    items: list[ItemT]
    priority: int
    future: asyncio.Future[list[ResultT]]


class BatchProcessor(Generic[ItemT, ResultT]):
    """Queue of jobs drained highest-priority first, ties by arrival.

    Each job is cut into ``chunk_size`` chunks that run concurrently through
    ``processor``; results are flattened in chunk order. An exception from any
    chunk rejects that job only, the loop moves on to the next one.
    """

    def __init__(self, processor: ChunkProcessor[ItemT, ResultT], chunk_size: int = 20) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._processor = processor
        self._chunk_size = chunk_size
        self._queue: list[tuple[int, int, _Job[ItemT, ResultT]]] = []
        self._seq = itertools.count()
        self._drain_task: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def pending(self) -> int:
        """Jobs queued but not yet picked up by the drain loop."""
        return len(self._queue)

    async def submit(self, items: Sequence[ItemT], priority: int = 1) -> list[ResultT]:
        """Enqueue ``items`` as one job and wait for its flattened results."""
        if not items:
            return []
        job: _Job[ItemT, ResultT] = _Job(list(items), priority, asyncio.get_running_loop().create_future())
        heapq.heappush(self._queue, (-priority, next(self._seq), job))
        self._idle.clear()
        if self._drain_task is None or self._drain_task.done():
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())
        return await job.future

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._idle.wait()

    async def _drain(self) -> None:
        try:
            while self._queue:
                _, _, job = heapq.heappop(self._queue)
                if job.future.done():
                    continue  # Submitter gave up
                try:
                    results = await self._run_job(job)
                except Exception as exc:
                    log.warning("Batch job of %d items failed: %s", len(job.items), exc)
                    if not job.future.done():
                        job.future.set_exception(exc)
                else:
                    if not job.future.done():
                        job.future.set_result(results)
        finally:
            self._idle.set()

    async def _run_job(self, job: _Job[ItemT, ResultT]) -> list[ResultT]:
        chunks = [
            job.items[i : i + self._chunk_size]
            for i in range(0, len(job.items), self._chunk_size)
        ]
        log.debug("Processing job: %d items in %d chunks (priority %d)", len(job.items), len(chunks), job.priority)
        outputs = await asyncio.gather(
            *(self._processor(chunk) for chunk in chunks),
            return_exceptions=True,
        )
        flattened: list[ResultT] = []
        for output in outputs:
            if isinstance(output, Exception):
                raise output
            if isinstance(output, BaseException):
                raise RuntimeError("batch chunk was cancelled") from output
            flattened.extend(output)
        return flattened
