"""Background counter-increment pipeline.

Redirects only enqueue the resolved code; a fixed pool of asyncio worker
tasks drains the queue and applies ``counter = counter + 1`` through the
repository. Counting is best effort: a failed increment is logged and
dropped, never retried and never reported to the redirect that caused it.

Flow Diagram — Counter Pipeline
===============================
::
    ┌─────────────┐      ┌──────────────────────┐      ┌─────────────┐
    │ submit(code)│ ───► │ asyncio.Queue(100)   │ ───► │ worker 1..N │
    │ (redirect)  │      │ FIFO, bounded        │      │             │
    └─────────────┘      └──────────────────────┘      └──────┬──────┘
      blocks while full                                       ▼
                                                       ┌─────────────┐
                                                       │ repository. │
                                                       │ increment_  │
                                                       │ counter     │
                                                       └─────────────┘

Lifecycle
=========
1. ``start()`` spawns the workers (FastAPI lifespan startup).
2. ``submit()`` suspends the caller only while the queue is at capacity.
3. ``close()`` stops intake, waits until every queued code has been
   applied, then cancels the workers (lifespan shutdown).

Classes:
    CounterPipeline:  Bounded queue plus worker pool.
"""

import asyncio
import logging

from prometheus_client import Counter, Gauge

from shortener.repository import URLRepository

__all__ = ["CounterPipeline", "DEFAULT_QUEUE_CAPACITY"]

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_CAPACITY = 100

COUNTER_INCREMENTS_TOTAL = Counter(
    "shortener_counter_increments_total",
    "Counter increments applied by pipeline workers",
)
COUNTER_FAILURES_TOTAL = Counter(
    "shortener_counter_failures_total",
    "Counter increments that failed in pipeline workers",
)
COUNTER_DROPPED_TOTAL = Counter(
    "shortener_counter_dropped_total",
    "Counter submissions discarded because the pipeline was closed",
)
COUNTER_QUEUE_DEPTH = Gauge(
    "shortener_counter_queue_depth",
    "Codes waiting for a counter increment",
)


class CounterPipeline:
    """Bounded FIFO of codes drained by a fixed pool of worker tasks.

    Args:
        repository: Target of ``increment_counter`` calls.
        workers: Number of worker tasks started by ``start()``.
        capacity: Maximum number of pending codes before ``submit`` blocks.
    """

    def __init__(self, repository: URLRepository, workers: int, capacity: int = DEFAULT_QUEUE_CAPACITY):
        if workers < 0:
            raise ValueError(f"workers must be >= 0, got {workers!r}")
        if capacity <= 0:
            raise ValueError(f"capacity must be > 0, got {capacity!r}")
        self._repository = repository
        self._workers = workers
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=capacity)
        self._tasks: list[asyncio.Task[None]] = []
        self._closed = False

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def closed(self) -> bool:
        return self._closed

    async def start(self) -> None:
        if self._tasks or self._closed:
            return
        self._tasks = [
            asyncio.create_task(self._worker(index), name=f"counter-worker-{index}")
            for index in range(self._workers)
        ]
        logger.info(f"Counter pipeline started with {self._workers} workers")

    async def submit(self, code: str) -> None:
        if self._closed:
            COUNTER_DROPPED_TOTAL.inc()
            logger.warning(f"Counter pipeline closed, dropping increment for {code}")
            return
        await self._queue.put(code)
        COUNTER_QUEUE_DEPTH.set(self._queue.qsize())

    async def close(self, timeout: float | None = None) -> None:
        """Stop intake, drain queued codes, then stop the workers.

        Args:
            timeout: Upper bound in seconds for the drain; None waits for all.
        """
        self._closed = True
        if self._tasks:
            try:
                await asyncio.wait_for(self._queue.join(), timeout)
            except TimeoutError:
                logger.warning(f"Counter drain timed out, {self._queue.qsize()} increments not applied")
        elif not self._queue.empty():
            logger.warning(f"No counter workers running, {self._queue.qsize()} increments not applied")

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        logger.info("Counter pipeline stopped")

    async def _worker(self, index: int) -> None:
        while True:
            code = await self._queue.get()
            try:
                await self._repository.increment_counter(code)
                COUNTER_INCREMENTS_TOTAL.inc()
            except Exception:
                COUNTER_FAILURES_TOTAL.inc()
                logger.warning(f"Worker {index} unable to increment code ({code}) counter", exc_info=True)
            finally:
                self._queue.task_done()
                COUNTER_QUEUE_DEPTH.set(self._queue.qsize())
