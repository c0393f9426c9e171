"""FetchScheduler — bounded-concurrency runner for per-symbol scan tasks.

A fixed pool of ``asyncio`` workers pulls zero-argument task factories from
a FIFO queue.  Tasks start in input order; they may finish in any order.
A failing task is logged and counted without disturbing its siblings.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

logger = logging.getLogger("rsiradar.scheduler")

Task = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class ScheduleOutcome:
    """Summary of one :meth:`FetchScheduler.run_all` call."""

    total: int
    succeeded: int
    failed: int


class FetchScheduler:
    """Run async tasks with at most *concurrency* of them in flight.

    Args:
        concurrency: Maximum number of simultaneously active tasks.
    """

    def __init__(self, concurrency: int = 15) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._concurrency = concurrency

    @property
    def concurrency(self) -> int:
        return self._concurrency

    async def run_all(self, tasks: Sequence[Task]) -> ScheduleOutcome:
        """Attempt every task exactly once and wait for all of them.

        ``min(concurrency, len(tasks))`` workers are started; each worker
        takes the next unstarted task as soon as its current one finishes.
        Exceptions raised by a task are logged here and never propagate.
        """
        queue: asyncio.Queue = asyncio.Queue()
        for index, task in enumerate(tasks):
            queue.put_nowait((index, task))

        succeeded = 0
        failed = 0

        async def _worker() -> None:
            nonlocal succeeded, failed
            while True:
                try:
                    index, task = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    await task()
                    succeeded += 1
                except Exception as exc:
                    failed += 1
                    logger.error("Task %d failed: %s", index, exc)

        workers = min(self._concurrency, len(tasks))
        await asyncio.gather(*(_worker() for _ in range(workers)))

        if failed:
            logger.warning(
                "%d of %d task(s) failed; their results were skipped.",
                failed, len(tasks),
            )
        return ScheduleOutcome(total=len(tasks), succeeded=succeeded, failed=failed)
