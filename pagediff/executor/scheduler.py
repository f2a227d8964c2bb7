"""Concurrency scheduler — runs per-target tasks with a fixed in-flight ceiling."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from pagediff.models.results import TaskFailure, TaskOutcome

from .retry import describe_error

logger = logging.getLogger(__name__)


class ConcurrencyScheduler:
    """Admits targets in order, never running more than ``limit`` at once.

    ``limit`` workers pull from a FIFO queue, so only ``limit`` task
    coroutines exist at any time regardless of how many targets there are.
    Outcomes are returned in target order once every target has finished.
    ``in_flight`` maps the queue position of each running task to its target,
    so repeated targets are counted separately.
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError(f"Concurrency limit must be at least 1, got {limit}")
        self.limit = limit
        self.in_flight: dict[int, str] = {}
        self.peak_in_flight = 0

    async def run(
        self,
        targets: Sequence[str],
        task: Callable[[str], Awaitable[TaskOutcome]],
        on_complete: Optional[Callable[[TaskOutcome], None]] = None,
    ) -> list[TaskOutcome]:
        targets = list(targets)
        total = len(targets)
        outcomes: list[Optional[TaskOutcome]] = [None] * total
        queue: asyncio.Queue[tuple[int, str]] = asyncio.Queue()
        for item in enumerate(targets):
            queue.put_nowait(item)

        self.peak_in_flight = 0
        completed = 0

        async def _worker() -> None:
            nonlocal completed
            while True:
                try:
                    index, target = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return

                self.in_flight[index] = target
                self.peak_in_flight = max(self.peak_in_flight, len(self.in_flight))
                logger.info("Comparing [%d/%d]: %s", index + 1, total, target)
                try:
                    outcome = await task(target)
                except Exception as e:
                    logger.error("Task for %s crashed: %s", target, e)
                    outcome = TaskFailure(target=target, reason=describe_error(e), attempts=1)
                finally:
                    self.in_flight.pop(index, None)

                outcomes[index] = outcome
                completed += 1
                logger.debug("Completed %d/%d (%d in flight)", completed, total, len(self.in_flight))
                if on_complete:
                    on_complete(outcome)

        workers = [asyncio.create_task(_worker()) for _ in range(min(self.limit, total))]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for w in workers:
                w.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

        return [o for o in outcomes if o is not None]
