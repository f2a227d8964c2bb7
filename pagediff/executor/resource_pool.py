"""Fixed-size pool of capture resources (browser pages) shared by concurrent tasks."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import AsyncIterator, Generic, Iterable, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")


class ResourcePool(Generic[R]):
    """Owns a fixed set of resources and leases them out one at a time.

    ``acquire`` suspends on a condition until a resource is returned; it
    never fails for lack of resources. A caller blocked longer than
    ``wait_warning_seconds`` gets a warning logged (and again every
    interval after that) so a stuck pool is visible.

    Waiters are woken in the order they began waiting, but this is not a
    strict FIFO: a caller that arrives while a woken waiter is resuming can
    take the freed resource first.
    """

    def __init__(self, resources: Iterable[R], wait_warning_seconds: float | None = 30.0):
        self._resources: list[R] = list(resources)
        if not self._resources:
            raise ValueError("ResourcePool needs at least one resource")
        self._free: deque[R] = deque(self._resources)
        self._leased: set[int] = set()
        self._condition = asyncio.Condition()
        self.wait_warning_seconds = wait_warning_seconds

    @property
    def size(self) -> int:
        return len(self._resources)

    @property
    def available(self) -> int:
        return len(self._free)

    @property
    def in_use(self) -> int:
        return len(self._leased)

    @property
    def resources(self) -> list[R]:
        return list(self._resources)

    def _owns(self, resource: R) -> bool:
        return any(r is resource for r in self._resources)

    async def acquire(self) -> R:
        async with self._condition:
            wait_start = time.monotonic()
            while not self._free:
                if not self.wait_warning_seconds:
                    await self._condition.wait()
                    continue
                try:
                    await asyncio.wait_for(self._condition.wait(), timeout=self.wait_warning_seconds)
                except asyncio.TimeoutError:
                    logger.warning(
                        "Still waiting for a free capture resource after %.0fs (%d/%d in use)",
                        time.monotonic() - wait_start, self.in_use, self.size,
                    )
            resource = self._free.popleft()
            self._leased.add(id(resource))
            logger.debug("Acquired resource (%d/%d in use)", self.in_use, self.size)
            return resource

    async def release(self, resource: R) -> None:
        async with self._condition:
            if not self._owns(resource):
                raise ValueError("Resource does not belong to this pool")
            if id(resource) not in self._leased:
                raise ValueError("Resource is not currently leased")
            self._leased.discard(id(resource))
            self._free.append(resource)
            self._condition.notify(1)
            logger.debug("Released resource (%d/%d in use)", self.in_use, self.size)

    @asynccontextmanager
    async def lease(self) -> AsyncIterator[R]:
        """Acquire a resource for the duration of the block; always released."""
        resource = await self.acquire()
        try:
            yield resource
        finally:
            await self.release(resource)
