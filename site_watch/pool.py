# site_watch/pool.py
"""
Worker pool: a fixed number of asyncio workers polling resources from the pending queue.
"""
from __future__ import annotations

import asyncio
from typing import List, Optional

from site_watch.checker import CheckFunc, apply_outcome
from site_watch.logger import get_logger
from site_watch.models import Resource, StatusOutcome

# Worker stop marker travelling through the pending queue.
_STOP = None


class WorkerPool:
    """Pending → check → (status update, completion) for ``workers`` concurrent tasks."""

    def __init__(
        self,
        checker: CheckFunc,
        pending: asyncio.Queue[Optional[Resource]],
        completed: asyncio.Queue[Resource],
        updates: asyncio.Queue,
        workers: int = 3,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self.checker = checker
        self.pending = pending
        self.completed = completed
        self.updates = updates
        self.size = workers
        self.logger = get_logger("pool")
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    def start(self) -> None:
        if self._tasks:
            raise RuntimeError("worker pool already started")
        self._tasks = [
            asyncio.create_task(self._worker(i), name=f"site-watch-worker-{i}")
            for i in range(self.size)
        ]
        self.logger.debug("Started %d workers", self.size)

    async def stop(self) -> List[Resource]:
        """Close the pending queue and let every worker finish its current resource.

        Resources still waiting in the queue are taken out and returned.
        """
        dropped: List[Resource] = []
        while True:
            try:
                item = self.pending.get_nowait()
            except asyncio.QueueEmpty:
                break
            if item is not _STOP:
                dropped.append(item)
        if not self._tasks:
            return dropped
        for _ in self._tasks:
            await self.pending.put(_STOP)
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        return dropped

    async def cancel(self) -> None:
        for t in self._tasks:
            t.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def poll(self, resource: Resource) -> StatusOutcome:
        """Run the checker for one resource and update its error counter."""
        try:
            outcome = await self.checker(resource.url)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self.logger.error("Checker failed for %s: %s", resource.url, exc)
            outcome = StatusOutcome.network_error(resource.url, f"{type(exc).__name__}: {exc}")
        apply_outcome(resource, outcome)
        return outcome

    async def _worker(self, index: int) -> None:
        while True:
            resource = await self.pending.get()
            if resource is _STOP:
                self.logger.debug("Worker %d stopped", index)
                return
            outcome = await self.poll(resource)
            self.logger.debug(
                "Worker %d polled %s: %s (errors=%d)",
                index,
                resource.url,
                outcome.describe(),
                resource.consecutive_errors,
            )
            await self.updates.put(outcome)
            await self.completed.put(resource)


__all__ = ["WorkerPool"]
