# site_watch/backoff.py
"""
Backoff scheduler: re-enqueues completed resources after an error-scaled delay.
"""
from __future__ import annotations

import asyncio
from typing import Optional, Set

from site_watch.logger import get_logger
from site_watch.models import Resource


def backoff_delay(resource: Resource, base_interval: float, error_penalty: float) -> float:
    """``base_interval + error_penalty * consecutive_errors`` seconds."""
    return base_interval + error_penalty * resource.consecutive_errors


class BackoffScheduler:
    """One tracked sleep timer per in-flight resource, no central rate limiter."""

    def __init__(
        self,
        pending: asyncio.Queue,
        completed: asyncio.Queue[Resource],
        base_interval: float,
        error_penalty: float,
    ) -> None:
        if base_interval <= 0:
            raise ValueError("base_interval must be > 0")
        if error_penalty < 0:
            raise ValueError("error_penalty must be >= 0")
        self.pending = pending
        self.completed = completed
        self.base_interval = base_interval
        self.error_penalty = error_penalty
        self.logger = get_logger("backoff")
        self._timers: Set[asyncio.Task] = set()
        self._dispatcher: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    @property
    def closed(self) -> bool:
        return self._closed

    def delay_for(self, resource: Resource) -> float:
        return backoff_delay(resource, self.base_interval, self.error_penalty)

    def start(self) -> None:
        """Start the dispatcher; a scheduler closed by an earlier run accepts work again."""
        self._closed = False
        if self._dispatcher is None:
            self._dispatcher = asyncio.create_task(self._dispatch(), name="site-watch-backoff")

    def schedule(self, resource: Resource) -> Optional[asyncio.Task]:
        """Resubmit *resource* to the pending queue once its delay has passed."""
        if self._closed:
            self.logger.debug("Scheduler closed, dropping %s", resource.url)
            return None
        delay = self.delay_for(resource)
        self.logger.debug("Next poll of %s in %.1fs", resource.url, delay)
        timer = asyncio.create_task(self._resubmit(resource, delay))
        self._timers.add(timer)
        timer.add_done_callback(self._timers.discard)
        return timer

    async def close(self) -> None:
        """Stop accepting resources and cancel every outstanding timer."""
        self._closed = True
        timers = list(self._timers)
        for t in timers:
            t.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
        if timers:
            self.logger.debug("Cancelled %d backoff timers", len(timers))

    async def shutdown(self) -> None:
        """Stop the completion-queue dispatcher (call after the workers are gone)."""
        await self.close()
        if self._dispatcher is not None:
            self._dispatcher.cancel()
            await asyncio.gather(self._dispatcher, return_exceptions=True)
            self._dispatcher = None

    async def _resubmit(self, resource: Resource, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.pending.put(resource)

    async def _dispatch(self) -> None:
        while True:
            resource = await self.completed.get()
            self.schedule(resource)


__all__ = ["BackoffScheduler", "backoff_delay"]
