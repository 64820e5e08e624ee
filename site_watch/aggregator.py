# File: site_watch/aggregator.py
"""site_watch.aggregator: единственный владелец карты состояний URL."""

from __future__ import annotations

import asyncio
from typing import Dict, Optional, Union

from site_watch.logger import get_logger
from site_watch.models import StateSnapshot, StatusOutcome, freeze_snapshot

__all__ = ["StateAggregator"]


class _Stop:
    """Маркер остановки цикла агрегатора."""


_Message = Union[StatusOutcome, "asyncio.Future[StateSnapshot]", _Stop]


class StateAggregator:
    """Хранит последний статус каждого URL.

    Все изменения и чтения проходят через одну очередь и обрабатываются
    одной задачей ``run()``, поэтому блокировки не нужны: каждый ``record``
    и каждый ``snapshot`` наблюдаются в едином порядке.
    """

    def __init__(self, inbox_size: int = 100, prune_healthy: bool = False) -> None:
        self._inbox: asyncio.Queue[_Message] = asyncio.Queue(maxsize=inbox_size)
        self._state: Dict[str, StatusOutcome] = {}
        self.prune_healthy = prune_healthy
        self.logger = get_logger("aggregator")
        self._task: Optional[asyncio.Task] = None

    @property
    def inbox(self) -> asyncio.Queue:
        """Очередь, в которую воркеры отправляют StatusOutcome."""
        return self._inbox

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="site-watch-aggregator")
        return self._task

    async def record(self, outcome: StatusOutcome) -> None:
        """Поставить в очередь обновление ``{url → outcome}``."""
        await self._inbox.put(outcome)

    async def snapshot(self) -> StateSnapshot:
        """Запросить копию текущей карты (атомарно относительно record)."""
        if not self.running:
            raise RuntimeError("aggregator is not running")
        reply: asyncio.Future[StateSnapshot] = asyncio.get_running_loop().create_future()
        await self._inbox.put(reply)
        return await reply

    async def stop(self) -> None:
        """Обработать всё, что уже в очереди, и завершить цикл."""
        if self._task is None:
            return
        if not self._task.done():
            await self._inbox.put(_Stop())
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def run(self) -> None:
        while True:
            msg = await self._inbox.get()
            if isinstance(msg, _Stop):
                self.logger.debug("Aggregator stopped with %d entries", len(self._state))
                return
            if isinstance(msg, StatusOutcome):
                self._state[msg.url] = msg
            elif not msg.done():
                msg.set_result(self._take_snapshot())

    def _take_snapshot(self) -> StateSnapshot:
        snap = freeze_snapshot(self._state)
        if self.prune_healthy:
            # delta state: forget URLs that were healthy in the snapshot just handed out
            for url in [u for u, o in self._state.items() if o.healthy]:
                del self._state[url]
        return snap
