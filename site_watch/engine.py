# File: site_watch/engine.py
"""site_watch.engine: сборка конвейера опроса и управление его жизненным циклом."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

from aiohttp import ClientSession, ClientTimeout

from site_watch.aggregator import StateAggregator
from site_watch.backoff import BackoffScheduler
from site_watch.checker import CheckFunc, HttpChecker
from site_watch.config import MonitorConfig, load_config
from site_watch.logger import logger
from site_watch.models import Resource, StatusOutcome
from site_watch.notify import Notifier, build_notifier
from site_watch.pool import WorkerPool
from site_watch.reporter import Reporter

__all__ = ["Monitor", "check_once"]


def _session(config: MonitorConfig) -> ClientSession:
    return ClientSession(
        timeout=ClientTimeout(total=config.request_timeout),
        headers={"User-Agent": config.user_agent},
        raise_for_status=False,
    )


class Monitor:
    """Фасад для CLI и тестов: связывает очереди, воркеры, планировщик, агрегатор и репортёр.

    ``checker`` и ``notifier`` можно подменить; по умолчанию используются
    HttpChecker и транспорт из секции ``notifier`` конфига.
    """

    @staticmethod
    def load_config(path: Optional[str]) -> MonitorConfig:
        """Загружает конфиг из YAML/JSON."""
        return load_config(path)

    def __init__(
        self,
        config: MonitorConfig,
        checker: Optional[CheckFunc] = None,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.config = config
        self._checker = checker
        self._notifier = notifier
        self.session: Optional[ClientSession] = None
        self.resources: List[Resource] = [Resource(url) for url in config.urls]

        slots = len(self.resources) + config.worker_count
        self.pending: asyncio.Queue[Optional[Resource]] = asyncio.Queue(maxsize=slots)
        self.completed: asyncio.Queue[Resource] = asyncio.Queue(maxsize=slots)

        self.aggregator = StateAggregator(
            inbox_size=config.inbox_size, prune_healthy=config.prune_healthy
        )
        self.scheduler = BackoffScheduler(
            self.pending, self.completed, config.poll_interval, config.error_penalty
        )
        self.pool: Optional[WorkerPool] = None
        self.reporter: Optional[Reporter] = None
        self._stopped = asyncio.Event()
        self._started = False

    async def __aenter__(self) -> Monitor:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self) -> None:
        """Создаёт HTTP-сессию, запускает все задачи и засевает очередь URL."""
        if self._started:
            raise RuntimeError("monitor already started")
        self._started = True
        self._stopped.clear()
        if self._checker is None or self._notifier is None:
            self.session = _session(self.config)
        checker = self._checker or HttpChecker(
            self.session, self.config.maintenance_markers, self.config.request_timeout
        )
        notifier = self._notifier or build_notifier(self.config.notifier, self.session)

        self.pool = WorkerPool(
            checker, self.pending, self.completed, self.aggregator.inbox, self.config.worker_count
        )
        self.reporter = Reporter(self.aggregator, notifier, self.config.report_interval)

        self.aggregator.start()
        self.scheduler.start()
        self.pool.start()
        self.reporter.start()
        for resource in self.resources:
            await self.pending.put(resource)
        logger.info(
            "Monitoring %d URL(s) with %d workers (poll %.0fs, report %.0fs)",
            len(self.resources),
            self.config.worker_count,
            self.config.poll_interval,
            self.config.report_interval,
        )

    async def run(self, duration: Optional[float] = None) -> None:
        """Запускает мониторинг и ждёт stop() (или истечения duration)."""
        await self.start()
        try:
            if duration is None:
                await self._stopped.wait()
            else:
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=duration)
                except asyncio.TimeoutError:
                    logger.info("Run duration of %.0fs elapsed", duration)
        finally:
            await self.stop()

    def request_stop(self) -> None:
        """Попросить run() завершиться (безопасно из обработчика сигнала)."""
        self._stopped.set()

    async def stop(self) -> None:
        """Чистая остановка: таймеры, воркеры, репортёр, агрегатор, сессия."""
        if not self._started:
            return
        self._started = False
        self._stopped.set()
        await self.scheduler.close()
        if self.pool is not None:
            await self.pool.stop()
        await self.scheduler.shutdown()
        if self.reporter is not None:
            await self.reporter.stop()
        await self.aggregator.stop()
        if self.session is not None and not self.session.closed:
            await self.session.close()
        self.session = None
        logger.info("Monitor stopped")


async def check_once(config: MonitorConfig, urls: Optional[Sequence[str]] = None) -> Dict[str, StatusOutcome]:
    """Однократная параллельная проверка URL (по умолчанию — из конфига)."""
    targets = list(urls) if urls else config.urls
    async with _session(config) as session:
        checker = HttpChecker(session, config.maintenance_markers, config.request_timeout)
        outcomes = await asyncio.gather(*(checker.check(u) for u in targets))
    return dict(zip(targets, outcomes))
