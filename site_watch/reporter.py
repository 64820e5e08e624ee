# site_watch/reporter.py
"""
Reporter: periodically snapshots the aggregator, logs the state and sends one
batched alert per tick when something is unhealthy.
"""
from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import Optional

from site_watch.aggregator import StateAggregator
from site_watch.logger import get_logger
from site_watch.models import NotificationReport, StateSnapshot
from site_watch.notify.base import Notifier


class ReporterState(str, enum.Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    CLASSIFYING = "classifying"
    NOTIFYING = "notifying"


@dataclass(frozen=True, slots=True)
class ReportTick:
    """What one period produced."""

    snapshot: StateSnapshot
    report: Optional[NotificationReport]
    notified: bool

    @property
    def unhealthy(self) -> int:
        return 0 if self.report is None else len(self.report)


class Reporter:
    """Idle → Collecting → Classifying → (Notifying) → Idle, once per ``interval``."""

    def __init__(
        self,
        aggregator: StateAggregator,
        notifier: Notifier,
        interval: float,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.aggregator = aggregator
        self.notifier = notifier
        self.interval = interval
        self.state = ReporterState.IDLE
        self.ticks = 0
        self.logger = get_logger("reporter")
        self._task: Optional[asyncio.Task] = None

    def start(self) -> asyncio.Task:
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="site-watch-reporter")
        return self._task

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        self.state = ReporterState.IDLE

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.tick()

    async def tick(self) -> ReportTick:
        self.state = ReporterState.COLLECTING
        snapshot = await self.aggregator.snapshot()

        self.state = ReporterState.CLASSIFYING
        report = NotificationReport.from_snapshot(snapshot)
        self.log_state(snapshot)
        self.ticks += 1

        if not len(report):
            self.state = ReporterState.IDLE
            return ReportTick(snapshot, None, False)

        self.state = ReporterState.NOTIFYING
        notified = await self._deliver(report)
        self.state = ReporterState.IDLE
        return ReportTick(snapshot, report, notified)

    def log_state(self, snapshot: StateSnapshot) -> None:
        if not snapshot:
            self.logger.info("Current state: no URL has been polled yet")
            return
        self.logger.info("Current state:")
        for url, outcome in snapshot.items():
            if outcome.healthy:
                self.logger.info("ALL GOOD - %s %s", url, outcome.describe())
            else:
                self.logger.warning("RED ALERT! %s %s", url, outcome.describe())

    async def _deliver(self, report: NotificationReport) -> bool:
        try:
            await self.notifier.notify(report)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # the next tick re-notifies while the condition persists
            self.logger.error("Notification for %d URL(s) failed: %s", len(report), exc)
            return False
        return True


__all__ = ["Reporter", "ReporterState", "ReportTick"]
