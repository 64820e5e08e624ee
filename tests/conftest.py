# File: tests/conftest.py
import asyncio
import logging
from collections import defaultdict
from typing import Dict, List, Sequence

import pytest

from site_watch.config import MonitorConfig
from site_watch.errors import NotifierError
from site_watch.logger import LOGGER_NAME
from site_watch.models import NotificationReport, StatusOutcome


class ScriptedChecker:
    """
    Fake checker: returns outcomes from a per-URL script, repeating the last one.
    Records every call.
    """

    def __init__(self, script: Dict[str, Sequence[str]] | None = None, default: str = "ok") -> None:
        self.script = {url: list(kinds) for url, kinds in (script or {}).items()}
        self.default = default
        self.calls: List[str] = []
        self._seen: Dict[str, int] = defaultdict(int)

    async def __call__(self, url: str) -> StatusOutcome:
        self.calls.append(url)
        kinds = self.script.get(url) or [self.default]
        idx = min(self._seen[url], len(kinds) - 1)
        self._seen[url] += 1
        await asyncio.sleep(0)
        return make_outcome(url, kinds[idx])


class RecordingNotifier:
    """Fake notifier: keeps every report, optionally fails."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.reports: List[NotificationReport] = []

    async def notify(self, report: NotificationReport) -> None:
        self.reports.append(report)
        if self.fail:
            raise NotifierError("mail server down")


def make_outcome(url: str, kind: str) -> StatusOutcome:
    if kind == "ok":
        return StatusOutcome.ok(url)
    if kind == "http":
        return StatusOutcome.http_error(url, 503, "Service Unavailable")
    if kind == "maintenance":
        return StatusOutcome.maintenance(url, 200, "under maintenance")
    if kind == "network":
        return StatusOutcome.network_error(url, "connection refused")
    raise ValueError(kind)


@pytest.fixture()
def make_config():
    """
    Return a factory for MonitorConfig with fast test-friendly defaults.
    """

    def _factory(urls=("http://example.com/",), **overrides) -> MonitorConfig:
        data = dict(
            target_urls=list(urls),
            worker_count=2,
            poll_interval=60.0,
            report_interval=60.0,
            error_penalty=10.0,
            request_timeout=2.0,
        )
        data.update(overrides)
        return MonitorConfig(**data)

    return _factory


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def reset_logger():
    """CLI tests attach handlers bound to CliRunner streams; drop them afterwards."""
    yield
    lg = logging.getLogger(LOGGER_NAME)
    lg.handlers.clear()
    lg.propagate = True
    lg.setLevel(logging.NOTSET)
