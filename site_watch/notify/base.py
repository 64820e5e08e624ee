# site_watch/notify/base.py
"""Notifier contract and alert rendering shared by every transport."""

from __future__ import annotations

from functools import lru_cache
from typing import Protocol, runtime_checkable

from jinja2 import Environment, PackageLoader, StrictUndefined

from site_watch.logger import get_logger
from site_watch.models import NotificationReport


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=PackageLoader("site_watch", "templates"),
        autoescape=False,
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )


@runtime_checkable
class Notifier(Protocol):
    """Delivers one batched alert; raises :class:`NotifierError` on failure."""

    async def notify(self, report: NotificationReport) -> None: ...


def render_alert(report: NotificationReport) -> str:
    """Render the plain-text alert body for *report*."""
    template = _environment().get_template("alert.txt.j2")
    return template.render(
        count=len(report),
        generated_at=report.generated_at.strftime("%Y-%m-%d %H:%M:%S %Z"),
        entries=sorted(report.entries.items()),
    )


class LogNotifier:
    """Fallback used when no transport is configured: the alert goes to the log."""

    def __init__(self) -> None:
        self.logger = get_logger("notify")

    async def notify(self, report: NotificationReport) -> None:
        self.logger.warning("ALERT (no notifier configured)\n%s", render_alert(report))
