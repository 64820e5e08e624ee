# site_watch/errors.py
"""
Exception hierarchy for SiteWatch.

Check errors never leave the checker: they are converted into
:class:`~site_watch.models.StatusOutcome` values. Notifier errors never leave
the reporter: they are logged and the next tick tries again.
"""
from __future__ import annotations

from typing import Optional


class SiteWatchError(Exception):
    """Base class for all SiteWatch errors."""


class CheckError(SiteWatchError):
    """A single health check did not yield a healthy response."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class TransportError(CheckError):
    """DNS, connect or timeout failure: the endpoint is unreachable."""


class ProtocolError(CheckError):
    """The endpoint answered with a non-2xx HTTP status."""


class ContentAnomaly(CheckError):
    """2xx response whose body carries a maintenance marker."""


class NotifierError(SiteWatchError):
    """Delivery of an alert to the notification transport failed."""


__all__ = [
    "SiteWatchError",
    "CheckError",
    "TransportError",
    "ProtocolError",
    "ContentAnomaly",
    "NotifierError",
]
