# site_watch/notify/__init__.py
"""
Notification transports. Exactly one is wired at startup by :func:`build_notifier`.
"""
from __future__ import annotations

from typing import Optional

from aiohttp import ClientSession

from site_watch.config import HttpApiNotifierConfig, NotifierConfig, SmtpNotifierConfig
from site_watch.notify.base import LogNotifier, Notifier, render_alert
from site_watch.notify.http_api import HttpApiNotifier
from site_watch.notify.smtp import SmtpNotifier


def build_notifier(config: Optional[NotifierConfig], session: ClientSession) -> Notifier:
    """Pick the transport matching the ``notifier`` config section."""
    if config is None:
        return LogNotifier()
    if isinstance(config, SmtpNotifierConfig):
        return SmtpNotifier(config)
    if isinstance(config, HttpApiNotifierConfig):
        return HttpApiNotifier(config, session)
    raise TypeError(f"Unsupported notifier config: {type(config).__name__}")


__all__ = [
    "Notifier",
    "LogNotifier",
    "SmtpNotifier",
    "HttpApiNotifier",
    "build_notifier",
    "render_alert",
]
