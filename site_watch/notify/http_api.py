# site_watch/notify/http_api.py
"""Transactional-email HTTP API binding for SiteWatch alerts."""

from __future__ import annotations

import asyncio

from aiohttp import ClientError, ClientSession

from site_watch.config import HttpApiNotifierConfig
from site_watch.errors import NotifierError
from site_watch.logger import get_logger
from site_watch.models import NotificationReport
from site_watch.notify.base import render_alert


class HttpApiNotifier:
    """POSTs the alert as JSON with a bearer token over the shared aiohttp session."""

    def __init__(self, config: HttpApiNotifierConfig, session: ClientSession) -> None:
        self.config = config
        self.session = session
        self.logger = get_logger("notify.http_api")

    def build_payload(self, report: NotificationReport) -> dict:
        return {
            "from": self.config.sender,
            "to": list(self.config.recipients),
            "subject": self.config.subject,
            "text": render_alert(report),
        }

    async def notify(self, report: NotificationReport) -> None:
        headers = {"Authorization": f"Bearer {self.config.api_key.get_secret_value()}"}
        try:
            async with self.session.post(
                str(self.config.endpoint),
                json=self.build_payload(report),
                headers=headers,
                raise_for_status=False,
            ) as resp:
                if not 200 <= resp.status < 300:
                    detail = (await resp.text())[:200]
                    raise NotifierError(f"email API answered HTTP {resp.status}: {detail}")
        except (ClientError, asyncio.TimeoutError) as exc:
            raise NotifierError(f"email API unreachable: {type(exc).__name__}: {exc}") from exc
        self.logger.info("Alert for %d URL(s) accepted by %s", len(report), self.config.endpoint)
