# site_watch/notify/smtp.py
"""SMTP mail submission for SiteWatch alerts."""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage

from site_watch.config import SmtpNotifierConfig
from site_watch.errors import NotifierError
from site_watch.logger import get_logger
from site_watch.models import NotificationReport
from site_watch.notify.base import render_alert


class SmtpNotifier:
    """Sends the alert through an SMTP server (STARTTLS and login when configured)."""

    def __init__(self, config: SmtpNotifierConfig) -> None:
        self.config = config
        self.logger = get_logger("notify.smtp")

    def build_message(self, report: NotificationReport) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.config.sender
        msg["To"] = ", ".join(self.config.recipients)
        msg["Subject"] = self.config.subject
        msg.set_content(render_alert(report))
        return msg

    async def notify(self, report: NotificationReport) -> None:
        msg = self.build_message(report)
        # smtplib is blocking, keep it off the event loop
        await asyncio.to_thread(self._send, msg)
        self.logger.info(
            "Alert for %d URL(s) sent to %s via %s:%s",
            len(report),
            ", ".join(self.config.recipients),
            self.config.host,
            self.config.port,
        )

    def _send(self, msg: EmailMessage) -> None:
        cfg = self.config
        try:
            with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout) as server:
                if cfg.use_tls:
                    server.starttls()
                if cfg.username and cfg.password:
                    server.login(cfg.username, cfg.password.get_secret_value())
                server.send_message(msg)
        except smtplib.SMTPAuthenticationError as exc:
            raise NotifierError(f"SMTP authentication error: {exc}") from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise NotifierError(f"SMTP error: {type(exc).__name__}: {exc}") from exc
