# File: tests/test_notify.py
from __future__ import annotations

import smtplib

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from site_watch.config import HttpApiNotifierConfig, SmtpNotifierConfig
from site_watch.errors import NotifierError
from site_watch.models import NotificationReport, StatusOutcome, freeze_snapshot
from site_watch.notify import (
    HttpApiNotifier,
    LogNotifier,
    Notifier,
    SmtpNotifier,
    build_notifier,
    render_alert,
)


def _report() -> NotificationReport:
    snap = freeze_snapshot(
        {
            "http://ok.example/": StatusOutcome.ok("http://ok.example/"),
            "http://down.example/": StatusOutcome.http_error(
                "http://down.example/", 502, "Bad Gateway"
            ),
            "http://gone.example/": StatusOutcome.network_error(
                "http://gone.example/", "connection refused"
            ),
        }
    )
    return NotificationReport.from_snapshot(snap)


def _smtp_config(**overrides) -> SmtpNotifierConfig:
    data = dict(
        host="mail.example.com",
        port=587,
        username="monitor",
        password="secret",
        sender="monitor@example.com",
        recipients=["ops@example.com", "dev@example.com"],
    )
    data.update(overrides)
    return SmtpNotifierConfig(**data)


def test_render_alert_lists_every_unhealthy_url():
    text = render_alert(_report())
    assert text.startswith("2 monitored URL(s) are unhealthy")
    assert "http://down.example/ HTTP 502 Bad Gateway" in text
    assert "http://gone.example/ network error: connection refused" in text
    assert "ok.example" not in text


class FakeSMTP:
    instances: list[FakeSMTP] = []
    fail_with: Exception | None = None

    def __init__(self, host, port, timeout=None):
        self.host, self.port, self.timeout = host, port, timeout
        self.actions: list = []
        self.messages: list = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.actions.append("quit")
        return False

    def starttls(self):
        self.actions.append("starttls")

    def login(self, user, password):
        self.actions.append(("login", user, password))

    def send_message(self, msg):
        if FakeSMTP.fail_with is not None:
            raise FakeSMTP.fail_with
        self.messages.append(msg)


@pytest.fixture()
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


@pytest.mark.asyncio()
async def test_smtp_notifier_sends_one_message(fake_smtp):
    await SmtpNotifier(_smtp_config()).notify(_report())

    assert len(fake_smtp.instances) == 1
    server = fake_smtp.instances[0]
    assert (server.host, server.port) == ("mail.example.com", 587)
    assert server.actions[:2] == ["starttls", ("login", "monitor", "secret")]
    (msg,) = server.messages
    assert msg["To"] == "ops@example.com, dev@example.com"
    assert msg["Subject"] == "WebSite Status!"
    assert "http://down.example/" in msg.get_content()


@pytest.mark.asyncio()
async def test_smtp_notifier_plain_without_login(fake_smtp):
    await SmtpNotifier(_smtp_config(use_tls=False, username=None, password=None)).notify(_report())
    assert fake_smtp.instances[0].actions == ["quit"]


@pytest.mark.asyncio()
async def test_smtp_failure_raises_notifier_error(fake_smtp):
    fake_smtp.fail_with = smtplib.SMTPRecipientsRefused({})
    with pytest.raises(NotifierError):
        await SmtpNotifier(_smtp_config()).notify(_report())


@pytest.mark.asyncio()
async def test_http_api_notifier_posts_json(aiohttp_email_api):
    base, received = aiohttp_email_api
    cfg = HttpApiNotifierConfig(
        endpoint=f"{base}/send",
        api_key="token-123",
        sender="monitor@example.com",
        recipients=["ops@example.com"],
    )
    async with ClientSession() as session:
        await HttpApiNotifier(cfg, session).notify(_report())

    (req,) = received
    assert req["auth"] == "Bearer token-123"
    assert req["body"]["to"] == ["ops@example.com"]
    assert "http://gone.example/" in req["body"]["text"]


@pytest.mark.asyncio()
async def test_http_api_error_status_raises(aiohttp_email_api):
    base, _ = aiohttp_email_api
    cfg = HttpApiNotifierConfig(
        endpoint=f"{base}/reject",
        api_key="k",
        sender="monitor@example.com",
        recipients=["ops@example.com"],
    )
    async with ClientSession() as session:
        with pytest.raises(NotifierError, match="HTTP 401"):
            await HttpApiNotifier(cfg, session).notify(_report())


@pytest.mark.asyncio()
async def test_http_api_unreachable_raises(unused_tcp_port):
    cfg = HttpApiNotifierConfig(
        endpoint=f"http://localhost:{unused_tcp_port}/send",
        api_key="k",
        sender="monitor@example.com",
        recipients=["ops@example.com"],
    )
    async with ClientSession() as session:
        with pytest.raises(NotifierError):
            await HttpApiNotifier(cfg, session).notify(_report())


@pytest.mark.asyncio()
async def test_build_notifier_selects_transport():
    async with ClientSession() as session:
        assert isinstance(build_notifier(None, session), LogNotifier)
        assert isinstance(build_notifier(_smtp_config(), session), SmtpNotifier)
        api = HttpApiNotifierConfig(
            endpoint="https://api.mail.example/send",
            api_key="k",
            sender="m@example.com",
            recipients=["ops@example.com"],
        )
        notifier = build_notifier(api, session)
        assert isinstance(notifier, HttpApiNotifier)
        assert isinstance(notifier, Notifier)


@pytest.mark.asyncio()
async def test_log_notifier_never_raises():
    await LogNotifier().notify(_report())


# --------------------------------------------------------------------------- #
#                               Fixtures                                      #
# --------------------------------------------------------------------------- #

@pytest_asyncio.fixture
async def aiohttp_email_api(unused_tcp_port: int):
    received: list[dict] = []
    app = web.Application()

    async def send(request: web.Request):
        received.append(
            {"auth": request.headers.get("Authorization"), "body": await request.json()}
        )
        return web.json_response({"id": "msg-1"}, status=202)

    async def reject(_):
        return web.Response(status=401, text="bad key")

    app.router.add_post("/send", send)
    app.router.add_post("/reject", reject)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", unused_tcp_port)
    await site.start()
    try:
        yield f"http://localhost:{unused_tcp_port}", received
    finally:
        await runner.cleanup()
