# File: tests/test_engine.py
import asyncio

import pytest

from site_watch.engine import Monitor
from site_watch.models import OutcomeKind

from conftest import RecordingNotifier, ScriptedChecker


async def wait_for_state(monitor: Monitor, predicate, timeout: float = 2.0):
    """Poll the aggregator until *predicate(snapshot)* holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        snap = await monitor.aggregator.snapshot()
        if predicate(snap):
            return snap
        if loop.time() > deadline:
            raise AssertionError(f"state never satisfied predicate: {dict(snap)}")
        await asyncio.sleep(0.01)


@pytest.mark.asyncio()
async def test_round_trip_single_healthy_url(make_config, notifier):
    cfg = make_config(["http://example.com/"])
    url = cfg.urls[0]
    checker = ScriptedChecker()

    async with Monitor(cfg, checker=checker, notifier=notifier) as monitor:
        await wait_for_state(monitor, lambda s: url in s)
        tick = await monitor.reporter.tick()

    assert set(tick.snapshot) == {url}
    assert tick.snapshot[url].kind is OutcomeKind.HEALTHY_OK
    assert notifier.reports == []
    assert checker.calls == [url]
    assert monitor.resources[0].consecutive_errors == 0


@pytest.mark.asyncio()
async def test_failing_url_is_repolled_and_reported(make_config):
    cfg = make_config(
        ["http://good.example/", "http://bad.example/"],
        poll_interval=0.01,
        error_penalty=0.01,
        report_interval=0.05,
    )
    good, bad = cfg.urls
    checker = ScriptedChecker({bad: ["network"]})
    notifier = RecordingNotifier()

    async with Monitor(cfg, checker=checker, notifier=notifier) as monitor:
        await wait_for_state(monitor, lambda s: good in s and bad in s)
        await asyncio.sleep(0.2)

    assert checker.calls.count(bad) >= 2
    assert notifier.reports
    for report in notifier.reports:
        assert set(report.entries) == {bad}
    bad_resource = next(r for r in monitor.resources if r.url == bad)
    assert bad_resource.consecutive_errors >= 2


@pytest.mark.asyncio()
async def test_stop_cancels_timers_and_tasks(make_config, notifier):
    cfg = make_config(
        [f"http://s{i}.example/" for i in range(5)], worker_count=2, poll_interval=30
    )
    monitor = Monitor(cfg, checker=ScriptedChecker(), notifier=notifier)
    await monitor.start()
    await wait_for_state(monitor, lambda s: len(s) == 5)
    await asyncio.sleep(0.01)
    assert monitor.scheduler.pending_timers == 5

    await monitor.stop()

    assert monitor.scheduler.pending_timers == 0
    assert not monitor.pool.running
    assert not monitor.aggregator.running
    assert monitor.pending.empty()


@pytest.mark.asyncio()
async def test_run_with_duration_returns(make_config, notifier):
    cfg = make_config(report_interval=0.02)
    monitor = Monitor(cfg, checker=ScriptedChecker(), notifier=notifier)
    await asyncio.wait_for(monitor.run(duration=0.1), timeout=2.0)
    assert monitor.reporter.ticks >= 1
    assert not monitor.aggregator.running


@pytest.mark.asyncio()
async def test_request_stop_ends_run(make_config, notifier):
    monitor = Monitor(make_config(), checker=ScriptedChecker(), notifier=notifier)
    runner = asyncio.create_task(monitor.run())
    await asyncio.sleep(0.05)
    monitor.request_stop()
    await asyncio.wait_for(runner, timeout=2.0)
    assert not monitor.pool.running


@pytest.mark.asyncio()
async def test_start_twice_is_an_error(make_config, notifier):
    monitor = Monitor(make_config(), checker=ScriptedChecker(), notifier=notifier)
    await monitor.start()
    try:
        with pytest.raises(RuntimeError):
            await monitor.start()
    finally:
        await monitor.stop()


@pytest.mark.asyncio()
async def test_restarted_monitor_keeps_polling(make_config, notifier):
    cfg = make_config(poll_interval=0.01, error_penalty=0.0)
    url = cfg.urls[0]
    checker = ScriptedChecker()
    monitor = Monitor(cfg, checker=checker, notifier=notifier)

    await monitor.start()
    await asyncio.sleep(0.1)
    await monitor.stop()
    first_run = checker.calls.count(url)

    await monitor.start()
    assert not monitor.scheduler.closed
    await asyncio.sleep(0.1)
    await monitor.stop()
    second_run = checker.calls.count(url) - first_run

    assert first_run >= 3
    assert second_run >= 3
    assert monitor.scheduler.pending_timers == 0
