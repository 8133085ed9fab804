from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from app.services.subscription_scheduler import SubscriptionCheckScheduler


def test_compute_next_run_daily_at_nine():
    start = datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)
    nxt = SubscriptionCheckScheduler.compute_next_run("0 9 * * *", start)
    assert nxt == datetime(2024, 3, 2, 9, 0, tzinfo=timezone.utc)


def test_compute_next_run_same_day_before_nine():
    start = datetime(2024, 3, 1, 6, 0, tzinfo=timezone.utc)
    nxt = SubscriptionCheckScheduler.compute_next_run("0 9 * * *", start)
    assert nxt == datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_tick_runs_check_and_records_time():
    calls = []

    async def runner():
        calls.append(1)
        return "report"

    scheduler = SubscriptionCheckScheduler(schedule_cron="0 9 * * *", runner=runner)
    assert await scheduler.tick() == "report"
    assert calls == [1]
    assert scheduler.last_run_at is not None


@pytest.mark.asyncio
async def test_tick_swallows_runner_failure():
    async def runner():
        raise RuntimeError("database unavailable")

    scheduler = SubscriptionCheckScheduler(schedule_cron="0 9 * * *", runner=runner)
    assert await scheduler.tick() is None
    assert scheduler.last_run_at is None


@pytest.mark.asyncio
async def test_start_and_stop():
    async def runner():
        return None

    scheduler = SubscriptionCheckScheduler(schedule_cron="0 9 * * *", runner=runner)
    scheduler.start()
    await asyncio.sleep(0)
    await scheduler.stop()
    assert scheduler.next_run_at is not None


@pytest.mark.asyncio
async def test_tick_skips_while_previous_run_in_flight():
    release = asyncio.Event()
    calls = []

    async def runner():
        calls.append(1)
        await release.wait()
        return "report"

    scheduler = SubscriptionCheckScheduler(schedule_cron="0 9 * * *", runner=runner)
    first = asyncio.create_task(scheduler.tick())
    await asyncio.sleep(0)

    assert await scheduler.tick() is None

    release.set()
    assert await first == "report"
    assert calls == [1]


def test_early_wakeup_does_not_repeat_fire_time():
    scheduler = SubscriptionCheckScheduler(schedule_cron="0 9 * * *", runner=None)
    scheduler.next_run_at = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    early = datetime(2024, 3, 1, 8, 59, 59, 999000, tzinfo=timezone.utc)

    assert scheduler.next_fire_time(early) == datetime(2024, 3, 2, 9, 0, tzinfo=timezone.utc)


def test_next_fire_time_after_missed_runs_uses_clock():
    scheduler = SubscriptionCheckScheduler(schedule_cron="0 9 * * *", runner=None)
    scheduler.next_run_at = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    late = datetime(2024, 3, 3, 12, 0, tzinfo=timezone.utc)

    assert scheduler.next_fire_time(late) == datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)
