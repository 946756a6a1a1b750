# tests/test_task_scheduler.py

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from tasker.tasks.reminder import SweepReport
from tasker.tasks.task_scheduler import run_reminder_scheduler, seconds_until_next_tick

from .fakes import FakeTaskRepo, make_task, utc

DUE = utc(2025, 1, 10, 10, 0, 0)


def test_seconds_until_next_tick_aligns_to_the_hour() -> None:
    assert seconds_until_next_tick(utc(2025, 1, 9, 10, 59, 0), 3600) == pytest.approx(60.0)
    assert seconds_until_next_tick(utc(2025, 1, 9, 10, 0, 0), 3600) == pytest.approx(3600.0)


@pytest.mark.asyncio
async def test_scheduler_dispatches_due_task_once(owners, notifier) -> None:
    repo = FakeTaskRepo([make_task(1, due=DUE), make_task(2, due=DUE + timedelta(days=7))])
    reports: list[SweepReport] = []

    runner = asyncio.create_task(
        run_reminder_scheduler(
            repo,
            owners,
            notifier,
            interval_seconds=0.5,
            clock=lambda: DUE,
            on_report=reports.append,
        )
    )

    await asyncio.sleep(1.2)
    runner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await runner

    assert len(reports) >= 2, "Scheduler should tick more than once"
    assert notifier.sent_ids() == [1]
    assert repo.find_calls >= len(reports)


@pytest.mark.asyncio
async def test_scheduler_survives_listing_failures_and_stops_on_event(owners, notifier) -> None:
    repo = FakeTaskRepo([make_task(1, due=DUE)])
    repo.fail_find = True
    stop = asyncio.Event()
    reports: list[SweepReport] = []

    def on_report(report: SweepReport) -> None:
        reports.append(report)
        if len(reports) == 2:
            # Store comes back on the third tick.
            repo.fail_find = False
        if len(reports) == 3:
            stop.set()

    await asyncio.wait_for(
        run_reminder_scheduler(
            repo,
            owners,
            notifier,
            interval_seconds=0.5,
            clock=lambda: DUE,
            stop_event=stop,
            on_report=on_report,
        ),
        timeout=5.0,
    )

    assert [r.aborted for r in reports] == [True, True, False]
    assert notifier.sent_ids() == [1]


@pytest.mark.asyncio
async def test_scheduler_exits_promptly_when_stopped_while_waiting(owners, notifier) -> None:
    stop = asyncio.Event()
    runner = asyncio.create_task(
        run_reminder_scheduler(
            FakeTaskRepo([]),
            owners,
            notifier,
            interval_seconds=3600,
            clock=lambda: DUE,
            stop_event=stop,
        )
    )
    await asyncio.sleep(0.05)
    stop.set()
    await asyncio.wait_for(runner, timeout=1.0)
    assert runner.done()
