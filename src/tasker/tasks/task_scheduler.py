# src/tasker/tasks/task_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

A small timer loop that runs one reminder sweep per tick. The cadence is a
setting; with align_to_interval the ticks land on wall-clock multiples of the
interval (interval=3600 -> top of every hour).

Sweeps in one loop never overlap: if a sweep outlasts the interval the next
one starts right after it. Separate processes running their own loops can
overlap; enable leases to keep them from double-sending.
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from ..core.ports import Notifier, OwnerDirectory, TaskRepo
from .reminder import SweepReport, run_sweep

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def seconds_until_next_tick(now: datetime, interval_seconds: float) -> float:
    """Delay from `now` to the next wall-clock multiple of interval_seconds."""
    interval = max(0.5, float(interval_seconds))
    elapsed = now.timestamp() % interval
    return interval - elapsed


async def _wait_or_stop(stop_event: asyncio.Event, delay: float) -> bool:
    """Sleep up to `delay` seconds. Returns True if stop was requested meanwhile."""
    if delay <= 0:
        await asyncio.sleep(0)
        return stop_event.is_set()
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return False
    return True


async def run_reminder_scheduler(
        task_store: TaskRepo,
        owners: OwnerDirectory,
        notifier: Notifier,
        *,
        interval_seconds: float = 3600.0,
        align_to_interval: bool = False,
        batch_size: int = 100,
        notify_timeout_seconds: float | None = 30.0,
        lease_seconds: float | None = None,
        stop_event: asyncio.Event | None = None,
        clock: Clock = utc_now,
        on_report: Callable[[SweepReport], None] | None = None,
) -> None:
    """
    Run reminder sweeps until stop_event is set (or the coroutine is cancelled).

    Every tick:
    - read the clock
    - run_sweep(now=...) over all unnotified tasks
    - hand the SweepReport to on_report (if given)
    - sleep until the next tick
    """
    interval = max(0.5, float(interval_seconds))
    stop = stop_event if stop_event is not None else asyncio.Event()

    logger.info(
        "Reminder scheduler started interval=%.1fs aligned=%s lease=%s",
        interval,
        align_to_interval,
        lease_seconds,
    )

    if align_to_interval:
        if await _wait_or_stop(stop, seconds_until_next_tick(clock(), interval)):
            logger.info("Reminder scheduler stopped before first tick")
            return

    loop = asyncio.get_running_loop()
    while not stop.is_set():
        started = loop.time()
        now = clock()
        logger.info("Reminder sweep tick at %s", now.isoformat())

        try:
            report = await run_sweep(
                task_store,
                owners,
                notifier,
                now=now,
                batch_size=batch_size,
                notify_timeout_seconds=notify_timeout_seconds,
                lease_seconds=lease_seconds,
                stop_event=stop,
            )
        except Exception:
            # run_sweep reports its own failures; this only guards the loop.
            logger.exception("Reminder sweep crashed")
        else:
            if on_report is not None:
                try:
                    on_report(report)
                except Exception:
                    logger.exception("on_report callback failed")

        if align_to_interval:
            delay = seconds_until_next_tick(clock(), interval)
        else:
            delay = interval - (loop.time() - started)
            if delay <= 0:
                logger.warning("Reminder sweep overran its interval by %.1fs", -delay)

        if await _wait_or_stop(stop, delay):
            break

    logger.info("Reminder scheduler stopped")
