# src/tasker/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either runs a single reminder
sweep (--once) or the reminder scheduler until SIGINT/SIGTERM.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.reminder import SweepReport, run_sweep
from ..tasks.task_scheduler import run_reminder_scheduler, utc_now

logger = logging.getLogger(__name__)


def _log_report(report: SweepReport) -> None:
    for failure in report.failures:
        logger.warning(
            "Reminder failed task_id=%s stage=%s: %s",
            failure.task_id,
            failure.stage,
            failure.reason,
        )
    if report.aborted:
        logger.error("Reminder sweep aborted; next tick will retry")


def _lease(settings) -> float | None:
    lease = float(getattr(settings, "reminder_lease_seconds", 0.0))
    return lease if lease > 0 else None


async def _run_once(state: AppState) -> SweepReport:
    s = state.settings
    report = await run_sweep(
        state.task_store,
        state.user_store,
        state.notifier,
        now=utc_now(),
        batch_size=s.reminder_batch_size,
        notify_timeout_seconds=s.notify_timeout_seconds,
        lease_seconds=_lease(s),
    )
    _log_report(report)
    return report


async def _run_forever(state: AppState) -> None:
    s = state.settings
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        # Not available on every platform (e.g. Windows event loops).
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(signum, stop.set)

    await run_reminder_scheduler(
        state.task_store,
        state.user_store,
        state.notifier,
        interval_seconds=s.reminder_interval_seconds,
        align_to_interval=s.reminder_align_to_interval,
        batch_size=s.reminder_batch_size,
        notify_timeout_seconds=s.notify_timeout_seconds,
        lease_seconds=_lease(s),
        stop_event=stop,
        on_report=_log_report,
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="tasker", description="Task reminder worker.")
    parser.add_argument("--once", action="store_true", help="run a single reminder sweep and exit")
    args = parser.parse_args(argv)

    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    log_file = setup_logging(
        log_dir=settings.data_dir,
        app_name=settings.app_name,
        console_level=console_level,
    )

    logger.info("Starting %s... (log file %s)", settings.app_name, log_file)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    try:
        if args.once:
            report = asyncio.run(_run_once(state))
            return 1 if report.aborted else 0
        asyncio.run(_run_forever(state))
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        return 0
    finally:
        state.task_store.close()
        logger.info("Bye.")


if __name__ == "__main__":
    raise SystemExit(main())
