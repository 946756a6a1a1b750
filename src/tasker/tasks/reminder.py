# src/tasker/tasks/reminder.py

from __future__ import annotations

"""
Reminder sweep.

One pass over every unnotified task:
- skip tasks without a due date,
- skip tasks whose reminder window has not opened yet,
- resolve the owner's contact details,
- (optionally) lease the task so an overlapping sweep leaves it alone,
- send the reminder through the injected notifier,
- mark the task notified only after a successful send.

Per-task failures are logged and recorded in the SweepReport; they never stop
the sweep. Only a failure to list tasks ends a sweep early. run_sweep never
raises to its caller.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime

from ..core.ports import DeliveryResult, Notifier, OwnerDirectory, TaskRepo
from .task_models import Task, as_utc, is_reminder_due

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TaskFailure:
    task_id: int
    stage: str  # "resolve" | "claim" | "send" | "mark" | "process"
    reason: str


@dataclass(slots=True)
class SweepReport:
    started_at: datetime
    examined: int = 0
    skipped_no_due_date: int = 0
    not_yet_due: int = 0
    already_claimed: int = 0
    notified: list[int] = field(default_factory=list)
    failures: list[TaskFailure] = field(default_factory=list)
    aborted: bool = False
    cancelled: bool = False

    def fail(self, task: Task, stage: str, reason: str) -> None:
        self.failures.append(TaskFailure(task_id=task.id, stage=stage, reason=reason))


async def _deliver(
    notifier: Notifier,
    contact_address: str,
    display_name: str,
    task: Task,
    timeout_seconds: float | None,
) -> DeliveryResult:
    """Call the notifier, turning raises and timeouts into failed results."""
    try:
        coro = notifier.send(contact_address, display_name, task)
        if timeout_seconds is not None and timeout_seconds > 0:
            result = await asyncio.wait_for(coro, timeout=timeout_seconds)
        else:
            result = await coro
    except asyncio.TimeoutError:
        return DeliveryResult.failed(f"timed out after {timeout_seconds}s")
    except Exception as exc:
        logger.exception("notifier raised task_id=%s", task.id)
        return DeliveryResult.failed(f"{type(exc).__name__}: {exc}")

    if result is None:
        return DeliveryResult.failed("notifier returned no result")
    return result


async def _process_task(
    task: Task,
    report: SweepReport,
    *,
    task_store: TaskRepo,
    owners: OwnerDirectory,
    notifier: Notifier,
    now: datetime,
    notify_timeout_seconds: float | None,
    lease_seconds: float | None,
) -> None:
    if task.due_date is None:
        report.skipped_no_due_date += 1
        return

    if not is_reminder_due(task, now):
        report.not_yet_due += 1
        return

    try:
        owner = owners.resolve_owner(task.owner_ref)
    except Exception as exc:
        logger.exception("resolve_owner failed task_id=%s owner=%s", task.id, task.owner_ref)
        report.fail(task, "resolve", f"{type(exc).__name__}: {exc}")
        return

    if owner is None:
        logger.warning("Owner not found task_id=%s owner=%s; retrying next sweep", task.id, task.owner_ref)
        report.fail(task, "resolve", "owner not found")
        return

    leased = bool(lease_seconds and lease_seconds > 0)
    if leased:
        try:
            claimed = task_store.try_claim_reminder(task.id, now=now, lease_seconds=float(lease_seconds))
        except Exception as exc:
            logger.exception("try_claim_reminder failed task_id=%s", task.id)
            report.fail(task, "claim", f"{type(exc).__name__}: {exc}")
            return
        if not claimed:
            logger.debug("Task %s is claimed by another sweep; skipping", task.id)
            report.already_claimed += 1
            return

    logger.info("Sending reminder task_id=%s title=%r to=%s", task.id, task.title, owner.contact_address)
    result = await _deliver(
        notifier,
        owner.contact_address,
        owner.display_name,
        task,
        notify_timeout_seconds,
    )

    if not result.success:
        logger.warning("Reminder delivery failed task_id=%s: %s", task.id, result.error)
        report.fail(task, "send", result.error or "delivery failed")
        if leased:
            try:
                task_store.release_reminder_claim(task.id)
            except Exception:
                logger.exception("release_reminder_claim failed task_id=%s", task.id)
        return

    # The send has happened; if this write fails the next sweep sends again.
    try:
        changed = task_store.mark_notified(task.id)
    except Exception as exc:
        logger.exception("mark_notified failed task_id=%s; reminder may be sent again", task.id)
        report.fail(task, "mark", f"{type(exc).__name__}: {exc}")
        return

    if not changed:
        logger.info("Task %s was already notified or removed by someone else", task.id)
    report.notified.append(task.id)
    logger.info("Task %s marked as notified", task.id)


async def run_sweep(
    task_store: TaskRepo,
    owners: OwnerDirectory,
    notifier: Notifier,
    *,
    now: datetime,
    batch_size: int = 100,
    notify_timeout_seconds: float | None = 30.0,
    lease_seconds: float | None = None,
    stop_event: asyncio.Event | None = None,
) -> SweepReport:
    """
    Run one reminder sweep at instant `now`.

    stop_event is checked before each task: once set, no new task is started
    and the report comes back with cancelled=True.
    """
    now = as_utc(now)
    report = SweepReport(started_at=now)
    logger.debug("Reminder sweep started at %s", now.isoformat())

    try:
        for task in task_store.find_unnotified(batch_size=batch_size):
            if stop_event is not None and stop_event.is_set():
                report.cancelled = True
                logger.info("Reminder sweep stopping early (shutdown requested)")
                break

            report.examined += 1
            try:
                await _process_task(
                    task,
                    report,
                    task_store=task_store,
                    owners=owners,
                    notifier=notifier,
                    now=now,
                    notify_timeout_seconds=notify_timeout_seconds,
                    lease_seconds=lease_seconds,
                )
            except Exception as exc:
                logger.exception("Unexpected error processing task_id=%s", getattr(task, "id", None))
                report.fail(task, "process", f"{type(exc).__name__}: {exc}")
    except Exception:
        logger.exception("find_unnotified failed; aborting reminder sweep")
        report.aborted = True

    if report.notified or report.failures:
        logger.info(
            "Reminder sweep done: examined=%d notified=%d failed=%d",
            report.examined,
            len(report.notified),
            len(report.failures),
        )
    else:
        logger.debug("Reminder sweep done: examined=%d, nothing to send", report.examined)
    return report
