# src/tasker/tasks/task_api.py

from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from .task_models import Task, TaskPriority, as_utc
from .task_store import TaskStore

logger = logging.getLogger(__name__)


class TaskValidationError(ValueError):
    """Input rejected before it reaches the store."""


class TaskNotFoundError(LookupError):
    """No such task for this owner."""


def parse_due_date(value: datetime | str | None) -> datetime | None:
    """
    Accept a datetime or an ISO-8601 string ("2025-01-10T10:00:00Z").
    Naive values are taken to be UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    raw = str(value).strip()
    if not raw:
        return None
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(raw))
    except ValueError:
        raise TaskValidationError(
            "Invalid due_date format. Please provide a valid date."
        ) from None


def _parse_priority(value: TaskPriority | str | None) -> TaskPriority | None:
    if value is None or value == "":
        return None
    try:
        return TaskPriority(str(value).lower())
    except ValueError:
        raise TaskValidationError(
            f"Invalid priority {value!r}; expected one of: high, medium, low"
        ) from None


def _parse_lead_hours(value: Any) -> float | None:
    if value is None:
        return None
    try:
        lead = float(value)
    except (TypeError, ValueError):
        raise TaskValidationError("reminder_lead_hours must be a number") from None
    if not math.isfinite(lead) or lead < 0:
        raise TaskValidationError("reminder_lead_hours must be a finite, non-negative number")
    return lead


def create_task(
    store: TaskStore,
    *,
    owner_ref: int,
    title: str,
    description: str | None = None,
    due_date: datetime | str | None = None,
    priority: TaskPriority | str | None = None,
    reminder_lead_hours: float | None = None,
) -> Task:
    if not title or not str(title).strip():
        raise TaskValidationError("Title is required")

    task_id = store.add_task(
        owner_ref=owner_ref,
        title=str(title),
        description=description,
        due_date=parse_due_date(due_date),
        priority=_parse_priority(priority) or TaskPriority.MEDIUM,
        reminder_lead_hours=_parse_lead_hours(reminder_lead_hours),
    )
    logger.info("Task created id=%s owner=%s", task_id, owner_ref)
    return get_task(store, task_id, owner_ref=owner_ref)


def get_task(store: TaskStore, task_id: int, *, owner_ref: int) -> Task:
    task = store.get_task(task_id)
    if task is None or task.owner_ref != int(owner_ref):
        raise TaskNotFoundError(f"Task {task_id} not found")
    return task


def list_tasks(
    store: TaskStore,
    *,
    owner_ref: int,
    title: str | None = None,
    status: str | None = None,
    priority: TaskPriority | str | None = None,
    due_date: datetime | str | None = None,
) -> list[Task]:
    return store.list_tasks(
        owner_ref,
        title=title or None,
        status=status or None,
        priority=_parse_priority(priority),
        due_date=parse_due_date(due_date),
    )


def update_task(
    store: TaskStore,
    task_id: int,
    *,
    owner_ref: int,
    title: str | None = None,
    description: str | None = None,
    due_date: datetime | str | None = None,
    clear_due_date: bool = False,
    status: str | None = None,
    priority: TaskPriority | str | None = None,
    reminder_lead_hours: float | None = None,
) -> Task:
    """
    Change only the supplied fields (falsy strings are ignored, like an
    omitted form field). clear_due_date removes the due date and wins over
    due_date. A reminder that was already sent is not re-armed.
    """
    get_task(store, task_id, owner_ref=owner_ref)

    store.update_task_fields(
        task_id,
        title=title.strip() if title and title.strip() else None,
        description=description or None,
        due_date=None if clear_due_date or not due_date else parse_due_date(due_date),
        clear_due_date=clear_due_date,
        status=status or None,
        priority=_parse_priority(priority),
        reminder_lead_hours=_parse_lead_hours(reminder_lead_hours),
    )
    logger.info("Task updated id=%s owner=%s", task_id, owner_ref)
    return get_task(store, task_id, owner_ref=owner_ref)


def delete_task(store: TaskStore, task_id: int, *, owner_ref: int) -> None:
    get_task(store, task_id, owner_ref=owner_ref)
    if not store.delete_task(task_id):
        raise TaskNotFoundError(f"Task {task_id} not found")
    logger.info("Task deleted id=%s owner=%s", task_id, owner_ref)
