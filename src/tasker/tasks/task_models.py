# src/tasker/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import StrEnum

DEFAULT_REMINDER_LEAD_HOURS = 24.0


class TaskPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskPriority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            return cls.MEDIUM


@dataclass(slots=True)
class Task:
    """
    A user's task as seen by the reminder sweep.

    Notes:
    - due_date is timezone-aware UTC; None means "no deadline" and the task
      never enters a reminder window.
    - notified flips False -> True once and is never reset.
    - claimed_until is only used when reminder leases are enabled.
    """

    id: int
    owner_ref: int
    title: str
    due_date: datetime | None
    reminder_lead_hours: float = DEFAULT_REMINDER_LEAD_HOURS
    notified: bool = False

    description: str | None = None
    status: str = "Pending"
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: datetime | None = None
    updated_at: datetime | None = None
    claimed_until: datetime | None = None

    @property
    def reminder_at(self) -> datetime | None:
        return reminder_at(self)


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def reminder_at(task: Task) -> datetime | None:
    """Start of the task's reminder window, or None when it has no due date."""
    if task.due_date is None:
        return None
    lead = max(0.0, float(task.reminder_lead_hours))
    try:
        return as_utc(task.due_date) - timedelta(hours=lead)
    except OverflowError:
        # Window reaches past datetime.min: always open.
        return datetime.min.replace(tzinfo=timezone.utc)


def is_reminder_due(task: Task, now: datetime) -> bool:
    """Inclusive check: a task is due at the exact reminder instant and every moment after."""
    start = reminder_at(task)
    if start is None:
        return False
    return as_utc(now) >= start
