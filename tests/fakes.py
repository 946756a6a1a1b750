# tests/fakes.py

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

from tasker.core.ports import DeliveryResult, OwnerContact
from tasker.tasks.task_models import Task, as_utc


@dataclass(slots=True)
class SentReminder:
    contact_address: str
    display_name: str
    task_id: int


@dataclass(slots=True)
class FakeNotifier:
    """
    Fake Notifier used by sweep/scheduler tests.

    - fail_for: contact addresses whose delivery reports failure
    - raise_for: contact addresses whose delivery raises
    - delay: seconds to sleep before answering (for timeout tests)
    """

    sent: list[SentReminder] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)
    raise_for: set[str] = field(default_factory=set)
    delay: float = 0.0

    async def send(self, contact_address: str, display_name: str, task: Task) -> DeliveryResult:
        if self.delay:
            await asyncio.sleep(self.delay)
        if contact_address in self.raise_for:
            raise ConnectionError(f"cannot reach {contact_address}")
        if contact_address in self.fail_for:
            return DeliveryResult.failed("mailbox unavailable")
        self.sent.append(SentReminder(contact_address, display_name, task.id))
        return DeliveryResult.ok()

    def sent_ids(self) -> list[int]:
        return [s.task_id for s in self.sent]


class FakeOwners:
    """OwnerDirectory backed by a dict; owner refs listed in `broken` raise."""

    def __init__(self, owners: dict[int, OwnerContact], broken: set[int] | None = None) -> None:
        self.owners = dict(owners)
        self.broken = set(broken or ())

    def resolve_owner(self, owner_ref: int) -> OwnerContact | None:
        if owner_ref in self.broken:
            raise RuntimeError(f"directory lookup failed for {owner_ref}")
        return self.owners.get(owner_ref)


class FakeTaskRepo:
    """
    In-memory TaskRepo used for sweep unit tests.

    This avoids SQLite and makes tests purely about reminder logic:
    window checks, failure isolation, marking, leases.
    """

    def __init__(self, tasks: list[Task]) -> None:
        self.tasks = {t.id: t for t in tasks}
        self.fail_mark = False
        self.fail_find = False
        self.fail_find_after: int | None = None
        self.find_calls = 0

    def find_unnotified(self, *, batch_size: int = 100) -> Iterator[Task]:
        self.find_calls += 1
        if self.fail_find:
            raise RuntimeError("database unavailable")
        pending = [t for t in sorted(self.tasks.values(), key=lambda t: t.id) if not t.notified]
        for n, t in enumerate(pending):
            if self.fail_find_after is not None and n >= self.fail_find_after:
                raise RuntimeError("connection lost mid-scan")
            yield t

    def mark_notified(self, task_id: int) -> bool:
        if self.fail_mark:
            raise RuntimeError("write failed")
        t = self.tasks.get(task_id)
        if t is None or t.notified:
            return False
        self.tasks[task_id] = replace(t, notified=True, claimed_until=None)
        return True

    def try_claim_reminder(self, task_id: int, *, now: datetime, lease_seconds: float) -> bool:
        t = self.tasks.get(task_id)
        now = as_utc(now)
        if t is None or t.notified:
            return False
        if t.claimed_until is not None and t.claimed_until > now:
            return False
        self.tasks[task_id] = replace(t, claimed_until=now + timedelta(seconds=lease_seconds))
        return True

    def release_reminder_claim(self, task_id: int) -> None:
        t = self.tasks.get(task_id)
        if t is not None and not t.notified:
            self.tasks[task_id] = replace(t, claimed_until=None)


class FakeMailer:
    def __init__(self, *, succeed: bool = True) -> None:
        self.succeed = succeed
        self.outbox: list[dict[str, str | None]] = []

    async def send_email(
        self, *, to: str, subject: str, text: str, html: str | None = None
    ) -> DeliveryResult:
        if not self.succeed:
            return DeliveryResult.failed("smtp down")
        self.outbox.append({"to": to, "subject": subject, "text": text, "html": html})
        return DeliveryResult.ok()


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_task(task_id: int, *, owner_ref: int = 1, due: datetime | None, lead: float = 24.0, **kw) -> Task:
    return Task(
        id=task_id,
        owner_ref=owner_ref,
        title=kw.pop("title", f"task {task_id}"),
        due_date=due,
        reminder_lead_hours=lead,
        **kw,
    )
