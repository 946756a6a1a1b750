# tests/test_task_store.py

from __future__ import annotations

from datetime import timedelta

import pytest

from tasker.core.ports import OwnerContact
from tasker.tasks.reminder import run_sweep
from tasker.tasks.task_models import TaskPriority, is_reminder_due
from tasker.tasks.task_store import TaskStore
from tasker.users.user_store import UserStore

from .fakes import FakeNotifier, utc

DUE = utc(2025, 1, 10, 10, 0, 0)


def test_add_and_get_roundtrip_keeps_utc_due_date(task_store: TaskStore) -> None:
    task_id = task_store.add_task(owner_ref=7, title="  Write report ", due_date=DUE, reminder_lead_hours=2)
    task = task_store.get_task(task_id)

    assert task is not None
    assert task.title == "Write report"
    assert task.due_date == DUE
    assert task.reminder_lead_hours == 2
    assert task.notified is False
    assert task.priority is TaskPriority.MEDIUM
    assert task.status == "Pending"


def test_add_task_rejects_blank_title_and_negative_lead(task_store: TaskStore) -> None:
    with pytest.raises(ValueError):
        task_store.add_task(owner_ref=1, title="   ")
    with pytest.raises(ValueError):
        task_store.add_task(owner_ref=1, title="x", reminder_lead_hours=-1)
    with pytest.raises(ValueError):
        task_store.add_task(owner_ref=1, title="x", reminder_lead_hours=float("inf"))
    with pytest.raises(ValueError):
        task_store.add_task(owner_ref=1, title="x", reminder_lead_hours=float("nan"))
    assert task_store.count_tasks() == 0


def test_find_unnotified_pages_through_everything(task_store: TaskStore) -> None:
    ids = [task_store.add_task(owner_ref=1, title=f"t{i}", due_date=DUE) for i in range(5)]
    task_store.mark_notified(ids[1])

    seen = [t.id for t in task_store.find_unnotified(batch_size=2)]

    assert seen == [ids[0], ids[2], ids[3], ids[4]]


def test_marking_during_iteration_does_not_skip_tasks(task_store: TaskStore) -> None:
    ids = [task_store.add_task(owner_ref=1, title=f"t{i}", due_date=DUE) for i in range(5)]

    seen = []
    for task in task_store.find_unnotified(batch_size=2):
        seen.append(task.id)
        task_store.mark_notified(task.id)

    assert seen == ids
    assert list(task_store.find_unnotified()) == []


def test_mark_notified_is_conditional(task_store: TaskStore) -> None:
    task_id = task_store.add_task(owner_ref=1, title="t", due_date=DUE)

    assert task_store.mark_notified(task_id) is True
    assert task_store.mark_notified(task_id) is False
    assert task_store.mark_notified(9999) is False


def test_update_never_resets_notified(task_store: TaskStore) -> None:
    task_id = task_store.add_task(owner_ref=1, title="t", due_date=DUE)
    task_store.mark_notified(task_id)

    task_store.update_task_fields(task_id, due_date=DUE + timedelta(days=2), reminder_lead_hours=1)
    task = task_store.get_task(task_id)

    assert task is not None
    assert task.due_date == DUE + timedelta(days=2)
    assert task.notified is True


def test_due_date_microseconds_survive_storage(task_store: TaskStore) -> None:
    due = DUE.replace(microsecond=123457)
    task_id = task_store.add_task(owner_ref=1, title="t", due_date=due, reminder_lead_hours=0)

    task = task_store.get_task(task_id)
    assert task is not None and task.due_date == due
    assert is_reminder_due(task, due)
    assert not is_reminder_due(task, due - timedelta(microseconds=1))


def test_clear_due_date(task_store: TaskStore) -> None:
    task_id = task_store.add_task(owner_ref=1, title="t", due_date=DUE)
    task_store.update_task_fields(task_id, clear_due_date=True)
    task = task_store.get_task(task_id)
    assert task is not None and task.due_date is None


def test_claim_reminder_respects_lease(task_store: TaskStore) -> None:
    task_id = task_store.add_task(owner_ref=1, title="t", due_date=DUE)

    assert task_store.try_claim_reminder(task_id, now=DUE, lease_seconds=60)
    assert not task_store.try_claim_reminder(task_id, now=DUE + timedelta(seconds=30), lease_seconds=60)
    assert task_store.try_claim_reminder(task_id, now=DUE + timedelta(seconds=61), lease_seconds=60)

    task_store.release_reminder_claim(task_id)
    task = task_store.get_task(task_id)
    assert task is not None and task.claimed_until is None

    task_store.mark_notified(task_id)
    assert not task_store.try_claim_reminder(task_id, now=DUE + timedelta(days=1), lease_seconds=60)


def test_list_tasks_filters(task_store: TaskStore) -> None:
    a = task_store.add_task(owner_ref=1, title="Buy Milk", priority=TaskPriority.HIGH, due_date=DUE)
    b = task_store.add_task(owner_ref=1, title="call mom", status="Done")
    task_store.add_task(owner_ref=2, title="buy bread")

    assert [t.id for t in task_store.list_tasks(1)] == [a, b]
    assert [t.id for t in task_store.list_tasks(1, title="milk")] == [a]
    assert [t.id for t in task_store.list_tasks(1, status="Done")] == [b]
    assert [t.id for t in task_store.list_tasks(1, priority=TaskPriority.HIGH)] == [a]
    assert [t.id for t in task_store.list_tasks(1, due_date=DUE)] == [a]


def test_delete_task(task_store: TaskStore) -> None:
    task_id = task_store.add_task(owner_ref=1, title="t")
    assert task_store.delete_task(task_id) is True
    assert task_store.delete_task(task_id) is False
    assert task_store.get_task(task_id) is None


@pytest.mark.asyncio
async def test_sweep_against_sqlite_stores(task_store: TaskStore, user_store: UserStore) -> None:
    ana = user_store.add_user(username="ana", email="Ana@Example.com")
    due_now = task_store.add_task(owner_ref=ana, title="report", due_date=DUE, reminder_lead_hours=24)
    later = task_store.add_task(owner_ref=ana, title="later", due_date=DUE + timedelta(days=5))
    no_due = task_store.add_task(owner_ref=ana, title="someday")
    orphan = task_store.add_task(owner_ref=ana + 100, title="orphan", due_date=DUE)
    notifier = FakeNotifier()

    report = await run_sweep(task_store, user_store, notifier, now=utc(2025, 1, 9, 10), batch_size=2)

    assert notifier.sent_ids() == [due_now]
    assert notifier.sent[0].contact_address == "ana@example.com"
    assert notifier.sent[0].display_name == "ana"
    assert report.examined == 4
    assert [f.task_id for f in report.failures] == [orphan]

    states = {t.id: t.notified for t in (task_store.get_task(i) for i in (due_now, later, no_due, orphan)) if t}
    assert states == {due_now: True, later: False, no_due: False, orphan: False}

    await run_sweep(task_store, user_store, notifier, now=utc(2025, 1, 9, 11))
    assert notifier.sent_ids() == [due_now]


def test_user_store_resolve_owner(user_store: UserStore) -> None:
    uid = user_store.add_user(username=" bo ", email="BO@example.com")

    assert user_store.resolve_owner(uid) == OwnerContact("bo@example.com", "bo")
    assert user_store.resolve_owner(uid + 1) is None
    assert user_store.find_by_email("bo@EXAMPLE.com").id == uid
