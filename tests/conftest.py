# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from tasker.core.ports import OwnerContact
from tasker.tasks.task_store import TaskStore
from tasker.users.user_store import UserStore

from .fakes import FakeNotifier, FakeOwners


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the scheduler.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment.
    """
    return SimpleNamespace(
        app_name="tasker-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        reminder_interval_seconds=3600.0,
        reminder_align_to_interval=False,
        reminder_batch_size=2,
        reminder_default_lead_hours=24.0,
        reminder_lease_seconds=0.0,
        notify_timeout_seconds=5.0,
        store_timeout_seconds=5.0,
        smtp_host="",
        smtp_port=587,
        smtp_username=None,
        smtp_password=None,
        smtp_use_tls=True,
        smtp_use_ssl=False,
        email_from="tasker@localhost",
        reset_code_ttl_seconds=600.0,
    )


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def user_store(settings: SimpleNamespace) -> UserStore:
    return UserStore(settings.tasks_db_path)


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def owners() -> FakeOwners:
    return FakeOwners(
        {
            1: OwnerContact("ana@example.com", "ana"),
            2: OwnerContact("bo@example.com", "bo"),
            3: OwnerContact("cy@example.com", "cy"),
        }
    )
