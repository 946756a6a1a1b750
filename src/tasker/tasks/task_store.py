# src/tasker/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import math
import sqlite3
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from .task_models import DEFAULT_REMINDER_LEAD_HOURS, Task, TaskPriority, as_utc

logger = logging.getLogger(__name__)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)


def _to_ts(value: datetime | None) -> int | None:
    if value is None:
        return None
    return (as_utc(value) - _EPOCH) // _MICROSECOND


def _now_ts() -> int:
    return (datetime.now(timezone.utc) - _EPOCH) // _MICROSECOND


def _from_ts(value: int | None) -> datetime | None:
    if value is None:
        return None
    return _EPOCH + timedelta(microseconds=int(value))


def _check_lead_hours(value: float) -> float:
    lead = float(value)
    if not math.isfinite(lead) or lead < 0:
        raise ValueError("reminder_lead_hours must be a finite, non-negative number")
    return lead


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Timestamps are stored as integer microseconds since the UTC epoch, so
    due dates round-trip exactly.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(
        self,
        db_path: str | Path = "tasks.sqlite3",
        *,
        timeout: float = 30.0,
        default_lead_hours: float = DEFAULT_REMINDER_LEAD_HOURS,
    ) -> None:
        self._db_path = Path(db_path)
        self._default_lead_hours = _check_lead_hours(default_lead_hours)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._timeout = float(timeout)
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=self._timeout)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_ref INTEGER NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    due_at INTEGER,
                    reminder_lead_hours REAL NOT NULL DEFAULT 24,
                    notified INTEGER NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'Pending',
                    priority TEXT NOT NULL DEFAULT 'medium',
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL,
                    claimed_until INTEGER
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("description", "TEXT")
            add_col("reminder_lead_hours", "REAL NOT NULL DEFAULT 24")
            add_col("notified", "INTEGER NOT NULL DEFAULT 0")
            add_col("status", "TEXT NOT NULL DEFAULT 'Pending'")
            add_col("priority", "TEXT NOT NULL DEFAULT 'medium'")
            add_col("claimed_until", "INTEGER")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_notified ON tasks(notified, id)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_owner ON tasks(owner_ref)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        lead = row["reminder_lead_hours"]
        return Task(
            id=int(row["id"]),
            owner_ref=int(row["owner_ref"]),
            title=str(row["title"] or ""),
            description=row["description"],
            due_date=_from_ts(row["due_at"]),
            reminder_lead_hours=float(lead) if lead is not None else DEFAULT_REMINDER_LEAD_HOURS,
            notified=bool(row["notified"]),
            status=str(row["status"] or "Pending"),
            priority=TaskPriority.from_db(row["priority"]),
            created_at=_from_ts(row["created_at"]),
            updated_at=_from_ts(row["updated_at"]),
            claimed_until=_from_ts(row["claimed_until"]),
        )

    # ---- CRUD ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(
        self,
        *,
        owner_ref: int,
        title: str,
        description: str | None = None,
        due_date: datetime | None = None,
        reminder_lead_hours: float | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        status: str = "Pending",
        notified: bool = False,
    ) -> int:
        if not title or not title.strip():
            raise ValueError("title is required")
        lead = (
            self._default_lead_hours
            if reminder_lead_hours is None
            else _check_lead_hours(reminder_lead_hours)
        )

        now = _now_ts()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(
                    owner_ref, title, description, due_at,
                    reminder_lead_hours, notified, status, priority,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    int(owner_ref),
                    title.strip(),
                    description,
                    _to_ts(due_date),
                    lead,
                    1 if notified else 0,
                    status,
                    TaskPriority(priority).value,
                    now,
                    now,
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)
            logger.debug(
                "Task added id=%s owner=%s due_at=%s lead_h=%s",
                task_id,
                owner_ref,
                due_date,
                lead,
            )
            return task_id
        finally:
            conn.close()

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(
        self,
        owner_ref: int,
        *,
        title: str | None = None,
        status: str | None = None,
        priority: TaskPriority | None = None,
        due_date: datetime | None = None,
    ) -> list[Task]:
        """
        Tasks of one owner, optionally filtered.

        title is a case-insensitive substring match; the other filters are exact.
        """
        clauses = ["owner_ref = ?"]
        params: list[Any] = [int(owner_ref)]

        if title:
            clauses.append("instr(lower(title), lower(?)) > 0")
            params.append(title)
        if status:
            clauses.append("status = ?")
            params.append(status)
        if priority:
            clauses.append("priority = ?")
            params.append(TaskPriority(priority).value)
        if due_date is not None:
            clauses.append("due_at = ?")
            params.append(_to_ts(due_date))

        sql = f"SELECT * FROM tasks WHERE {' AND '.join(clauses)} ORDER BY id ASC"

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def update_task_fields(
        self,
        task_id: int,
        *,
        title: str | None = None,
        description: str | None = None,
        due_date: datetime | None = None,
        clear_due_date: bool = False,
        reminder_lead_hours: float | None = None,
        status: str | None = None,
        priority: TaskPriority | None = None,
    ) -> None:
        """Update only the supplied fields. `notified` is deliberately not updatable here."""
        fields: list[str] = []
        params: list[Any] = []

        if title is not None:
            fields.append("title = ?")
            params.append(title.strip())

        if description is not None:
            fields.append("description = ?")
            params.append(description)

        if clear_due_date:
            fields.append("due_at = NULL")
        elif due_date is not None:
            fields.append("due_at = ?")
            params.append(_to_ts(due_date))

        if reminder_lead_hours is not None:
            fields.append("reminder_lead_hours = ?")
            params.append(_check_lead_hours(reminder_lead_hours))

        if status is not None:
            fields.append("status = ?")
            params.append(status)

        if priority is not None:
            fields.append("priority = ?")
            params.append(TaskPriority(priority).value)

        if not fields:
            return

        fields.append("updated_at = ?")
        params.append(_now_ts())
        params.append(int(task_id))

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"

        conn = self._get_conn()
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()

    def delete_task(self, task_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    # ---- reminder sweep API ----

    def find_unnotified(self, *, batch_size: int = 100) -> Iterator[Task]:
        """
        Yield every task with notified = 0, one page at a time.

        Keyset pagination on id: tasks marked notified while the caller is
        iterating do not shift later pages.
        """
        size = max(1, int(batch_size))
        last_id = 0
        while True:
            conn = self._get_conn()
            try:
                cur = conn.cursor()
                cur.execute(
                    """
                    SELECT *
                    FROM tasks
                    WHERE notified = 0
                      AND id > ?
                    ORDER BY id ASC
                        LIMIT ?
                    """,
                    (last_id, size),
                )
                rows = cur.fetchall()
            finally:
                conn.close()

            if not rows:
                return

            for row in rows:
                yield self._row_to_task(row)

            last_id = int(rows[-1]["id"])
            if len(rows) < size:
                return

    def mark_notified(self, task_id: int) -> bool:
        """
        Conditionally flip notified 0 -> 1.

        Returns True if this call made the transition (False if the task is
        gone or was already notified).
        """
        now = _now_ts()
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE tasks
                SET notified = 1, claimed_until = NULL, updated_at = ?
                WHERE id = ?
                  AND notified = 0
                """,
                (now, int(task_id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def try_claim_reminder(self, task_id: int, *, now: datetime, lease_seconds: float) -> bool:
        """
        Best-effort lease to avoid duplicate reminders from overlapping sweeps.

        Atomically sets claimed_until = now + lease_seconds if the task is
        still unnotified and unclaimed (or its previous lease has expired).
        """
        now_ts = _to_ts(now)
        lease_us = int(float(lease_seconds) * 1_000_000)
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE tasks
                SET claimed_until = ?, updated_at = ?
                WHERE id = ?
                  AND notified = 0
                  AND (claimed_until IS NULL OR claimed_until <= ?)
                """,
                (now_ts + lease_us, _now_ts(), int(task_id), now_ts),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def release_reminder_claim(self, task_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE tasks SET claimed_until = NULL WHERE id = ? AND notified = 0",
                (int(task_id),),
            )
            conn.commit()
        finally:
            conn.close()
