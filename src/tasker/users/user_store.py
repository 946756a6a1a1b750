# src/tasker/users/user_store.py

from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import StrEnum
from pathlib import Path

from ..core.ports import OwnerContact

logger = logging.getLogger(__name__)


class UserRole(StrEnum):
    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"


class UserValidationError(ValueError):
    pass


@dataclass(slots=True)
class User:
    id: int
    username: str
    email: str
    role: UserRole
    created_at: datetime
    google_id: str | None = None


class UserStore:
    """
    SQLite user directory (shares the tasks DB file).

    Credentials are not stored here; this table only holds what the rest of
    the app needs to address a user.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3", *, timeout: float = 30.0) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._timeout = float(timeout)
        self._ensure_schema()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=self._timeout)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    username TEXT NOT NULL UNIQUE,
                    email TEXT NOT NULL UNIQUE,
                    role TEXT NOT NULL DEFAULT 'user',
                    google_id TEXT UNIQUE,
                    created_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        try:
            role = UserRole(row["role"])
        except ValueError:
            role = UserRole.USER
        return User(
            id=int(row["id"]),
            username=str(row["username"]),
            email=str(row["email"]),
            role=role,
            google_id=row["google_id"],
            created_at=datetime.fromtimestamp(float(row["created_at"]), tz=timezone.utc),
        )

    def add_user(
        self,
        *,
        username: str,
        email: str,
        role: UserRole | str = UserRole.USER,
        google_id: str | None = None,
    ) -> int:
        username = (username or "").strip()
        email = (email or "").strip().lower()
        if not username:
            raise UserValidationError("username is required")
        if not email or "@" not in email:
            raise UserValidationError("a valid email is required")
        try:
            role = UserRole(role)
        except ValueError:
            raise UserValidationError(f"unknown role {role!r}") from None

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            try:
                cur.execute(
                    """
                    INSERT INTO users(username, email, role, google_id, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (username, email, role.value, google_id, time.time()),
                )
            except sqlite3.IntegrityError:
                raise UserValidationError("username or email already registered") from None
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for users insert")
            logger.debug("User added id=%s username=%s", rowid, username)
            return int(rowid)
        finally:
            conn.close()

    def get_user(self, user_id: int) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (int(user_id),)).fetchone()
            return self._row_to_user(row) if row else None
        finally:
            conn.close()

    def find_by_email(self, email: str) -> User | None:
        if not email:
            return None
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
            ).fetchone()
            return self._row_to_user(row) if row else None
        finally:
            conn.close()

    def delete_user(self, user_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM users WHERE id = ?", (int(user_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def resolve_owner(self, owner_ref: int) -> OwnerContact | None:
        user = self.get_user(owner_ref)
        if user is None:
            return None
        return OwnerContact(contact_address=user.email, display_name=user.username)
