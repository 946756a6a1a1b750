# src/tasker/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the reminder core.

The sweep depends on Protocols instead of concrete implementations.
This keeps storage and delivery swappable and makes testing easier.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Protocol


@dataclass(slots=True, frozen=True)
class OwnerContact:
    """What the notifier needs to address a task's owner."""

    contact_address: str
    display_name: str


@dataclass(slots=True, frozen=True)
class DeliveryResult:
    """Outcome of a delivery attempt. Failures are returned, not raised."""

    success: bool
    error: str | None = None
    message_id: str | None = None

    @classmethod
    def ok(cls, message_id: str | None = None) -> DeliveryResult:
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error: str) -> DeliveryResult:
        return cls(success=False, error=error)


class TaskRepo(Protocol):
    # Reminder sweep API
    def find_unnotified(self, *, batch_size: int = 100) -> Iterator[Any]: ...
    def mark_notified(self, task_id: int) -> bool: ...

    # Optional lease (exclusive claim while a reminder is in flight)
    def try_claim_reminder(
            self,
            task_id: int,
            *,
            now: datetime,
            lease_seconds: float,
    ) -> bool: ...
    def release_reminder_claim(self, task_id: int) -> None: ...


class OwnerDirectory(Protocol):
    def resolve_owner(self, owner_ref: int) -> OwnerContact | None: ...


class Notifier(Protocol):
    """
    Delivers a reminder for `task` to its owner.

    Must report failure through DeliveryResult rather than raising; the sweep
    still guards against implementations that raise anyway.
    """

    def send(
            self,
            contact_address: str,
            display_name: str,
            task: Any,
    ) -> Awaitable[DeliveryResult]: ...


class Mailer(Protocol):
    """Plain email transport (SMTP in production, logging offline)."""

    def send_email(
            self,
            *,
            to: str,
            subject: str,
            text: str,
            html: str | None = None,
    ) -> Awaitable[DeliveryResult]: ...
