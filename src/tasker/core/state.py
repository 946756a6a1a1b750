# src/tasker/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..auth.reset_codes import ResetCodeService
from ..core.ports import Mailer, Notifier
from ..tasks.task_store import TaskStore
from ..users.user_store import UserStore


@dataclass
class AppState:
    # Settings object (tasker.config.Settings or a test stand-in).
    settings: Any

    task_store: TaskStore
    user_store: UserStore
    mailer: Mailer
    notifier: Notifier
    reset_codes: ResetCodeService
