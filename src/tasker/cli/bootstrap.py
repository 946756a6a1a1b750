# src/tasker/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (stores/mailer/notifier).
"""

from __future__ import annotations

import logging

from ..auth.reset_codes import ResetCodeService
from ..config import get_settings
from ..core.expiring import ExpiringStore
from ..core.ports import Mailer
from ..core.state import AppState
from ..notify.email import EmailReminderNotifier, SmtpMailer
from ..notify.offline import LoggingMailer
from ..tasks.task_store import TaskStore
from ..users.user_store import UserStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_mailer(settings) -> Mailer:
    if not getattr(settings, "smtp_host", ""):
        logger.warning("No SMTP host configured; emails will only be logged.")
        return LoggingMailer()
    return SmtpMailer.from_settings(settings)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    timeout = float(getattr(settings, "store_timeout_seconds", 30.0))
    mailer = build_mailer(settings)

    return AppState(
        settings=settings,
        task_store=TaskStore(
            settings.tasks_db_path,
            timeout=timeout,
            default_lead_hours=settings.reminder_default_lead_hours,
        ),
        user_store=UserStore(settings.tasks_db_path, timeout=timeout),
        mailer=mailer,
        notifier=EmailReminderNotifier(mailer, app_name=settings.app_name),
        reset_codes=ResetCodeService(
            ExpiringStore(),
            mailer,
            ttl_seconds=settings.reset_code_ttl_seconds,
        ),
    )
