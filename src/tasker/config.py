# src/tasker/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every knob of the reminder scheduler is a setting, not a constant in code.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASKER"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path

    # ---- Reminder scheduler ----
    reminder_interval_seconds: float
    reminder_align_to_interval: bool
    reminder_batch_size: int
    reminder_default_lead_hours: float
    reminder_lease_seconds: float
    notify_timeout_seconds: float
    store_timeout_seconds: float

    # ---- Email / SMTP ----
    smtp_host: str
    smtp_port: int
    smtp_username: Optional[str]
    smtp_password: Optional[str]
    smtp_use_tls: bool
    smtp_use_ssl: bool
    email_from: str

    # ---- Password reset ----
    reset_code_ttl_seconds: float

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host)

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tasker") or "tasker"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasker"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")

        # Reference cadence: once per hour, on the hour.
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 3600.0)
        reminder_align_to_interval = _env_bool(_k("REMINDER_ALIGN_TO_INTERVAL"), True)
        reminder_batch_size = _env_int(_k("REMINDER_BATCH_SIZE"), 100)
        reminder_default_lead_hours = _env_float(_k("REMINDER_DEFAULT_LEAD_HOURS"), 24.0)
        reminder_lease_seconds = _env_float(_k("REMINDER_LEASE_SECONDS"), 0.0)
        notify_timeout_seconds = _env_float(_k("NOTIFY_TIMEOUT_SECONDS"), 30.0)
        store_timeout_seconds = _env_float(_k("STORE_TIMEOUT_SECONDS"), 30.0)

        # Accept the unprefixed EMAIL_USER / EMAIL_PASS pair as well (Gmail-style deployments).
        smtp_host = (_first_env(_k("SMTP_HOST"), "SMTP_HOST", default="") or "").strip()
        smtp_port = _env_int(_k("SMTP_PORT"), 587)
        smtp_username = _first_env(_k("SMTP_USERNAME"), "EMAIL_USER", default=None)
        smtp_password = _first_env(_k("SMTP_PASSWORD"), "EMAIL_PASS", default=None)
        smtp_use_tls = _env_bool(_k("SMTP_USE_TLS"), True)
        smtp_use_ssl = _env_bool(_k("SMTP_USE_SSL"), False)
        email_from = (
            _first_env(_k("EMAIL_FROM"), default=smtp_username or f"{app_name}@localhost") or ""
        ).strip()

        reset_code_ttl_seconds = _env_float(_k("RESET_CODE_TTL_SECONDS"), 600.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            reminder_interval_seconds=reminder_interval_seconds,
            reminder_align_to_interval=reminder_align_to_interval,
            reminder_batch_size=reminder_batch_size,
            reminder_default_lead_hours=reminder_default_lead_hours,
            reminder_lease_seconds=reminder_lease_seconds,
            notify_timeout_seconds=notify_timeout_seconds,
            store_timeout_seconds=store_timeout_seconds,
            smtp_host=smtp_host,
            smtp_port=smtp_port,
            smtp_username=smtp_username,
            smtp_password=smtp_password,
            smtp_use_tls=smtp_use_tls,
            smtp_use_ssl=smtp_use_ssl,
            email_from=email_from,
            reset_code_ttl_seconds=reset_code_ttl_seconds,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
