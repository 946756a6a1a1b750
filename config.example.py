# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TASKER_APP_NAME": "App display name, also used to sign reminder emails (default: tasker).",
    "TASKER_LOG_LEVEL": "Console logging level (default: INFO).",
    # Paths (gitignored)
    "TASKER_DATA_DIR": "Local data directory for the DB and log file (default: .local/tasker).",
    "TASKER_TASKS_DB_PATH": "SQLite path for tasks and users (default: <data_dir>/tasks.sqlite3).",
    # Reminder scheduler
    "TASKER_REMINDER_INTERVAL_SECONDS": "Seconds between reminder sweeps (default: 3600).",
    "TASKER_REMINDER_ALIGN_TO_INTERVAL": "Run sweeps on wall-clock multiples of the interval (default: true).",
    "TASKER_REMINDER_BATCH_SIZE": "Page size when listing unnotified tasks (default: 100).",
    "TASKER_REMINDER_DEFAULT_LEAD_HOURS": "Lead time for tasks created without one (default: 24).",
    "TASKER_REMINDER_LEASE_SECONDS": "Claim tasks before sending; 0 disables leases (default: 0).",
    "TASKER_NOTIFY_TIMEOUT_SECONDS": "Upper bound on one reminder delivery (default: 30).",
    "TASKER_STORE_TIMEOUT_SECONDS": "SQLite busy timeout (default: 30).",
    # Email / SMTP
    "TASKER_SMTP_HOST": "SMTP server; empty => emails are only logged.",
    "TASKER_SMTP_PORT": "SMTP port (default: 587).",
    "TASKER_SMTP_USERNAME": "SMTP login (falls back to EMAIL_USER).",
    "TASKER_SMTP_PASSWORD": "SMTP password (falls back to EMAIL_PASS).",
    "TASKER_SMTP_USE_TLS": "Use STARTTLS (default: true).",
    "TASKER_SMTP_USE_SSL": "Use implicit TLS, e.g. port 465 (default: false).",
    "TASKER_EMAIL_FROM": "From address (default: SMTP username).",
    # Password reset
    "TASKER_RESET_CODE_TTL_SECONDS": "Lifetime of a password reset code (default: 600).",
}
