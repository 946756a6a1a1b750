# src/tasker/notify/email.py

"""
Email delivery.

SmtpMailer is a thin async SMTP transport (aiosmtplib). EmailReminderNotifier
turns a task into a reminder email and hands it to any Mailer.

Neither raises on delivery problems: failures come back as DeliveryResult.
"""

from __future__ import annotations

import logging
import ssl
from datetime import datetime
from email.message import EmailMessage
from email.utils import make_msgid

import aiosmtplib

from ..core.ports import DeliveryResult, Mailer
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "Reminder: Upcoming Task"


class SmtpMailer:
    """Send mail through an SMTP server (STARTTLS on 587, implicit TLS on 465)."""

    def __init__(
        self,
        *,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        sender: str,
        use_tls: bool = True,
        use_ssl: bool = False,
        timeout: float = 30.0,
    ) -> None:
        if not host:
            raise ValueError("SMTP host is required")
        self._host = host
        self._port = int(port)
        self._username = username
        self._password = password
        self._sender = sender
        self._use_tls = use_tls and not use_ssl
        self._use_ssl = use_ssl
        self._timeout = float(timeout)
        logger.info(
            "SMTP mailer ready host=%s port=%s tls=%s ssl=%s",
            self._host,
            self._port,
            self._use_tls,
            self._use_ssl,
        )

    @classmethod
    def from_settings(cls, settings) -> SmtpMailer:
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            sender=settings.email_from,
            use_tls=settings.smtp_use_tls,
            use_ssl=settings.smtp_use_ssl,
            timeout=settings.notify_timeout_seconds,
        )

    def build_message(
        self, *, to: str, subject: str, text: str, html: str | None = None
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self._sender
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(text)
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    async def send_email(
        self, *, to: str, subject: str, text: str, html: str | None = None
    ) -> DeliveryResult:
        msg = self.build_message(to=to, subject=subject, text=text, html=html)
        tls_context = ssl.create_default_context() if (self._use_tls or self._use_ssl) else None

        try:
            errors, _response = await aiosmtplib.send(
                msg,
                hostname=self._host,
                port=self._port,
                username=self._username or None,
                password=self._password or None,
                use_tls=self._use_ssl,
                start_tls=self._use_tls,
                tls_context=tls_context,
                timeout=self._timeout,
            )
        except aiosmtplib.SMTPException as exc:
            logger.warning("SMTP delivery to %s failed: %s", to, exc)
            return DeliveryResult.failed(f"{type(exc).__name__}: {exc}")
        except OSError as exc:
            logger.warning("SMTP connection to %s:%s failed: %s", self._host, self._port, exc)
            return DeliveryResult.failed(f"{type(exc).__name__}: {exc}")

        if errors:
            logger.warning("SMTP recipient rejected to=%s errors=%s", to, errors)
            return DeliveryResult.failed(f"recipient rejected: {to}")

        logger.info("Email sent to %s subject=%r", to, subject)
        return DeliveryResult.ok(message_id=msg["Message-ID"])


def _format_due(due: datetime | None) -> str:
    if due is None:
        return "no due date"
    return due.strftime("%Y-%m-%d %H:%M %Z").strip()


def render_reminder(display_name: str, task: Task, *, app_name: str = "Task Manager App") -> str:
    return (
        f"Hello {display_name},\n\n"
        f'You have an upcoming task: "{task.title}" due on {_format_due(task.due_date)}.\n\n'
        "Make sure to complete it on time!\n\n"
        f"Best regards,\n{app_name}"
    )


class EmailReminderNotifier:
    """Notifier port implementation: one plain-text email per reminder."""

    def __init__(self, mailer: Mailer, *, app_name: str = "Task Manager App") -> None:
        self._mailer = mailer
        self._app_name = app_name

    async def send(self, contact_address: str, display_name: str, task: Task) -> DeliveryResult:
        if not contact_address:
            return DeliveryResult.failed("owner has no contact address")
        return await self._mailer.send_email(
            to=contact_address,
            subject=REMINDER_SUBJECT,
            text=render_reminder(display_name, task, app_name=self._app_name),
        )
