# src/tasker/notify/offline.py

from __future__ import annotations

import logging

from ..core.ports import DeliveryResult

logger = logging.getLogger(__name__)


class LoggingMailer:
    """
    Offline mailer used when no SMTP server is configured.

    Writes each email into the log instead of sending it, and keeps the last
    messages around for inspection. Always succeeds.
    """

    def __init__(self, *, keep_last: int = 50) -> None:
        self._keep_last = max(1, int(keep_last))
        self.outbox: list[dict[str, str | None]] = []

    async def send_email(
        self, *, to: str, subject: str, text: str, html: str | None = None
    ) -> DeliveryResult:
        logger.info("[offline mail] to=%s subject=%r\n%s", to, subject, text)
        self.outbox.append({"to": to, "subject": subject, "text": text, "html": html})
        del self.outbox[: -self._keep_last]
        return DeliveryResult.ok()
