# src/tasker/auth/reset_codes.py

from __future__ import annotations

import hmac
import logging
import secrets

from ..core.expiring import ExpiringStore
from ..core.ports import DeliveryResult, Mailer

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Reset Your Password"
DEFAULT_TTL_SECONDS = 600.0


def generate_reset_code() -> str:
    """Six random digits, 100000-999999."""
    return str(100000 + secrets.randbelow(900000))


class ResetCodeService:
    """
    Issue and check password-reset codes.

    One live code per email address; issuing a new one replaces the old.
    Codes expire after ttl_seconds.
    """

    def __init__(
        self,
        codes: ExpiringStore[str],
        mailer: Mailer,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
    ) -> None:
        self._codes = codes
        self._mailer = mailer
        self._ttl = float(ttl_seconds)

    @staticmethod
    def _key(email: str) -> str:
        return (email or "").strip().lower()

    def _render(self, code: str) -> tuple[str, str]:
        minutes = max(1, int(self._ttl // 60))
        text = (
            "You have requested to reset your password.\n\n"
            f"Your reset code: {code}\n\n"
            f"This code is valid for {minutes} minutes.\n"
            "If you didn't request this, please ignore this email."
        )
        html = (
            '<div style="font-family: Arial, sans-serif; text-align: center; padding: 20px;">'
            "<h2>Password Reset Request</h2>"
            "<p>You have requested to reset your password.</p>"
            f"<p style=\"font-size: 20px; font-weight: bold;\">Your reset code: {code}</p>"
            f"<p>This code is valid for {minutes} minutes.</p>"
            "<p>If you didn't request this, please ignore this email.</p>"
            "</div>"
        )
        return text, html

    async def send_reset_code(self, email: str) -> DeliveryResult:
        key = self._key(email)
        if not key:
            raise ValueError("email is required")

        code = generate_reset_code()
        self._codes.set(key, code, self._ttl)
        logger.debug("Reset code issued for %s", key)

        text, html = self._render(code)
        result = await self._mailer.send_email(to=key, subject=RESET_SUBJECT, text=text, html=html)
        if not result.success:
            # Undelivered codes must not stay valid.
            self._codes.pop(key)
            logger.warning("Reset code email to %s failed: %s", key, result.error)
        return result

    def verify_code(self, email: str, code: str) -> bool:
        stored = self._codes.get(self._key(email))
        if stored is None:
            return False
        return hmac.compare_digest(stored, str(code or "").strip())

    def remove_code(self, email: str) -> None:
        self._codes.pop(self._key(email))
