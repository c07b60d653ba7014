"""Email delivery for reset-password and verification links.

Uses SMTP when ``SMTP_HOST`` is configured. Without it the message is only
logged as prepared (recipient and subject, never the link), which is what
development and the test-suite run with.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from workbench.core.config import Settings

logger = logging.getLogger(__name__)


class EmailService:

    def __init__(self, settings: Settings):
        self.settings = settings

    def send_email(self, to: str, subject: str, text: str) -> bool:
        """Send a plain-text message. Returns False when no SMTP host is set."""
        if not self.settings.SMTP_HOST:
            logger.info("Email prepared for %s: %s (SMTP not configured)", to, subject)
            return False

        message = EmailMessage()
        message["From"] = self.settings.EMAIL_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content(text)

        with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=10) as smtp:
            if self.settings.SMTP_USE_TLS:
                smtp.starttls()
            if self.settings.SMTP_USERNAME:
                smtp.login(self.settings.SMTP_USERNAME, self.settings.SMTP_PASSWORD or "")
            smtp.send_message(message)
        logger.info("Email sent to %s: %s", to, subject)
        return True

    def _link(self, page: str, token: str) -> str:
        return f"{self.settings.CLIENT_URL.rstrip('/')}/{page}?token={token}"

    def send_reset_password_email(self, to: str, token: str) -> bool:
        link = self._link("reset-password", token)
        text = (
            "Dear user,\n\n"
            f"To reset your password, click on this link: {link}\n"
            "If you did not request any password resets, then ignore this email."
        )
        return self.send_email(to, "Reset password", text)

    def send_verification_email(self, to: str, token: str, name: Optional[str] = None) -> bool:
        link = self._link("verify-email", token)
        text = (
            f"Dear {name or 'user'},\n\n"
            f"To verify your email, click on this link: {link}\n"
            "If you did not create an account, then ignore this email."
        )
        return self.send_email(to, "Email Verification", text)
