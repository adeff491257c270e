"""
Contact Form Mailer

Sends contact form submissions to the site owner over SMTP (STARTTLS).

Missing SMTP credentials raise ConfigurationError before anything is sent,
so a misconfigured deployment is visible instead of silently dropping mail.
smtplib is blocking; sends run in the threadpool.
"""

import logging
import smtplib
from email.message import EmailMessage

from starlette.concurrency import run_in_threadpool

from portfolio.core.exceptions import ConfigurationError, MailDeliveryError
from portfolio.core.setting import Settings

logger = logging.getLogger(__name__)


class ContactMailer:
    """Composes and delivers contact form messages."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _check_configured(self) -> None:
        if not self.settings.SMTP_USER:
            raise ConfigurationError("SMTP_USER")
        if not self.settings.SMTP_PASS:
            raise ConfigurationError("SMTP_PASS")

    def build_message(self, name: str, email: str, message: str) -> EmailMessage:
        sender = self.settings.SMTP_USER
        msg = EmailMessage()
        msg["Subject"] = f"Portfolio Contact: {name}"
        msg["From"] = sender
        msg["To"] = self.settings.TO_EMAIL or sender
        msg["Reply-To"] = email
        msg.set_content(
            "New contact form submission from your portfolio:\n\n"
            f"Name: {name}\n"
            f"Email: {email}\n"
            f"Message:\n{message}\n\n"
            "---\n"
            "Sent from your portfolio contact form\n"
        )
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(
            self.settings.SMTP_HOST,
            self.settings.SMTP_PORT,
            timeout=self.settings.SMTP_TIMEOUT
        ) as server:
            server.starttls()
            server.login(self.settings.SMTP_USER, self.settings.SMTP_PASS)
            server.send_message(msg)

    async def send(self, name: str, email: str, message: str) -> None:
        """
        Send a contact form submission.

        Raises:
            ConfigurationError: If SMTP credentials are not configured
            MailDeliveryError: If the SMTP server can't be reached or rejects the message
        """
        self._check_configured()
        msg = self.build_message(name, email, message)

        try:
            await run_in_threadpool(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email from {email}: {str(e)}", exc_info=True)
            raise MailDeliveryError(str(e), original_error=e)

        logger.info(f"Contact email sent from {name} ({email})")
