"""Failure notification for build results."""

import logging
import smtplib
from email.mime.text import MIMEText
from typing import Protocol

from .config import Config


logger = logging.getLogger('autocheck.notify')


class Notifier(Protocol):
    configured: bool

    def notify(self, subject: str, body: str) -> bool:
        ...


class NullNotifier:
    """Used when no notification channel is configured."""

    configured = False

    def notify(self, subject: str, body: str) -> bool:
        logger.warning(f"No notification channel configured, not sending: {subject}")
        return False


class MailNotifier:
    """Mails failure reports through an SMTP relay."""

    configured = True

    def __init__(self, config: Config):
        self.host = config.smtp_host
        self.port = config.smtp_port
        self.user = config.smtp_user
        self.password = config.smtp_password
        self.sender = config.smtp_sender
        self.recipients = list(config.smtp_recipients)
        self.starttls = config.smtp_starttls

    def notify(self, subject: str, body: str) -> bool:
        """
        Send ``body`` to the configured recipients.

        Returns:
            True if the relay accepted the message
        """
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = f"[autocheck] {subject}"
        msg["From"] = self.sender
        msg["To"] = ", ".join(self.recipients)

        try:
            with smtplib.SMTP(self.host, self.port) as server:
                if self.starttls:
                    server.ehlo()
                    server.starttls()
                    server.ehlo()
                if self.user:
                    server.login(self.user, self.password or "")
                server.sendmail(self.sender, self.recipients, msg.as_string())

            logger.info(f"Mail sent to {len(self.recipients)} recipient(s): {subject}")
            return True
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed for {self.user}: {e}")
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send notification '{subject}': {e}")
            return False


def get_notifier(config: Config) -> Notifier:
    """Pick the notifier matching the configuration."""
    if config.notification_configured:
        return MailNotifier(config)
    return NullNotifier()
