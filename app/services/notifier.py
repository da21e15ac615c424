"""Failure notification: one templated email per error kind."""

import logging

from app.errors import ErrorKind, MailerError
from app.services.email_templates import render_error

logger = logging.getLogger("voxmail")


class ErrorNotifier:
    """Sends the error email for a failed voice note. Never raises."""

    def __init__(self, mailer, max_file_size_mb: int = 15) -> None:
        self.mailer = mailer
        self.max_file_size_mb = max_file_size_mb

    async def notify(self, email: str | None, kind: ErrorKind, filename: str | None = None) -> bool:
        """Attempt delivery once. Returns whether the email was accepted."""
        if not email:
            logger.warning("No recipient for %s notification", kind.value)
            return False

        message = render_error(kind, filename, self.max_file_size_mb)
        try:
            await self.mailer.send(email, message)
        except MailerError as e:
            logger.error("Failed to send %s email to %s: %s", kind.value, email, e)
            return False
        except Exception:
            logger.exception("Unexpected error sending %s email to %s", kind.value, email)
            return False
        return True
