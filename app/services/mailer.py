"""Outbound email through the Mailgun messages API."""

import logging

import httpx

from app.config import Settings, get_settings
from app.errors import MailerError
from app.services.email_templates import EmailMessage

logger = logging.getLogger("voxmail")


class MailgunMailer:
    """Sends rendered emails. One attempt per call, no retries."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def sender(self) -> str:
        return f"Voice Transcription <{self.settings.MAILGUN_EMAIL}>"

    async def send(self, to: str, message: EmailMessage) -> None:
        """Send ``message`` to ``to``. Raises MailerError on any failure."""
        if not self.settings.MAILGUN_API_KEY or not self.settings.MAILGUN_DOMAIN:
            raise MailerError("Mailgun is not configured")

        url = f"{self.settings.MAILGUN_API_URL.rstrip('/')}/{self.settings.MAILGUN_DOMAIN}/messages"
        data = {
            "from": self.sender,
            "to": to,
            "subject": message.subject,
            "text": message.text,
            "html": message.html,
        }
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.settings.EMAIL_TIMEOUT_SEC,
                auth=("api", self.settings.MAILGUN_API_KEY),
            ) as client:
                resp = await client.post(url, data=data)
                resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise MailerError(f"Mailgun rejected message: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise MailerError(f"Mailgun request failed: {e}") from e

        logger.info("Email sent to %s: %s", to, message.subject)


_mailer: MailgunMailer | None = None


def get_mailer() -> MailgunMailer:
    """Get singleton mailer instance."""
    global _mailer
    if _mailer is None:
        _mailer = MailgunMailer(get_settings())
    return _mailer
