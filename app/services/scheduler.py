"""Background enhancement dispatch through an authenticated self-call."""

import hashlib
import hmac
import logging
from dataclasses import dataclass, field

import httpx

from app.config import Settings, get_settings
from app.services.prompts import EnhancementKind

logger = logging.getLogger("voxmail")

BACKGROUND_ENHANCE_PATH = "/api/v1/background/enhance"


def background_token(secret: str) -> str:
    """Bearer token for background calls: SHA-256 of the shared secret, never the secret itself."""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def verify_background_token(secret: str, presented: str | None) -> bool:
    if not secret or not presented:
        return False
    return hmac.compare_digest(background_token(secret), presented)


@dataclass
class EnhancementJob:
    """What the background invocation needs. Kinds are copied from preferences at submission time."""

    event_id: int | None
    user_email: str
    filename: str
    enhancement_kinds: list[EnhancementKind] = field(default_factory=list)
    user_id: int | None = None
    duration_seconds: float | None = None
    file_size_bytes: int | None = None

    def to_payload(self, transcript: str) -> dict:
        return {
            "eventId": self.event_id,
            "enhancementTypes": [k.value for k in self.enhancement_kinds],
            "filename": self.filename,
            "transcript": transcript,
            "userEmail": self.user_email,
            "userId": self.user_id,
            "duration": self.duration_seconds,
            "fileSize": self.file_size_bytes,
        }


class EnhancementScheduler:
    """Starts a separate invocation that runs the enhancement dispatcher.

    Only delivery of the request is awaited. The background invocation runs
    under its own deadline.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    async def schedule(self, job: EnhancementJob, transcript: str, timeout: float | None = None) -> bool:
        """Returns whether the background invocation was started.

        ``timeout`` caps the self-call; callers pass what is left of their own deadline.
        """
        if not self.settings.APP_SECRET:
            logger.error("APP_SECRET not set, cannot dispatch enhancements for event %s", job.event_id)
            return False

        url = f"{self.settings.PUBLIC_BASE_URL.rstrip('/')}{BACKGROUND_ENHANCE_PATH}"
        if timeout is None:
            timeout = self.settings.BACKGROUND_DISPATCH_TIMEOUT_SEC
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=timeout) as client:
                resp = await client.post(
                    url,
                    json=job.to_payload(transcript),
                    headers={"Authorization": f"Bearer {background_token(self.settings.APP_SECRET)}"},
                )
        except httpx.ReadTimeout:
            # Request was delivered; the background invocation keeps running
            logger.info("Background enhancement dispatched for event %s", job.event_id)
            return True
        except httpx.HTTPError as e:
            logger.error("Background enhancement dispatch failed for event %s: %s", job.event_id, e)
            return False

        if resp.is_success:
            logger.info("Background enhancement finished inline for event %s", job.event_id)
            return True
        logger.error("Background enhancement rejected for event %s: HTTP %d", job.event_id, resp.status_code)
        return False


_scheduler: EnhancementScheduler | None = None


def get_enhancement_scheduler() -> EnhancementScheduler:
    """Get singleton scheduler instance."""
    global _scheduler
    if _scheduler is None:
        _scheduler = EnhancementScheduler(get_settings())
    return _scheduler
