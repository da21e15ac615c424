"""Test doubles for remote collaborators."""

import asyncio
import hashlib
import hmac
from types import SimpleNamespace

import httpx

from app.config import Settings
from app.errors import MailerError
from app.services.prompts import PROMPTS

SIGNING_KEY = "test-signing-key"
APP_SECRET = "test-app-secret"


class RecordingMailer:
    """Mailer double that records sent messages."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, object]] = []
        self.fail = False
        self.delay = 0.0

    async def send(self, to, message) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise MailerError("Mailgun request failed: connection refused")
        self.sent.append((to, message))

    @property
    def subjects(self) -> list[str]:
        return [message.subject for _, message in self.sent]


class FakeWhisper:
    """Stand-in for the OpenAI client's audio.transcriptions API."""

    def __init__(self, text: str = "hello world", error: Exception | None = None, delay: float = 0.0) -> None:
        self.text = text
        self.error = error
        self.delay = delay
        self.calls: list[dict] = []
        self.audio = SimpleNamespace(transcriptions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeChat:
    """Stand-in for the OpenAI client's chat.completions API.

    ``replies`` maps an enhancement kind to reply text or to an exception.
    """

    def __init__(self, replies: dict | None = None) -> None:
        self.replies = replies or {}
        self.calls: list[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        system = kwargs["messages"][0]["content"]
        kind = next(k for k, prompt in PROMPTS.items() if prompt.system == system)
        reply = self.replies.get(kind, f"{kind.value} output")
        if isinstance(reply, Exception):
            raise reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeScheduler:
    """Records background dispatches instead of making the self-call."""

    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.dispatched: list[tuple[object, str]] = []
        self.timeouts: list[float | None] = []

    async def schedule(self, job, transcript: str, timeout: float | None = None) -> bool:
        self.dispatched.append((job, transcript))
        self.timeouts.append(timeout)
        return self.result


class AudioServer:
    """httpx handler serving attachment bytes by URL."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        body = self.files.get(str(request.url))
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body, headers={"content-type": "audio/mp4"})


def sign(timestamp: str = "1760000000", token: str = "f3a9c2token", key: str = SIGNING_KEY) -> dict:
    """Mailgun signature fields."""
    signature = hmac.new(key.encode(), f"{timestamp}{token}".encode(), hashlib.sha256).hexdigest()
    return {"timestamp": timestamp, "token": token, "signature": signature}


def make_settings(**overrides) -> Settings:
    settings = Settings()
    settings.MAILGUN_WEBHOOK_SIGNING_KEY = SIGNING_KEY
    settings.MAILGUN_API_KEY = "key-test"
    settings.MAILGUN_DOMAIN = "mg.example.com"
    settings.MAILGUN_EMAIL = "notes@mg.example.com"
    settings.APP_SECRET = APP_SECRET
    settings.PUBLIC_BASE_URL = "http://testserver"
    settings.OPENAI_API_KEY = "sk-test"
    settings.MAX_FILE_SIZE_MB = 15
    settings.PROCESSING_TIMEOUT_SEC = 60
    settings.DOWNLOAD_TIMEOUT_SEC = 10
    settings.TRANSCRIPTION_TIMEOUT_SEC = 40
    for key, value in overrides.items():
        setattr(settings, key, value)
    return settings


