"""Transcription service using the OpenAI Whisper API."""

import re
from dataclasses import dataclass

import openai

from app.config import Settings, get_settings
from app.errors import ErrorKind, PipelineError, TranscriptionError
from app.services.deadline import Deadline


@dataclass
class TranscriptionResult:
    text: str
    estimated_duration_seconds: float


def clean_transcription(text: str | None) -> str:
    """Normalize Whisper output.

    Order matters: trim, collapse whitespace runs, put a space after sentence
    punctuation followed by a lowercase letter, capitalize the first character.
    """
    if not text or not isinstance(text, str):
        return ""
    cleaned = text.strip()
    cleaned = re.sub(r"\s+", " ", cleaned)
    cleaned = re.sub(r"([.!?])\s*([a-z])", r"\1 \2", cleaned)
    if cleaned:
        cleaned = cleaned[0].upper() + cleaned[1:]
    return cleaned


def estimate_duration_seconds(byte_count: int, bitrate_kbps: int) -> float:
    """Rough duration from file size at an assumed average bitrate. Analytics only."""
    if byte_count <= 0 or bitrate_kbps <= 0:
        return 0.0
    return round(byte_count * 8 / (bitrate_kbps * 1000), 1)


def categorize_transcription_error(message: str) -> ErrorKind:
    """Map a Whisper failure message to an error kind."""
    text = message.lower()
    if "timeout" in text or "abort" in text:
        return ErrorKind.WHISPER_TIMEOUT
    if "rate_limit" in text or "rate limit" in text or "quota" in text:
        return ErrorKind.PROCESSING_TIMEOUT
    if "format" in text or "unsupported" in text:
        return ErrorKind.INVALID_FORMAT
    if "too large" in text or "size" in text:
        return ErrorKind.FILE_TOO_LARGE
    return ErrorKind.GENERAL_ERROR


class TranscriptionService:
    """Handles audio transcription through a remote Whisper endpoint."""

    def __init__(self, settings: Settings, client: openai.AsyncOpenAI | None = None) -> None:
        self.settings = settings
        self._client = client

    def _get_client(self) -> openai.AsyncOpenAI:
        """Lazy-create the OpenAI client."""
        if self._client is None:
            self._client = openai.AsyncOpenAI(
                api_key=self.settings.OPENAI_API_KEY,
                base_url=self.settings.OPENAI_BASE_URL,
                max_retries=0,
            )
        return self._client

    async def transcribe(
        self,
        audio: bytes,
        filename: str,
        content_type: str | None,
        deadline: Deadline,
    ) -> TranscriptionResult:
        """Transcribe audio bytes under ``min(TRANSCRIPTION_TIMEOUT_SEC, remaining budget)``.

        Returns normalized text, which may be empty. Raises TranscriptionError
        or ProcessingTimeoutError.
        """
        stage_seconds = self.settings.TRANSCRIPTION_TIMEOUT_SEC
        raw_text = await deadline.run(
            self._request(audio, filename, content_type, stage_seconds),
            stage_seconds,
            lambda: TranscriptionError(
                f"Transcription timeout after {stage_seconds:.0f}s",
                ErrorKind.WHISPER_TIMEOUT,
                filename=filename,
            ),
        )
        return TranscriptionResult(
            text=clean_transcription(raw_text),
            estimated_duration_seconds=estimate_duration_seconds(len(audio), self.settings.ASSUMED_BITRATE_KBPS),
        )

    async def _request(self, audio: bytes, filename: str, content_type: str | None, timeout: float) -> str:
        client = self._get_client()
        try:
            response = await client.audio.transcriptions.create(
                model=self.settings.WHISPER_MODEL,
                file=(filename or "voice-note.m4a", audio, content_type or "application/octet-stream"),
                language=self.settings.TRANSCRIPTION_LANGUAGE,
                response_format="json",
                timeout=timeout,
            )
        except PipelineError:
            raise
        except openai.APITimeoutError as e:
            raise TranscriptionError(f"Whisper timeout: {e}", ErrorKind.WHISPER_TIMEOUT, filename=filename) from e
        except Exception as e:
            message = str(e) or e.__class__.__name__
            raise TranscriptionError(
                f"Transcription failed: {message}",
                categorize_transcription_error(message),
                filename=filename,
            ) from e
        return getattr(response, "text", "") or ""


_transcription_service: TranscriptionService | None = None


def get_transcription_service() -> TranscriptionService:
    """Get singleton transcription service instance."""
    global _transcription_service
    if _transcription_service is None:
        _transcription_service = TranscriptionService(get_settings())
    return _transcription_service
