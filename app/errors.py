"""Error taxonomy for the voice note pipeline.

Every failure a user can be told about maps to exactly one ``ErrorKind``. Typed
pipeline errors carry their kind; anything else is classified from its message
by ``classify_error``.
"""

import asyncio
from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of user-facing failure categories."""

    FILE_TOO_LARGE = "file_too_large"
    INVALID_FORMAT = "invalid_format"
    DOWNLOAD_TIMEOUT = "download_timeout"
    PROCESSING_TIMEOUT = "processing_timeout"
    WHISPER_TIMEOUT = "whisper_timeout"
    USER_NOT_FOUND = "user_not_found"
    USER_NOT_APPROVED = "user_not_approved"
    GENERAL_ERROR = "general_error"


# Problems caused by the sender rather than by our infrastructure
USER_ERROR_KINDS = frozenset(
    {
        ErrorKind.FILE_TOO_LARGE,
        ErrorKind.INVALID_FORMAT,
        ErrorKind.USER_NOT_FOUND,
        ErrorKind.USER_NOT_APPROVED,
    }
)

HTTP_STATUS_BY_KIND = {
    ErrorKind.FILE_TOO_LARGE: 400,
    ErrorKind.INVALID_FORMAT: 400,
    ErrorKind.USER_NOT_FOUND: 404,
    ErrorKind.USER_NOT_APPROVED: 403,
    ErrorKind.DOWNLOAD_TIMEOUT: 500,
    ErrorKind.PROCESSING_TIMEOUT: 500,
    ErrorKind.WHISPER_TIMEOUT: 500,
    ErrorKind.GENERAL_ERROR: 500,
}


class PipelineError(Exception):
    """An error with a known category."""

    default_kind = ErrorKind.GENERAL_ERROR

    def __init__(self, message: str, kind: ErrorKind | None = None, filename: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind or self.default_kind
        self.filename = filename


class ProcessingTimeoutError(PipelineError):
    """The outer processing deadline expired."""

    default_kind = ErrorKind.PROCESSING_TIMEOUT


class DownloadError(PipelineError):
    """Fetching attachment bytes failed."""


class TranscriptionError(PipelineError):
    """The speech-to-text call failed or timed out."""


class EnhancementError(PipelineError):
    """The text-generation call failed or returned nothing."""


class MailerError(Exception):
    """Outbound email could not be sent."""


def classify_error(error: BaseException) -> ErrorKind:
    """Map any exception to an ``ErrorKind``. Pure function of the error."""
    if isinstance(error, PipelineError):
        return error.kind

    if isinstance(error, asyncio.TimeoutError):
        return ErrorKind.PROCESSING_TIMEOUT

    message = str(error).lower()

    if "timeout" in message or "abort" in message:
        if "download" in message:
            return ErrorKind.DOWNLOAD_TIMEOUT
        if "transcri" in message or "whisper" in message:
            return ErrorKind.WHISPER_TIMEOUT
        return ErrorKind.PROCESSING_TIMEOUT

    if "too large" in message or "exceeds limit" in message:
        return ErrorKind.FILE_TOO_LARGE

    if "format" in message or "unsupported" in message:
        return ErrorKind.INVALID_FORMAT

    if "not found" in message:
        return ErrorKind.USER_NOT_FOUND

    if "not approved" in message:
        return ErrorKind.USER_NOT_APPROVED

    return ErrorKind.GENERAL_ERROR


def http_status_for(kind: ErrorKind) -> int:
    return HTTP_STATUS_BY_KIND.get(kind, 500)
