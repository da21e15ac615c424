"""Audio attachment validation against size and format policy."""

from dataclasses import dataclass
from pathlib import Path

from app.config import Settings
from app.errors import ErrorKind

ALLOWED_EXTENSIONS = {".m4a", ".mp3", ".wav", ".ogg", ".aac", ".flac"}
ALLOWED_MIME_TYPES = {
    "audio/m4a",
    "audio/mp4",
    "audio/mpeg",
    "audio/wav",
    "audio/wave",
    "audio/ogg",
    "audio/aac",
    "audio/flac",
    "audio/x-m4a",
    "audio/mp4a-latm",
}


@dataclass
class AudioReference:
    """Attachment handed to the pipeline. Never persisted."""

    filename: str
    size: int
    content_type: str | None = None
    url: str | None = None
    content: bytes | None = None  # set when the body was posted inline


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error_kind: ErrorKind | None = None
    message: str | None = None


def has_allowed_extension(filename: str | None) -> bool:
    return Path(filename or "").suffix.lower() in ALLOWED_EXTENSIONS


def has_allowed_mime_type(content_type: str | None) -> bool:
    # Mail clients append parameters (e.g. "audio/mp4; name=memo.m4a")
    declared = (content_type or "").lower()
    return any(mime in declared for mime in ALLOWED_MIME_TYPES)


def is_audio_attachment(filename: str | None, content_type: str | None) -> bool:
    """Extension OR MIME type match, to tolerate mislabeled attachments."""
    return has_allowed_extension(filename) or has_allowed_mime_type(content_type)


class AudioValidator:
    """Checks an attachment before any network I/O."""

    def __init__(self, settings: Settings) -> None:
        self.max_bytes = settings.max_file_size_bytes
        self.max_mb = settings.MAX_FILE_SIZE_MB

    def validate(self, audio: AudioReference) -> ValidationResult:
        """Validate size, then format. Never raises."""
        if audio.size > self.max_bytes:
            size_mb = audio.size / (1024 * 1024)
            return ValidationResult(
                valid=False,
                error_kind=ErrorKind.FILE_TOO_LARGE,
                message=f"File too large: {size_mb:.1f}MB exceeds limit of {self.max_mb}MB",
            )

        if not is_audio_attachment(audio.filename, audio.content_type):
            ext = Path(audio.filename or "").suffix.lower() or "none"
            return ValidationResult(
                valid=False,
                error_kind=ErrorKind.INVALID_FORMAT,
                message=(
                    f"Unsupported audio format '{ext}' ({audio.content_type or 'unknown type'}). "
                    f"Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
            )

        return ValidationResult(valid=True)
