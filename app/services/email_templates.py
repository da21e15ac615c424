"""Outcome email rendering."""

from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.errors import ErrorKind

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


@dataclass(frozen=True)
class EmailMessage:
    subject: str
    text: str
    html: str


@dataclass(frozen=True)
class ErrorCopy:
    subject: str
    heading: str
    message: str
    next_step: str | None = None


# {name} is the quoted filename or "your voice note"
ERROR_COPY: dict[ErrorKind, ErrorCopy] = {
    ErrorKind.FILE_TOO_LARGE: ErrorCopy(
        subject="Voice Note Too Large",
        heading="Your voice note is too large",
        message="The voice note {name} is too large to transcribe.",
        next_step="Please try a file smaller than {max_mb}MB, or split the recording into shorter parts.",
    ),
    ErrorKind.INVALID_FORMAT: ErrorCopy(
        subject="Unsupported Audio Format",
        heading="We couldn't read that audio format",
        message="The format of {name} is not supported.",
        next_step="Please send an .m4a, .mp3, .wav, .ogg, .aac or .flac file as an attachment.",
    ),
    ErrorKind.DOWNLOAD_TIMEOUT: ErrorCopy(
        subject="Voice Note Download Timeout",
        heading="We couldn't download your voice note in time",
        message="We couldn't download {name} in time.",
        next_step="Please try a shorter recording or send it again in a few minutes.",
    ),
    ErrorKind.PROCESSING_TIMEOUT: ErrorCopy(
        subject="Voice Note Processing Timeout",
        heading="Processing took too long",
        message="Processing {name} took too long.",
        next_step="Please try a shorter recording (under 5 minutes works best).",
    ),
    ErrorKind.WHISPER_TIMEOUT: ErrorCopy(
        subject="Voice Note Transcription Timeout",
        heading="Transcription took too long",
        message="Transcribing {name} took too long.",
        next_step="Please try a shorter recording (under 3 minutes works best).",
    ),
    ErrorKind.USER_NOT_APPROVED: ErrorCopy(
        subject="Account Not Approved",
        heading="Your account is awaiting approval",
        message="Your account is not yet approved for voice note transcription.",
        next_step="You'll be able to send voice notes as soon as an administrator approves your account.",
    ),
    ErrorKind.USER_NOT_FOUND: ErrorCopy(
        subject="User Not Found",
        heading="We couldn't find your account",
        message="We could not find an account for this address.",
        next_step="Please check the email address you sent the voice note to.",
    ),
    ErrorKind.GENERAL_ERROR: ErrorCopy(
        subject="Voice Note Processing Error",
        heading="Something went wrong",
        message="Sorry, we encountered an error processing {name}.",
        next_step="Please try again later.",
    ),
}


def _display_name(filename: str | None) -> str:
    return f'"{filename}"' if filename else "your voice note"


def render_success(transcript: str, filename: str | None = None) -> EmailMessage:
    context = {"transcript": transcript, "filename": filename}
    return EmailMessage(
        subject=f"Voice Note Transcription: {filename or 'voice note'}",
        text=_env.get_template("success.txt").render(context),
        html=_env.get_template("success.html").render(context),
    )


def render_error(kind: ErrorKind, filename: str | None = None, max_file_size_mb: int = 15) -> EmailMessage:
    copy = ERROR_COPY.get(kind, ERROR_COPY[ErrorKind.GENERAL_ERROR])
    fields = {"name": _display_name(filename), "max_mb": max_file_size_mb}
    context = {
        "heading": copy.heading,
        "message": copy.message.format(**fields),
        "next_step": copy.next_step.format(**fields) if copy.next_step else None,
    }
    return EmailMessage(
        subject=copy.subject,
        text=_env.get_template("error.txt").render(context),
        html=_env.get_template("error.html").render(context),
    )


def render_enhanced(label: str, content: str, transcript: str, filename: str | None = None) -> EmailMessage:
    context = {"label": label, "content": content, "transcript": transcript, "filename": filename}
    return EmailMessage(
        subject=f"{label} Voice Note: {filename or 'voice note'}",
        text=_env.get_template("enhanced.txt").render(context),
        html=_env.get_template("enhanced.html").render(context),
    )
