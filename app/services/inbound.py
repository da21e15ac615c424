"""Mailgun inbound webhook helpers: signature check and attachment extraction."""

import hashlib
import hmac
import re

from starlette.datastructures import FormData, UploadFile

from app.services.validator import AudioReference, is_audio_attachment

ATTACHMENT_FIELD = re.compile(r"^attachment-(\d+)$")


def verify_mailgun_signature(signing_key: str, timestamp: str | None, token: str | None, signature: str | None) -> bool:
    """HMAC-SHA256(timestamp + token) with the webhook signing key."""
    if not signing_key or not timestamp or not token or not signature:
        return False
    expected = hmac.new(
        signing_key.encode("utf-8"),
        f"{timestamp}{token}".encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return hmac.compare_digest(expected, signature)


def _attachment_indexes(form: FormData) -> list[int]:
    indexes = {int(m.group(1)) for key in form.keys() if (m := ATTACHMENT_FIELD.match(key))}
    count = form.get("attachment-count")
    if isinstance(count, str) and count.isdigit():
        indexes.update(range(1, int(count) + 1))
    return sorted(indexes)


async def extract_audio_attachments(form: FormData) -> list[AudioReference]:
    """Audio attachments in posting order.

    Mailgun sends either stored attachments (filename plus ``-url``, ``-size``
    and ``-content-type`` fields) or the file bodies themselves.
    """
    attachments: list[AudioReference] = []
    for index in _attachment_indexes(form):
        value = form.get(f"attachment-{index}")
        if isinstance(value, UploadFile):
            content = await value.read()
            ref = AudioReference(
                filename=value.filename or f"attachment-{index}",
                size=len(content),
                content_type=value.content_type,
                content=content,
            )
        else:
            size = form.get(f"attachment-{index}-size")
            ref = AudioReference(
                filename=(value if isinstance(value, str) and value else f"attachment-{index}"),
                size=int(size) if isinstance(size, str) and size.isdigit() else 0,
                content_type=_text_field(form, f"attachment-{index}-content-type"),
                url=_text_field(form, f"attachment-{index}-url"),
            )
            if ref.url is None:
                continue
        if is_audio_attachment(ref.filename, ref.content_type):
            attachments.append(ref)
    return attachments


def _text_field(form: FormData, name: str) -> str | None:
    value = form.get(name)
    return value if isinstance(value, str) and value else None
