"""Attachment download with a byte ceiling and a dedicated timeout."""

import httpx

from app.config import Settings, get_settings
from app.errors import DownloadError, ErrorKind
from app.services.deadline import Deadline

CHUNK_SIZE = 1024 * 64  # 64KB chunks


class AudioFetcher:
    """Downloads attachment bytes from the mail provider."""

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.settings = settings
        self._transport = transport

    def _auth(self) -> tuple[str, str] | None:
        # Stored Mailgun attachments require the account API key
        if self.settings.MAILGUN_API_KEY:
            return ("api", self.settings.MAILGUN_API_KEY)
        return None

    async def download(self, url: str, deadline: Deadline) -> bytes:
        """Fetch ``url`` under ``min(DOWNLOAD_TIMEOUT_SEC, remaining budget)``.

        Raises DownloadError (download_timeout, file_too_large or general_error)
        or ProcessingTimeoutError when the outer budget runs out first.
        """
        stage_seconds = self.settings.DOWNLOAD_TIMEOUT_SEC
        return await deadline.run(
            self._fetch(url, stage_seconds),
            stage_seconds,
            lambda: DownloadError(
                f"Download timeout after {stage_seconds:.0f}s",
                ErrorKind.DOWNLOAD_TIMEOUT,
            ),
        )

    async def _fetch(self, url: str, timeout: float) -> bytes:
        max_bytes = self.settings.max_file_size_bytes
        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=timeout,
                auth=self._auth(),
                follow_redirects=True,
            ) as client:
                async with client.stream("GET", url) as resp:
                    resp.raise_for_status()

                    declared = resp.headers.get("content-length")
                    if declared and declared.isdigit() and int(declared) > max_bytes:
                        raise DownloadError(
                            f"File too large: {int(declared)} bytes exceeds limit of {max_bytes} bytes",
                            ErrorKind.FILE_TOO_LARGE,
                        )

                    chunks: list[bytes] = []
                    received = 0
                    async for chunk in resp.aiter_bytes(CHUNK_SIZE):
                        received += len(chunk)
                        if received > max_bytes:
                            raise DownloadError(
                                f"File too large: download exceeds limit of {max_bytes} bytes",
                                ErrorKind.FILE_TOO_LARGE,
                            )
                        chunks.append(chunk)
        except httpx.TimeoutException as e:
            raise DownloadError(f"Download timeout: {e}", ErrorKind.DOWNLOAD_TIMEOUT) from e
        except httpx.HTTPStatusError as e:
            raise DownloadError(f"Failed to download audio: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise DownloadError(f"Failed to download audio: {e}") from e

        return b"".join(chunks)


_fetcher: AudioFetcher | None = None


def get_audio_fetcher() -> AudioFetcher:
    """Get singleton fetcher instance."""
    global _fetcher
    if _fetcher is None:
        _fetcher = AudioFetcher(get_settings())
    return _fetcher
