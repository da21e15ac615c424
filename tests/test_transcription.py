"""Tests for the Whisper adapter with a mocked OpenAI client."""

import asyncio
from unittest.mock import patch

import httpx
import openai
import pytest

from app.errors import ErrorKind, ProcessingTimeoutError, TranscriptionError
from app.services.deadline import Deadline
from app.services.transcription import (
    TranscriptionService,
    categorize_transcription_error,
    clean_transcription,
    estimate_duration_seconds,
)
from tests.fakes import FakeWhisper, make_settings


class TestCleanTranscription:
    """Normalization: trim, collapse whitespace, space after punctuation, capitalize."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("hi.there   friend", "Hi. there friend"),
            ("  hello.world  ", "Hello. world"),
            ("wait!  ok?  yes", "Wait! ok? yes"),
            ("line one\n\nline two", "Line one line two"),
            ("done.Next", "Done.Next"),
            ("3.5 percent", "3.5 percent"),
            ("already fine.", "Already fine."),
            ("   ", ""),
            ("", ""),
        ],
    )
    def test_literal_pairs(self, raw: str, expected: str):
        assert clean_transcription(raw) == expected

    def test_none_is_empty(self):
        assert clean_transcription(None) == ""

    def test_collapse_happens_before_punctuation_spacing(self):
        """Whitespace between punctuation and the next word ends up as exactly one space."""
        assert clean_transcription("end.\t\t  next") == "End. next"


class TestCategorizeTranscriptionError:
    @pytest.mark.parametrize(
        ("message", "kind"),
        [
            ("Request timeout", ErrorKind.WHISPER_TIMEOUT),
            ("The operation was aborted", ErrorKind.WHISPER_TIMEOUT),
            ("Error code: 429 - rate_limit_exceeded", ErrorKind.PROCESSING_TIMEOUT),
            ("You exceeded your current quota", ErrorKind.PROCESSING_TIMEOUT),
            ("Invalid file format. Supported formats: flac, m4a", ErrorKind.INVALID_FORMAT),
            ("Unsupported media", ErrorKind.INVALID_FORMAT),
            ("Maximum content size limit exceeded", ErrorKind.FILE_TOO_LARGE),
            ("File is too large", ErrorKind.FILE_TOO_LARGE),
            ("Internal server error", ErrorKind.GENERAL_ERROR),
        ],
    )
    def test_categories(self, message: str, kind: ErrorKind):
        assert categorize_transcription_error(message) == kind


class TestEstimateDuration:
    def test_two_megabytes_at_64kbps(self):
        assert estimate_duration_seconds(2 * 1024 * 1024, 64) == 262.1

    def test_empty_file(self):
        assert estimate_duration_seconds(0, 64) == 0.0


class TestTranscriptionService:
    """Tests for TranscriptionService.transcribe."""

    def _transcribe(self, service: TranscriptionService, audio: bytes = b"\x00" * 8000, budget: float = 60):
        return asyncio.run(service.transcribe(audio, "memo.m4a", "audio/mp4", Deadline(budget)))

    def test_returns_normalized_text_and_estimate(self):
        whisper = FakeWhisper(text="  so.this is it ")
        service = TranscriptionService(make_settings(ASSUMED_BITRATE_KBPS=64), client=whisper)

        result = self._transcribe(service)

        assert result.text == "So. this is it"
        assert result.estimated_duration_seconds == 1.0
        call = whisper.calls[0]
        assert call["model"] == "whisper-1"
        assert call["file"][0] == "memo.m4a"
        assert call["file"][2] == "audio/mp4"
        assert call["timeout"] == 40

    def test_whitespace_only_result_is_empty(self):
        service = TranscriptionService(make_settings(), client=FakeWhisper(text=" \n\t "))
        assert self._transcribe(service).text == ""

    def test_stage_timeout_is_whisper_timeout(self):
        service = TranscriptionService(
            make_settings(TRANSCRIPTION_TIMEOUT_SEC=0.05),
            client=FakeWhisper(delay=1.0),
        )
        with pytest.raises(TranscriptionError) as exc_info:
            self._transcribe(service, budget=5)
        assert exc_info.value.kind == ErrorKind.WHISPER_TIMEOUT

    def test_outer_deadline_is_processing_timeout(self):
        service = TranscriptionService(
            make_settings(TRANSCRIPTION_TIMEOUT_SEC=5),
            client=FakeWhisper(delay=1.0),
        )
        with pytest.raises(ProcessingTimeoutError) as exc_info:
            self._transcribe(service, budget=0.05)
        assert exc_info.value.kind == ErrorKind.PROCESSING_TIMEOUT

    def test_remote_error_is_categorized(self):
        service = TranscriptionService(
            make_settings(),
            client=FakeWhisper(error=RuntimeError("Unsupported file format")),
        )
        with pytest.raises(TranscriptionError) as exc_info:
            self._transcribe(service)
        assert exc_info.value.kind == ErrorKind.INVALID_FORMAT
        assert exc_info.value.filename == "memo.m4a"

    @patch("app.services.transcription.TranscriptionService._get_client")
    def test_client_timeout_exception(self, mock_get_client):
        request = httpx.Request("POST", "https://api.openai.com/v1/audio/transcriptions")
        mock_get_client.return_value = FakeWhisper(error=openai.APITimeoutError(request=request))
        service = TranscriptionService(make_settings())

        with pytest.raises(TranscriptionError) as exc_info:
            self._transcribe(service)
        assert exc_info.value.kind == ErrorKind.WHISPER_TIMEOUT

    def test_rate_limit_is_not_retried(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(
                429,
                json={"error": {"message": "Rate limit reached for requests", "code": "rate_limit_exceeded"}},
            )

        service = TranscriptionService(make_settings())
        service._client = service._get_client().with_options(
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )

        with pytest.raises(TranscriptionError) as exc_info:
            self._transcribe(service)

        assert len(requests) == 1
        assert requests[0].url.path.endswith("/audio/transcriptions")
        assert exc_info.value.kind == ErrorKind.PROCESSING_TIMEOUT
