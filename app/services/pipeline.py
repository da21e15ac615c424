"""Primary voice note pipeline.

Validate, download, transcribe, persist, notify, all under one outer
deadline. Any failure before the success email is classified and reported
to the user with exactly one error email. Persistence and the success email
are best effort: their failures are logged and never turn a successful
transcription into an error.
"""

import logging
import time
from dataclasses import dataclass, field

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings
from app.errors import USER_ERROR_KINDS, ErrorKind, MailerError, PipelineError, classify_error
from app.models.voice_event import PROCESSING_TYPE_WEBHOOK, STATUS_FAILED
from app.services.deadline import Deadline
from app.services.email_templates import render_success
from app.services.fetcher import AudioFetcher
from app.services.metrics import PhaseMetrics, PhaseTracker, log_phase_metrics
from app.services.notifier import ErrorNotifier
from app.services.prompts import EnhancementKind
from app.services.scheduler import EnhancementJob, EnhancementScheduler
from app.services.transcription import TranscriptionService
from app.services.validator import AudioReference, AudioValidator
from app.services.voice_event import VoiceEventService

logger = logging.getLogger("voxmail.pipeline")


@dataclass
class ProcessingContext:
    """State owned by one pipeline run."""

    user_id: int
    user_email: str
    deadline: Deadline
    enhancement_kinds: list[EnhancementKind] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)
    tracker: PhaseTracker = field(default_factory=PhaseTracker)


@dataclass
class PipelineOutcome:
    success: bool
    metrics: PhaseMetrics
    transcript: str | None = None
    event_id: int | None = None
    error_kind: ErrorKind | None = None
    error_message: str | None = None
    email_delivered: bool = False
    enhancements_scheduled: bool = False


class VoiceNotePipeline:
    """Runs one inbound voice note through to its outcome email."""

    def __init__(
        self,
        settings: Settings,
        db: Session,
        fetcher: AudioFetcher,
        transcriber: TranscriptionService,
        mailer,
        scheduler: EnhancementScheduler,
        events: VoiceEventService,
    ) -> None:
        self.settings = settings
        self.db = db
        self.validator = AudioValidator(settings)
        self.fetcher = fetcher
        self.transcriber = transcriber
        self.mailer = mailer
        self.notifier = ErrorNotifier(mailer, settings.MAX_FILE_SIZE_MB)
        self.scheduler = scheduler
        self.events = events

    async def run(self, audio: AudioReference, context: ProcessingContext) -> PipelineOutcome:
        """Process ``audio``. Never raises for pipeline failures; returns the outcome."""
        tracker = context.tracker
        file_size = audio.size

        try:
            tracker.start_phase("validation")
            validation = self.validator.validate(audio)
            if not validation.valid:
                raise PipelineError(validation.message or "Invalid audio", validation.error_kind, audio.filename)

            tracker.start_phase("download")
            if audio.content is not None:
                audio_bytes = audio.content
            elif audio.url:
                audio_bytes = await self.fetcher.download(audio.url, context.deadline)
            else:
                raise PipelineError("Attachment has no content or download URL", filename=audio.filename)
            file_size = len(audio_bytes)

            tracker.start_phase("transcription")
            result = await self.transcriber.transcribe(
                audio_bytes, audio.filename, audio.content_type, context.deadline
            )
            if not result.text:
                raise PipelineError("Empty transcription result", ErrorKind.GENERAL_ERROR, audio.filename)
        except Exception as e:
            return await self._fail(e, audio, context, file_size)

        tracker.start_phase("database")
        event_id = self._record_event(context, file_size, result.estimated_duration_seconds)

        tracker.start_phase("email")
        delivered = await self._send_success(context, result.text, audio.filename)

        scheduled = False
        if context.enhancement_kinds:
            tracker.start_phase("dispatch")
            scheduled = await self._schedule_enhancements(context, event_id, audio, result, file_size)

        metrics = tracker.snapshot(file_size, success=True)
        log_phase_metrics(metrics)
        logger.info(
            "Voice note %s for user %s processed in %.0fms",
            audio.filename,
            context.user_id,
            metrics.total_ms,
        )
        return PipelineOutcome(
            success=True,
            metrics=metrics,
            transcript=result.text,
            event_id=event_id,
            email_delivered=delivered,
            enhancements_scheduled=scheduled,
        )

    async def _fail(
        self, error: Exception, audio: AudioReference, context: ProcessingContext, file_size: int
    ) -> PipelineOutcome:
        kind = classify_error(error)
        phase = context.tracker.current_phase
        level = logging.WARNING if kind in USER_ERROR_KINDS else logging.ERROR
        logger.log(
            level,
            "Voice note %s failed during %s: %s (%s)",
            audio.filename,
            phase,
            error,
            kind.value,
            exc_info=level == logging.ERROR,
        )

        context.tracker.start_phase("error_email")
        delivered = await self.notifier.notify(context.user_email, kind, audio.filename)

        metrics = context.tracker.snapshot(file_size, success=False, error_kind=kind)
        log_phase_metrics(metrics)
        return PipelineOutcome(
            success=False,
            metrics=metrics,
            error_kind=kind,
            error_message=str(error),
            email_delivered=delivered,
        )

    def _record_event(self, context: ProcessingContext, file_size: int, duration: float) -> int | None:
        try:
            event = self.events.create_event(
                self.db,
                user_id=context.user_id,
                file_size_bytes=file_size,
                duration_seconds=duration,
                processing_type=PROCESSING_TYPE_WEBHOOK,
                enhancements=context.enhancement_kinds,
            )
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to record voice event for user %s", context.user_id)
            return None
        return event.id

    async def _send_success(self, context: ProcessingContext, transcript: str, filename: str) -> bool:
        email = context.user_email
        stage_seconds = self.settings.EMAIL_TIMEOUT_SEC
        try:
            await context.deadline.run(
                self.mailer.send(email, render_success(transcript, filename)),
                stage_seconds,
                lambda: MailerError(f"Email timeout after {stage_seconds:.0f}s"),
            )
        except (MailerError, PipelineError) as e:
            logger.error("Transcript email to %s failed: %s", email, e)
            return False
        except Exception:
            logger.exception("Unexpected error sending transcript email to %s", email)
            return False
        return True

    async def _schedule_enhancements(
        self, context: ProcessingContext, event_id: int | None, audio: AudioReference, result, file_size: int
    ) -> bool:
        job = EnhancementJob(
            event_id=event_id,
            user_email=context.user_email,
            filename=audio.filename,
            enhancement_kinds=list(context.enhancement_kinds),
            user_id=context.user_id,
            duration_seconds=result.estimated_duration_seconds,
            file_size_bytes=file_size,
        )
        timeout = context.deadline.bound(self.settings.BACKGROUND_DISPATCH_TIMEOUT_SEC)
        if timeout <= 0:
            logger.error("No time left to dispatch enhancements for event %s", event_id)
            scheduled = False
        else:
            try:
                scheduled = await self.scheduler.schedule(job, result.text, timeout=timeout)
            except Exception:
                logger.exception("Enhancement scheduling raised for event %s", event_id)
                scheduled = False

        if not scheduled and event_id is not None:
            # Leave nothing stuck in "processing"
            try:
                self.events.finish(self.db, event_id, STATUS_FAILED, "Enhancement dispatch failed")
            except SQLAlchemyError:
                self.db.rollback()
                logger.exception("Failed to mark event %s failed after dispatch error", event_id)
        return scheduled
