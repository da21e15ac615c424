"""Background enhancement dispatcher.

Runs each requested enhancement kind against an already transcribed voice
note, emails every result on its own and folds the per-kind outcomes into the
voice event's final status.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings
from app.errors import EnhancementError, MailerError
from app.models.voice_event import STATUS_COMPLETED, STATUS_FAILED
from app.services.deadline import Deadline
from app.services.email_templates import render_enhanced
from app.services.llm import EnhancementClient
from app.services.prompts import ENHANCEMENT_LABELS, EnhancementKind
from app.services.scheduler import EnhancementJob
from app.services.voice_event import VoiceEventService

logger = logging.getLogger("voxmail.enhancement")


@dataclass
class EnhancementResult:
    kind: EnhancementKind
    success: bool
    content: str | None = None
    error: str | None = None


def aggregate_outcome(results: list[EnhancementResult]) -> tuple[str, str | None]:
    """Final (status, error_message) for a set of settled results."""
    failed = [r for r in results if not r.success]
    if len(failed) < len(results):
        if failed:
            return STATUS_COMPLETED, f"Some enhancements failed: {', '.join(r.kind.value for r in failed)}"
        return STATUS_COMPLETED, None
    details = "; ".join(f"{r.kind.value} failed: {r.error}" for r in failed)
    return STATUS_FAILED, f"All enhancements failed: {details}"


class EnhancementDispatcher:
    """Runs enhancement kinds sequentially in the order requested."""

    def __init__(
        self,
        settings: Settings,
        db: Session,
        llm: EnhancementClient,
        mailer,
        events: VoiceEventService,
    ) -> None:
        self.settings = settings
        self.db = db
        self.llm = llm
        self.mailer = mailer
        self.events = events

    async def run(self, transcript: str, job: EnhancementJob) -> list[EnhancementResult]:
        """Process every kind, then record the aggregate status.

        Per-kind failures are captured in the results. Anything escaping the
        loop marks the event failed and is re-raised.
        """
        if not job.enhancement_kinds:
            return []

        deadline = Deadline(self.settings.BACKGROUND_TIMEOUT_SEC)
        try:
            self._mark_progress(job, f"Processing enhancements: {', '.join(k.value for k in job.enhancement_kinds)}")
            results = []
            for kind in job.enhancement_kinds:
                results.append(await self._run_kind(kind, transcript, job, deadline))
        except Exception as e:
            logger.exception("Enhancement processing crashed for event %s", job.event_id)
            self._finish(job, STATUS_FAILED, f"Critical enhancement processing error: {e}")
            raise

        status, message = aggregate_outcome(results)
        self._finish(job, status, message)
        logger.info(
            "Enhancements for event %s finished: %s (%d/%d succeeded)",
            job.event_id,
            status,
            sum(r.success for r in results),
            len(results),
        )
        return results

    async def _run_kind(
        self, kind: EnhancementKind, transcript: str, job: EnhancementJob, deadline: Deadline
    ) -> EnhancementResult:
        stage_seconds = self.settings.ENHANCEMENT_TIMEOUT_SEC
        try:
            content = await deadline.run(
                self.llm.generate(kind, transcript, timeout=deadline.bound(stage_seconds)),
                stage_seconds,
                lambda: EnhancementError(f"{kind.value} enhancement timeout after {stage_seconds:.0f}s"),
            )
            message = render_enhanced(ENHANCEMENT_LABELS[kind], content, transcript, job.filename)
            await self.mailer.send(job.user_email, message)
        except (EnhancementError, MailerError) as e:
            logger.warning("Enhancement %s failed for event %s: %s", kind.value, job.event_id, e)
            return EnhancementResult(kind=kind, success=False, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error in %s enhancement for event %s", kind.value, job.event_id)
            return EnhancementResult(kind=kind, success=False, error=str(e) or e.__class__.__name__)

        logger.info("Enhancement %s delivered for event %s", kind.value, job.event_id)
        return EnhancementResult(kind=kind, success=True, content=content)

    def _mark_progress(self, job: EnhancementJob, message: str) -> None:
        if job.event_id is None:
            return
        try:
            self.events.mark_progress(self.db, job.event_id, message)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to record progress for event %s", job.event_id)

    def _finish(self, job: EnhancementJob, status: str, message: str | None) -> None:
        if job.event_id is None:
            return
        try:
            self.events.finish(self.db, job.event_id, status, message)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to record %s status for event %s", status, job.event_id)
