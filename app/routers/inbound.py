"""Inbound email webhook."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.errors import ErrorKind, http_status_for
from app.services.deadline import Deadline
from app.services.fetcher import AudioFetcher, get_audio_fetcher
from app.services.inbound import extract_audio_attachments, verify_mailgun_signature
from app.services.mailer import get_mailer
from app.services.notifier import ErrorNotifier
from app.services.pipeline import ProcessingContext, VoiceNotePipeline
from app.services.scheduler import EnhancementScheduler, get_enhancement_scheduler
from app.services.transcription import TranscriptionService, get_transcription_service
from app.services.user import enhancement_kinds_for, extract_slug, get_user_service
from app.services.voice_event import get_voice_event_service

logger = logging.getLogger("voxmail")

router = APIRouter(prefix="/api/v1/inbound", tags=["Inbound"])


@router.get("/")
def verify_webhook(
    token: str | None = None,
    timestamp: str | None = None,
    signature: str | None = None,
    settings: Settings = Depends(get_settings),
) -> dict:
    """Webhook verification handshake."""
    if not verify_mailgun_signature(settings.MAILGUN_WEBHOOK_SIGNING_KEY, timestamp, token, signature):
        raise HTTPException(status_code=401, detail="Invalid signature")
    return {"status": "verified"}


@router.post("/")
async def receive_voice_note(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    fetcher: AudioFetcher = Depends(get_audio_fetcher),
    transcriber: TranscriptionService = Depends(get_transcription_service),
    mailer=Depends(get_mailer),
    scheduler: EnhancementScheduler = Depends(get_enhancement_scheduler),
) -> JSONResponse:
    """Receive a forwarded email, transcribe its first audio attachment and email the result."""
    deadline = Deadline(settings.PROCESSING_TIMEOUT_SEC)
    notifier = ErrorNotifier(mailer, settings.MAX_FILE_SIZE_MB)
    user_email: str | None = None
    handed_off = False

    try:
        form = await request.form()

        if not verify_mailgun_signature(
            settings.MAILGUN_WEBHOOK_SIGNING_KEY,
            form.get("timestamp"),
            form.get("token"),
            form.get("signature"),
        ):
            logger.warning("Rejected inbound webhook with invalid signature")
            raise HTTPException(status_code=401, detail="Invalid signature")

        recipient = form.get("recipient")
        slug = extract_slug(recipient if isinstance(recipient, str) else None)
        if slug is None:
            raise HTTPException(status_code=400, detail="Invalid recipient address")

        user = get_user_service().get_by_slug(db, slug)
        if user is None:
            # No email: do not reveal which slugs exist
            logger.info("Inbound email for unknown slug %s", slug)
            raise HTTPException(status_code=404, detail="User not found")
        user_email = user.email

        if not user.approved:
            handed_off = True
            await notifier.notify(user_email, ErrorKind.USER_NOT_APPROVED)
            raise HTTPException(status_code=403, detail="User not approved")

        attachments = await extract_audio_attachments(form)
        if not attachments:
            handed_off = True
            await notifier.notify(user_email, ErrorKind.INVALID_FORMAT)
            raise HTTPException(status_code=400, detail="No audio attachments found")

        audio = attachments[0]
        if len(attachments) > 1:
            logger.info(
                "Inbound email from user %s has %d audio attachments, using %s",
                user.id,
                len(attachments),
                audio.filename,
            )

        prefs = get_user_service().get_preferences(db, user.id)
        context = ProcessingContext(
            user_id=user.id,
            user_email=user_email,
            deadline=deadline,
            enhancement_kinds=enhancement_kinds_for(prefs),
        )
        pipeline = VoiceNotePipeline(
            settings=settings,
            db=db,
            fetcher=fetcher,
            transcriber=transcriber,
            mailer=mailer,
            scheduler=scheduler,
            events=get_voice_event_service(),
        )
        handed_off = True
        outcome = await pipeline.run(audio, context)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Unhandled error in inbound webhook")
        if user_email and not handed_off:
            await notifier.notify(user_email, ErrorKind.GENERAL_ERROR)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    metrics = outcome.metrics.to_dict()
    if not outcome.success:
        return JSONResponse(
            status_code=http_status_for(outcome.error_kind or ErrorKind.GENERAL_ERROR),
            content={
                "detail": outcome.error_message,
                "errorType": outcome.error_kind.value if outcome.error_kind else None,
                "metrics": metrics,
            },
        )
    return JSONResponse(
        status_code=200,
        content={
            "message": "Voice note processed successfully",
            "metrics": {
                "totalTime": metrics["totalTime"],
                "fileSize": metrics["fileSize"],
                "phases": metrics["phases"],
            },
        },
    )
