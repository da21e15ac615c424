"""Direct transcription API, authenticated by API key."""

import logging
import math
import time

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.dependencies import ApiUser, get_api_user
from app.errors import PipelineError, classify_error, http_status_for
from app.models.voice_event import PROCESSING_TYPE_API
from app.rate_limit import UserRateLimiter, get_user_rate_limiter
from app.schemas.transcribe import TranscribeResponse, TranscribeUsageResponse
from app.services.deadline import Deadline
from app.services.transcription import TranscriptionService, get_transcription_service
from app.services.validator import ALLOWED_EXTENSIONS, AudioReference, AudioValidator
from app.services.voice_event import get_voice_event_service

logger = logging.getLogger("voxmail")

router = APIRouter(prefix="/api/v1/transcribe", tags=["Transcribe"])


@router.get("/", response_model=TranscribeUsageResponse)
def usage(settings: Settings = Depends(get_settings)) -> TranscribeUsageResponse:
    """Describe how to call the transcription endpoint."""
    return TranscribeUsageResponse(
        endpoint="/api/v1/transcribe/",
        method="POST",
        authentication="Authorization: Bearer <api key>",
        field="file",
        supported_formats=sorted(ALLOWED_EXTENSIONS),
        max_file_size_mb=settings.MAX_FILE_SIZE_MB,
        rate_limit=settings.API_RATE_LIMIT,
    )


@router.post("/", response_model=TranscribeResponse)
async def transcribe_file(
    file: UploadFile | None = File(None),
    user: ApiUser = Depends(get_api_user),
    rate_limiter: UserRateLimiter = Depends(get_user_rate_limiter),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    transcriber: TranscriptionService = Depends(get_transcription_service),
) -> TranscribeResponse:
    """Transcribe an uploaded audio file and return the text. No email is sent."""
    limit = rate_limiter.hit(f"user:{user.user_id}")
    if not limit.allowed:
        retry_after = max(1, math.ceil(limit.reset_at - time.time()))
        raise HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )

    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    content = await file.read()
    audio = AudioReference(
        filename=file.filename or "upload",
        size=len(content),
        content_type=file.content_type,
        content=content,
    )
    validation = AudioValidator(settings).validate(audio)
    if not validation.valid:
        raise HTTPException(status_code=400, detail=validation.message)

    deadline = Deadline(settings.PROCESSING_TIMEOUT_SEC)
    try:
        result = await transcriber.transcribe(content, audio.filename, audio.content_type, deadline)
    except PipelineError as e:
        kind = classify_error(e)
        logger.error("API transcription failed for user %s: %s (%s)", user.user_id, e, kind.value)
        raise HTTPException(status_code=http_status_for(kind), detail=str(e)) from None

    if not result.text:
        raise HTTPException(status_code=500, detail="Transcription failed - empty result")

    try:
        get_voice_event_service().create_event(
            db,
            user_id=user.user_id,
            file_size_bytes=audio.size,
            duration_seconds=result.estimated_duration_seconds,
            processing_type=PROCESSING_TYPE_API,
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to record API voice event for user %s", user.user_id)

    return TranscribeResponse(text=result.text)
