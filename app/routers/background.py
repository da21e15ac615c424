"""Background enhancement endpoint, called by the inbound pipeline."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.dependencies import require_background_token
from app.schemas.enhancement import BackgroundEnhanceRequest, BackgroundEnhanceResponse, EnhancementResultResponse
from app.services.enhancement import EnhancementDispatcher
from app.services.llm import EnhancementClient, get_enhancement_client
from app.services.mailer import get_mailer
from app.services.scheduler import EnhancementJob
from app.services.voice_event import get_voice_event_service

logger = logging.getLogger("voxmail")

router = APIRouter(prefix="/api/v1/background", tags=["Background"])


@router.post("/enhance", response_model=BackgroundEnhanceResponse, dependencies=[Depends(require_background_token)])
async def enhance_transcript(
    body: BackgroundEnhanceRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    llm: EnhancementClient = Depends(get_enhancement_client),
    mailer=Depends(get_mailer),
):
    """Run the requested enhancements for an already delivered transcript."""
    if not body.transcript.strip():
        raise HTTPException(status_code=400, detail="Transcript is required")

    job = EnhancementJob(
        event_id=body.event_id,
        user_email=body.user_email,
        filename=body.filename,
        enhancement_kinds=list(body.enhancement_types),
        user_id=body.user_id,
        duration_seconds=body.duration,
        file_size_bytes=body.file_size,
    )
    dispatcher = EnhancementDispatcher(
        settings=settings,
        db=db,
        llm=llm,
        mailer=mailer,
        events=get_voice_event_service(),
    )
    logger.info("Background enhancement for event %s: %s", job.event_id, [k.value for k in job.enhancement_kinds])

    try:
        results = await dispatcher.run(body.transcript, job)
    except Exception as e:
        return JSONResponse(status_code=500, content={"success": False, "detail": str(e) or "Enhancement failed"})

    return BackgroundEnhanceResponse(
        success=True,
        results=[EnhancementResultResponse(kind=r.kind, success=r.success, error=r.error) for r in results],
    )
