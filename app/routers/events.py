"""Voice event history endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import ApiUser, get_api_user
from app.rate_limit import limiter
from app.schemas.voice_event import VoiceEventListResponse, VoiceEventResponse
from app.services.voice_event import get_voice_event_service

router = APIRouter(prefix="/api/v1/events", tags=["Events"])


@router.get("/", response_model=VoiceEventListResponse)
@limiter.limit("60/minute")
def list_events(
    request: Request,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    user: ApiUser = Depends(get_api_user),
    db: Session = Depends(get_db),
) -> VoiceEventListResponse:
    """List the caller's voice events, newest first."""
    items, total = get_voice_event_service().get_user_events(db, user.user_id, limit=limit, offset=offset)
    return VoiceEventListResponse(
        items=[VoiceEventResponse.model_validate(e) for e in items],
        total=total,
    )


@router.get("/{event_id}", response_model=VoiceEventResponse)
def get_event(
    event_id: int,
    user: ApiUser = Depends(get_api_user),
    db: Session = Depends(get_db),
) -> VoiceEventResponse:
    """Get a single voice event."""
    event = get_voice_event_service().get_event(db, event_id)
    if not event or event.user_id != user.user_id:
        raise HTTPException(status_code=404, detail="Voice event not found")
    return VoiceEventResponse.model_validate(event)
