"""Enhancement preference endpoints."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import ApiUser, get_api_user
from app.rate_limit import limiter
from app.schemas.enhancement import PreferencesResponse, PreferencesUpdate
from app.services.user import enhancement_kinds_for, get_user_service

router = APIRouter(prefix="/api/v1/preferences", tags=["Preferences"])


def _to_response(prefs) -> PreferencesResponse:
    return PreferencesResponse(
        user_id=prefs.user_id,
        send_cleaned_transcript=prefs.send_cleaned_transcript,
        send_summary=prefs.send_summary,
        enhancement_types=enhancement_kinds_for(prefs),
    )


@router.get("/", response_model=PreferencesResponse)
@limiter.limit("60/minute")
def get_preferences(
    request: Request,
    user: ApiUser = Depends(get_api_user),
    db: Session = Depends(get_db),
) -> PreferencesResponse:
    """Get the caller's enhancement preferences."""
    prefs = get_user_service().get_preferences(db, user.user_id)
    return _to_response(prefs)


@router.put("/", response_model=PreferencesResponse)
@limiter.limit("20/minute")
def update_preferences(
    request: Request,
    body: PreferencesUpdate,
    user: ApiUser = Depends(get_api_user),
    db: Session = Depends(get_db),
) -> PreferencesResponse:
    """Choose which enhancements are emailed after each transcript."""
    prefs = get_user_service().update_preferences(
        db,
        user.user_id,
        send_cleaned_transcript=body.send_cleaned_transcript,
        send_summary=body.send_summary,
    )
    return _to_response(prefs)
