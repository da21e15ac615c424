"""Authentication dependencies for FastAPI routes."""

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import get_db
from app.services.scheduler import verify_background_token
from app.services.user import get_user_service, is_valid_api_key_format


@dataclass(frozen=True)
class ApiUser:
    """Caller authenticated by API key."""

    user_id: int
    email: str
    approved: bool


@dataclass(frozen=True)
class Authenticated:
    user: ApiUser


@dataclass(frozen=True)
class Anonymous:
    reason: str


Caller = Authenticated | Anonymous


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip()
    return None


def resolve_caller(request: Request, db: Session = Depends(get_db)) -> Caller:
    """Resolve the API key once, at the boundary."""
    api_key = _bearer_token(request)
    if not api_key:
        return Anonymous("Missing API key")
    if not is_valid_api_key_format(api_key):
        return Anonymous("Invalid API key format")

    user = get_user_service().get_by_api_key(db, api_key)
    if user is None:
        return Anonymous("Invalid API key")
    if not user.approved:
        return Anonymous("Account not approved")
    return Authenticated(ApiUser(user_id=user.id, email=user.email, approved=user.approved))


def get_api_user(caller: Caller = Depends(resolve_caller)) -> ApiUser:
    """Require an approved API key. Raises 401 otherwise."""
    if isinstance(caller, Authenticated):
        return caller.user
    raise HTTPException(status_code=401, detail=f"Unauthorized: {caller.reason}")


def require_background_token(request: Request, settings: Settings = Depends(get_settings)) -> None:
    """Accept only the SHA-256 of APP_SECRET as bearer token."""
    if not verify_background_token(settings.APP_SECRET, _bearer_token(request)):
        raise HTTPException(status_code=401, detail="Unauthorized")
