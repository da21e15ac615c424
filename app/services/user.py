"""User lookup, provisioning and enhancement preferences."""

import re
import secrets
import string

from sqlalchemy.orm import Session

from app.models.user import User, UserPreferences
from app.services.prompts import ENHANCEMENT_ORDER, EnhancementKind

SLUG_ALPHABET = string.ascii_lowercase + string.digits
SLUG_LENGTH = 6
SLUG_PATTERN = re.compile(r"^([a-z0-9]{6})@[^@\s]+$")
API_KEY_PATTERN = re.compile(r"^[a-f0-9]{32}$")


def generate_slug() -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(SLUG_LENGTH))


def generate_api_key() -> str:
    """32 lowercase hex characters."""
    return secrets.token_hex(16)


def extract_slug(recipient: str | None) -> str | None:
    """Slug from an inbound address like ``abc123@in.example.com``, or None."""
    match = SLUG_PATTERN.match((recipient or "").strip())
    return match.group(1) if match else None


def is_valid_api_key_format(api_key: str | None) -> bool:
    return bool(api_key and API_KEY_PATTERN.match(api_key))


def enhancement_kinds_for(preferences: UserPreferences | None) -> list[EnhancementKind]:
    """Requested kinds in configured order."""
    if preferences is None:
        return []
    enabled = {
        EnhancementKind.CLEANUP: preferences.send_cleaned_transcript,
        EnhancementKind.SUMMARY: preferences.send_summary,
    }
    return [kind for kind in ENHANCEMENT_ORDER if enabled[kind]]


class UserService:
    """Handles user lookup and preference storage."""

    def create_user(self, db: Session, email: str, approved: bool = False, slug: str | None = None) -> User:
        """Provision a user with a unique slug and a fresh API key."""
        if slug is None:
            slug = generate_slug()
            while self.get_by_slug(db, slug) is not None:
                slug = generate_slug()
        user = User(email=email.lower().strip(), slug=slug, approved=approved, api_key=generate_api_key())
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    def get_by_slug(self, db: Session, slug: str) -> User | None:
        return db.query(User).filter(User.slug == slug).first()

    def get_by_api_key(self, db: Session, api_key: str) -> User | None:
        if not is_valid_api_key_format(api_key):
            return None
        return db.query(User).filter(User.api_key == api_key).first()

    def regenerate_api_key(self, db: Session, user: User) -> str:
        user.api_key = generate_api_key()
        db.commit()
        return user.api_key

    def get_preferences(self, db: Session, user_id: int) -> UserPreferences:
        """Get preferences, creating the all-off default row if missing."""
        prefs = db.query(UserPreferences).filter(UserPreferences.user_id == user_id).first()
        if prefs is None:
            prefs = UserPreferences(user_id=user_id, send_cleaned_transcript=False, send_summary=False)
            db.add(prefs)
            db.commit()
            db.refresh(prefs)
        return prefs

    def update_preferences(
        self,
        db: Session,
        user_id: int,
        send_cleaned_transcript: bool,
        send_summary: bool,
    ) -> UserPreferences:
        prefs = self.get_preferences(db, user_id)
        prefs.send_cleaned_transcript = send_cleaned_transcript
        prefs.send_summary = send_summary
        db.commit()
        db.refresh(prefs)
        return prefs


_user_service: UserService | None = None


def get_user_service() -> UserService:
    """Get singleton user service instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
