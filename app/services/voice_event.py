"""Processing event persistence."""

import json
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.models.voice_event import (
    STATUS_COMPLETED,
    STATUS_PROCESSING,
    TERMINAL_STATUSES,
    VoiceEvent,
)
from app.services.prompts import EnhancementKind

logger = logging.getLogger("voxmail")


class VoiceEventService:
    """Creates and transitions voice events. Terminal events are never written again."""

    def create_event(
        self,
        db: Session,
        user_id: int,
        file_size_bytes: int,
        duration_seconds: float | None,
        processing_type: str,
        enhancements: list[EnhancementKind] | None = None,
    ) -> VoiceEvent:
        """Insert an event. Pending enhancements leave it in ``processing``."""
        kinds = [k.value for k in enhancements or []]
        now = datetime.utcnow()
        event = VoiceEvent(
            user_id=user_id,
            received_at=now,
            file_size_bytes=file_size_bytes,
            duration_seconds=duration_seconds,
            processing_type=processing_type,
            enhancements_requested=json.dumps(kinds) if kinds else None,
            status=STATUS_PROCESSING if kinds else STATUS_COMPLETED,
            completed_at=None if kinds else now,
        )
        db.add(event)
        db.commit()
        db.refresh(event)
        return event

    def get_event(self, db: Session, event_id: int) -> VoiceEvent | None:
        return db.query(VoiceEvent).filter(VoiceEvent.id == event_id).first()

    def get_user_events(
        self, db: Session, user_id: int, limit: int = 20, offset: int = 0
    ) -> tuple[list[VoiceEvent], int]:
        """Events for a user, newest first, with the total count."""
        query = db.query(VoiceEvent).filter(VoiceEvent.user_id == user_id)
        total = query.count()
        items = query.order_by(VoiceEvent.received_at.desc(), VoiceEvent.id.desc()).offset(offset).limit(limit).all()
        return items, total

    def mark_progress(self, db: Session, event_id: int, message: str) -> bool:
        """Record a progress note on a non-terminal event."""
        event = self.get_event(db, event_id)
        if event is None or event.status in TERMINAL_STATUSES:
            return False
        event.error_message = message
        db.commit()
        return True

    def finish(self, db: Session, event_id: int, status: str, error_message: str | None = None) -> bool:
        """Move an event to a terminal status. Returns False if it was already terminal."""
        event = self.get_event(db, event_id)
        if event is None:
            logger.warning("Voice event %s not found, cannot set status %s", event_id, status)
            return False
        if event.status in TERMINAL_STATUSES:
            logger.warning("Voice event %s already %s, ignoring %s", event_id, event.status, status)
            return False
        event.status = status
        event.error_message = error_message
        event.completed_at = datetime.utcnow()
        db.commit()
        return True


_voice_event_service: VoiceEventService | None = None


def get_voice_event_service() -> VoiceEventService:
    """Get singleton voice event service instance."""
    global _voice_event_service
    if _voice_event_service is None:
        _voice_event_service = VoiceEventService()
    return _voice_event_service
