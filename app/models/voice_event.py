"""Processing event model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, Integer, String, Text

from app.database import Base

STATUS_PROCESSING = "processing"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_FAILED})

PROCESSING_TYPE_WEBHOOK = "webhook"
PROCESSING_TYPE_API = "api"


class VoiceEvent(Base):
    """One voice note submission and its outcome."""

    __tablename__ = "voice_event"
    __table_args__ = (Index("ix_voice_event_user_received", "user_id", "received_at"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    received_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    duration_seconds = Column(Float, nullable=True)  # estimated from byte size, not decoded
    file_size_bytes = Column(Integer, nullable=False)
    status = Column(String(32), nullable=False, default=STATUS_PROCESSING)  # processing, completed, failed
    processing_type = Column(String(16), nullable=False, default=PROCESSING_TYPE_WEBHOOK)
    enhancements_requested = Column(Text, nullable=True)  # JSON list, in configured order
    completed_at = Column(DateTime, nullable=True)
    error_message = Column(Text, nullable=True)
