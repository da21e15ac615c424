"""Pydantic schemas for voice event endpoints."""

import json
from datetime import datetime

from pydantic import BaseModel, field_validator


class VoiceEventResponse(BaseModel):
    id: int
    received_at: datetime
    duration_seconds: float | None
    file_size_bytes: int
    status: str
    processing_type: str
    enhancements_requested: list[str] = []
    completed_at: datetime | None
    error_message: str | None

    model_config = {"from_attributes": True}

    @field_validator("enhancements_requested", mode="before")
    @classmethod
    def decode_enhancements(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return json.loads(value)
        return value


class VoiceEventListResponse(BaseModel):
    items: list[VoiceEventResponse]
    total: int
