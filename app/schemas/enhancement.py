"""Pydantic schemas for background enhancement and preferences."""

from pydantic import BaseModel, Field, StrictBool

from app.services.prompts import EnhancementKind


class BackgroundEnhanceRequest(BaseModel):
    event_id: int | None = Field(default=None, alias="eventId")
    enhancement_types: list[EnhancementKind] = Field(default_factory=list, alias="enhancementTypes")
    filename: str = "voice note"
    transcript: str = ""
    user_email: str = Field(alias="userEmail")
    user_id: int | None = Field(default=None, alias="userId")
    duration: float | None = None
    file_size: int | None = Field(default=None, alias="fileSize")

    model_config = {"populate_by_name": True}


class EnhancementResultResponse(BaseModel):
    kind: EnhancementKind
    success: bool
    error: str | None = None


class BackgroundEnhanceResponse(BaseModel):
    success: bool
    results: list[EnhancementResultResponse] = []


class PreferencesUpdate(BaseModel):
    send_cleaned_transcript: StrictBool
    send_summary: StrictBool


class PreferencesResponse(BaseModel):
    user_id: int
    send_cleaned_transcript: bool
    send_summary: bool
    enhancement_types: list[EnhancementKind] = []
