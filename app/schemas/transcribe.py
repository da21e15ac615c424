"""Pydantic schemas for the transcription API."""

from pydantic import BaseModel


class TranscribeResponse(BaseModel):
    text: str


class TranscribeUsageResponse(BaseModel):
    endpoint: str
    method: str
    authentication: str
    field: str
    supported_formats: list[str]
    max_file_size_mb: int
    rate_limit: str
