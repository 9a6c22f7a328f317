from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str = Field(default="ok", description="Health status indicator.")
    time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class VideoCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, json_schema_extra={"example": "Boots on the beach"})
    description: str = Field(default="", json_schema_extra={"example": "A short clip."})


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    title: str
    description: str
    video_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ErrorDetail(BaseModel):
    error: str
    stage: Optional[str] = None
    message: str


class ErrorResponse(BaseModel):
    detail: ErrorDetail


__all__ = [
    "HealthResponse",
    "VideoCreateRequest",
    "VideoResponse",
    "ErrorDetail",
    "ErrorResponse",
]
