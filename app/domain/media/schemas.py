"""Media upload schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class PresignUploadRequest(BaseModel):
    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str
    size: int = Field(..., gt=0)  # bytes
    folder: Literal["content", "thumbnails", "documents"] = "content"


class PresignUploadResponse(BaseModel):
    upload_url: str
    key: str
    public_url: str
    expires_in: int


class CompleteUploadRequest(BaseModel):
    key: str = Field(..., min_length=1)
    content_id: Optional[int] = None


class ProfileImageResponse(BaseModel):
    url: str
    key: str


class VideoUploadRequest(BaseModel):
    content_id: Optional[int] = None


class VideoUploadResponse(BaseModel):
    upload_id: str
    upload_url: str
    job_id: str


class VideoStatusResponse(BaseModel):
    upload_id: str
    upload_status: Optional[str] = None
    asset_id: Optional[str] = None
    asset_status: Optional[str] = None
    playback_id: Optional[str] = None
    playback_url: Optional[str] = None
    duration: Optional[float] = None
    ready: bool = False
    error: Optional[str] = None


class MediaJobResponse(BaseModel):
    job_id: str
    type: str
    file_key: str
    content_id: Optional[int] = None
    status: str
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class QueueStats(BaseModel):
    waiting: int
    active: int
    completed: int
    failed: int
    total: int
