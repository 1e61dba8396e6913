"""Upload router - R2 files, Mux videos and media job status"""

from fastapi import APIRouter, Depends, File, Query, UploadFile
from sqlalchemy.orm import Session

from ...auth import get_current_creator, get_current_user
from ...database import get_db
from ...models import Creator, User
from .schemas import (
    CompleteUploadRequest,
    MediaJobResponse,
    PresignUploadRequest,
    PresignUploadResponse,
    ProfileImageResponse,
    QueueStats,
    VideoStatusResponse,
    VideoUploadRequest,
    VideoUploadResponse,
)
from .service import MediaService

router = APIRouter(prefix="/uploads", tags=["Uploads"])


def get_media_service(db: Session = Depends(get_db)) -> MediaService:
    return MediaService(db)


# ============================================================================
# FILES (R2)
# ============================================================================


@router.post("/presign", response_model=PresignUploadResponse)
async def presign_upload(
    data: PresignUploadRequest,
    user: User = Depends(get_current_user),
    service: MediaService = Depends(get_media_service),
):
    """Presigned PUT for uploading an image or PDF straight to storage"""
    return service.presign_upload(user, data)


@router.post("/complete", response_model=MediaJobResponse, status_code=202)
async def complete_upload(
    data: CompleteUploadRequest,
    creator: Creator = Depends(get_current_creator),
    service: MediaService = Depends(get_media_service),
):
    return await service.complete_upload(creator, data)


@router.post("/profile/{kind}", response_model=ProfileImageResponse)
async def upload_profile_image(
    kind: str,
    file: UploadFile = File(...),
    creator: Creator = Depends(get_current_creator),
    service: MediaService = Depends(get_media_service),
):
    """Upload a creator avatar or banner"""
    return await service.upload_profile_image(creator, kind, file)


@router.get("/presigned")
async def get_presigned_url(
    key: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    service: MediaService = Depends(get_media_service),
):
    return service.presigned_url(user, key)


@router.delete("")
async def delete_file(
    key: str = Query(..., min_length=1),
    user: User = Depends(get_current_user),
    service: MediaService = Depends(get_media_service),
):
    return service.delete_file(user, key)


# ============================================================================
# VIDEO (MUX)
# ============================================================================


@router.post("/video", response_model=VideoUploadResponse, status_code=201)
async def create_video_upload(
    data: VideoUploadRequest,
    creator: Creator = Depends(get_current_creator),
    service: MediaService = Depends(get_media_service),
):
    return await service.create_video_upload(creator, data.content_id)


@router.get("/video/{upload_id}/status", response_model=VideoStatusResponse)
async def video_status(
    upload_id: str,
    creator: Creator = Depends(get_current_creator),
    service: MediaService = Depends(get_media_service),
):
    return await service.video_status(creator, upload_id)


# ============================================================================
# JOBS
# ============================================================================


@router.get("/jobs/stats", response_model=QueueStats)
async def queue_stats(user: User = Depends(get_current_user), service: MediaService = Depends(get_media_service)):
    return service.queue_stats(user)


@router.get("/jobs/{job_id}", response_model=MediaJobResponse)
async def job_status(
    job_id: str,
    user: User = Depends(get_current_user),
    service: MediaService = Depends(get_media_service),
):
    return service.get_job(user, job_id)
