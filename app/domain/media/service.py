"""Media service - R2 uploads, Mux videos and the media processing queue"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, UploadFile
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Content, Creator, MediaJob, User
from ...shared.queue import enqueue_job
from . import storage
from .mux_service import MuxError, mux_service
from .schemas import CompleteUploadRequest, PresignUploadRequest

logger = logging.getLogger(__name__)

MEDIA_TASK = "process_media_task"

PROFILE_IMAGE_FIELDS = {"avatar": "avatar_url", "banner": "banner_url"}


class MediaNotReady(Exception):
    """The video is still being transcoded; try again later."""


async def process_media_job(db: Session, job_id: str) -> MediaJob:
    """
    Finish one media job.

    Images and documents are confirmed present in R2 and attached to their
    content. Videos wait for Mux to produce a playback id; until then the job
    goes back to ``pending`` and ``MediaNotReady`` is raised.
    """
    job = db.query(MediaJob).filter(MediaJob.job_id == job_id).first()
    if not job:
        raise LookupError(f"Media job {job_id} not found")
    if job.status in ("completed", "failed"):
        return job

    job.status = "processing"
    db.commit()
    content = db.query(Content).filter(Content.id == job.content_id).first() if job.content_id else None

    try:
        if job.type == "video":
            try:
                status = await mux_service.upload_status(job.file_key)
            except MuxError as e:
                if e.status_code and e.status_code < 500:
                    raise
                job.status = "pending"
                db.commit()
                raise MediaNotReady(f"Mux unreachable for {job.file_key}: {e.message}") from e
            if status["error"]:
                raise MuxError(status["error"])
            if not status["ready"]:
                job.status = "pending"
                db.commit()
                raise MediaNotReady(f"Video {job.file_key} is {status['asset_status'] or status['upload_status']}")
            if content:
                content.video_id = status["playback_id"]
        else:
            if storage.head_object(job.file_key) is None:
                raise FileNotFoundError(f"{job.file_key} was never uploaded")
            if content:
                content.media_key = job.file_key
    except MediaNotReady:
        raise
    except Exception as e:
        db.rollback()
        job.status = "failed"
        job.error = str(e)[:2000]
        job.completed_at = datetime.utcnow()
        if content:
            content.processing_status = "failed"
        db.commit()
        logger.error(f"❌ Media job {job_id} failed: {e}")
        raise

    job.status = "completed"
    job.completed_at = datetime.utcnow()
    if content:
        content.processing_status = "completed"
    db.commit()
    logger.info(f"✅ Media job {job_id} completed ({job.type})")
    return job


class MediaService:
    def __init__(self, db: Session):
        self.db = db

    def _require_storage(self) -> None:
        if not storage.is_configured():
            raise HTTPException(status_code=503, detail="File storage is not configured")

    def _owned_content(self, creator: Creator, content_id: Optional[int]) -> Optional[Content]:
        if content_id is None:
            return None
        content = (
            self.db.query(Content).filter(Content.id == content_id, Content.creator_id == creator.id).first()
        )
        if not content:
            raise HTTPException(status_code=404, detail="Content not found")
        return content

    async def _queue(self, job: MediaJob) -> MediaJob:
        if not await enqueue_job(MEDIA_TASK, job.job_id, job_id=f"media:{job.job_id}"):
            try:
                await process_media_job(self.db, job.job_id)
            except MediaNotReady as e:
                logger.info(f"⏳ {e}; status endpoint will finish the job")
            except Exception as e:
                logger.error(f"❌ Inline media processing failed for {job.job_id}: {e}")
            self.db.refresh(job)
        return job

    # ========================================================================
    # R2
    # ========================================================================

    def presign_upload(self, user: User, data: PresignUploadRequest) -> dict:
        self._require_storage()
        try:
            extension = storage.validate_upload(data.content_type, data.size)
        except storage.UploadValidationError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        key = storage.generate_object_key(user.id, data.folder, data.filename, extension)
        return {
            "upload_url": storage.generate_presigned_upload(key, data.content_type),
            "key": key,
            "public_url": storage.public_url(key),
            "expires_in": storage.PRESIGNED_URL_EXPIRATION,
        }

    async def complete_upload(self, creator: Creator, data: CompleteUploadRequest) -> MediaJob:
        """Register a finished direct upload and queue it for processing."""
        self._require_storage()
        if not storage.key_belongs_to(data.key, creator.user_id):
            raise HTTPException(status_code=403, detail="You do not own this file")
        content = self._owned_content(creator, data.content_id)

        job = MediaJob(type="image", file_key=data.key, user_id=creator.user_id, content_id=data.content_id)
        if content:
            content.processing_status = "processing"
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        return await self._queue(job)

    async def upload_profile_image(self, creator: Creator, kind: str, file: UploadFile) -> dict:
        if kind not in PROFILE_IMAGE_FIELDS:
            raise HTTPException(status_code=400, detail="Use 'avatar' or 'banner'")
        self._require_storage()

        contents = await file.read()
        try:
            extension = storage.validate_upload(file.content_type, len(contents), allow_documents=False)
        except storage.UploadValidationError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e

        key = storage.generate_object_key(creator.user_id, "profile", f"{kind}-{file.filename or ''}", extension)
        try:
            storage.put_object(key, contents, file.content_type)
        except Exception as e:
            logger.error(f"❌ Upload failed: {e}")
            raise HTTPException(status_code=500, detail="Upload failed") from e

        url = storage.public_url(key)
        setattr(creator, PROFILE_IMAGE_FIELDS[kind], url)
        self.db.commit()
        logger.info(f"🖼️ Creator {creator.id} {kind} updated")
        return {"url": url, "key": key}

    def presigned_url(self, user: User, key: str) -> dict:
        self._require_storage()
        if not storage.key_belongs_to(key, user.id):
            raise HTTPException(status_code=403, detail="You do not own this file")
        return {"url": storage.generate_presigned_url(key)}

    def delete_file(self, user: User, key: str) -> dict:
        self._require_storage()
        if not storage.key_belongs_to(key, user.id):
            raise HTTPException(status_code=403, detail="You do not own this file")
        storage.delete_object(key)
        return {"success": True}

    # ========================================================================
    # MUX
    # ========================================================================

    async def create_video_upload(self, creator: Creator, content_id: Optional[int] = None) -> dict:
        if not mux_service.is_available():
            raise HTTPException(status_code=503, detail="Video uploads are not configured")
        content = self._owned_content(creator, content_id)

        try:
            upload = await mux_service.create_direct_upload()
        except MuxError as e:
            raise HTTPException(status_code=502, detail="Failed to create video upload URL") from e

        job = MediaJob(type="video", file_key=upload["upload_id"], user_id=creator.user_id, content_id=content_id)
        if content:
            content.processing_status = "pending"
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        await enqueue_job(MEDIA_TASK, job.job_id, job_id=f"media:{job.job_id}")
        return {**upload, "job_id": job.job_id}

    async def video_status(self, creator: Creator, upload_id: str) -> dict:
        job = (
            self.db.query(MediaJob)
            .filter(MediaJob.file_key == upload_id, MediaJob.user_id == creator.user_id, MediaJob.type == "video")
            .first()
        )
        if not job:
            raise HTTPException(status_code=404, detail="Upload not found")

        try:
            status = await mux_service.upload_status(upload_id)
        except MuxError as e:
            raise HTTPException(status_code=502, detail="Failed to check upload status") from e

        if status["ready"] and job.status not in ("completed", "failed"):
            await process_media_job(self.db, job.job_id)
        return status

    # ========================================================================
    # JOBS
    # ========================================================================

    def get_job(self, user: User, job_id: str) -> MediaJob:
        job = self.db.query(MediaJob).filter(MediaJob.job_id == job_id, MediaJob.user_id == user.id).first()
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        return job

    def queue_stats(self, user: User) -> dict:
        counts = dict(
            self.db.query(MediaJob.status, func.count(MediaJob.id))
            .filter(MediaJob.user_id == user.id)
            .group_by(MediaJob.status)
            .all()
        )
        return {
            "waiting": counts.get("pending", 0),
            "active": counts.get("processing", 0),
            "completed": counts.get("completed", 0),
            "failed": counts.get("failed", 0),
            "total": sum(counts.values()),
        }
