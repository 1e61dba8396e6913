"""Upload validation, R2 key ownership, Mux video processing and the media job queue."""

from unittest.mock import AsyncMock

import pytest

from app.domain.media import storage
from app.domain.media.mux_service import MuxError, mux_service
from app.domain.media.service import MediaNotReady, process_media_job
from app.models import Content, MediaJob
from tests.conftest import make_user


def video_status(ready=False, error=None, playback_id=None):
    return {
        "upload_id": "up_1",
        "upload_status": "asset_created",
        "asset_id": "as_1",
        "asset_status": "ready" if ready else "preparing",
        "playback_id": playback_id,
        "playback_url": f"https://stream.mux.com/{playback_id}.m3u8" if playback_id else None,
        "duration": 42.0 if ready else None,
        "ready": ready,
        "error": error,
    }


@pytest.fixture
def r2(monkeypatch):
    """Pretend R2 is configured; object lookups and writes are recorded, not sent."""
    objects = {}
    monkeypatch.setattr(storage, "is_configured", lambda: True)
    monkeypatch.setattr(storage, "head_object", lambda key: {"ContentLength": 1} if key in objects else None)
    monkeypatch.setattr(storage, "put_object", lambda key, body, content_type: objects.__setitem__(key, body))
    monkeypatch.setattr(storage, "delete_object", lambda key: objects.pop(key, None))
    monkeypatch.setattr(storage, "generate_presigned_upload", lambda key, content_type: f"https://r2.test/{key}?sig=1")
    return objects


def add_content(db, creator, content_type="image"):
    content = Content(creator_id=creator.id, title="Look", type=content_type)
    db.add(content)
    db.commit()
    db.refresh(content)
    return content


def add_job(db, creator, job_type="video", file_key="up_1", content=None):
    job = MediaJob(type=job_type, file_key=file_key, user_id=creator.user_id, content_id=content.id if content else None)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


class TestValidation:
    def test_image_extension(self):
        assert storage.validate_upload("image/jpeg", 1024) == "jpg"

    def test_pdf_allowed_only_for_documents(self):
        assert storage.validate_upload("application/pdf", 1024) == "pdf"
        with pytest.raises(storage.UploadValidationError):
            storage.validate_upload("application/pdf", 1024, allow_documents=False)

    def test_rejects_unknown_type(self):
        with pytest.raises(storage.UploadValidationError, match="Invalid file type"):
            storage.validate_upload("video/mp4", 1024)

    def test_size_limits(self):
        storage.validate_upload("application/pdf", 20 * storage.MB)
        with pytest.raises(storage.UploadValidationError, match="10MB"):
            storage.validate_upload("image/png", 11 * storage.MB)
        with pytest.raises(storage.UploadValidationError, match="empty"):
            storage.validate_upload("image/png", 0)

    def test_object_key_is_scoped_to_user(self):
        key = storage.generate_object_key(7, "content", "../My Look!.png", "png")
        assert key.startswith("content/7/")
        assert key.endswith("-MyLook.png")
        assert storage.key_belongs_to(key, 7)
        assert not storage.key_belongs_to(key, 8)

    def test_traversal_is_not_owned(self):
        assert not storage.key_belongs_to("content/7/../8/x.png", 7)
        assert not storage.key_belongs_to("7.png", 7)


class TestUploads:
    async def test_presign(self, client, creator_user, r2):
        resp = await client.post(
            "/uploads/presign", json={"filename": "look.png", "content_type": "image/png", "size": 2048}
        )
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["key"].startswith(f"content/{creator_user.id}/")
        assert body["upload_url"].startswith("https://r2.test/")

    async def test_presign_rejects_large_image(self, client, creator_user, r2):
        resp = await client.post(
            "/uploads/presign",
            json={"filename": "huge.png", "content_type": "image/png", "size": 50 * storage.MB},
        )
        assert resp.status_code == 400

    async def test_storage_not_configured(self, client, creator_user):
        resp = await client.post(
            "/uploads/presign", json={"filename": "look.png", "content_type": "image/png", "size": 2048}
        )
        assert resp.status_code == 503

    async def test_complete_attaches_media(self, client, db, creator, creator_user, r2):
        content = add_content(db, creator)
        key = f"content/{creator.user_id}/1700000000000-look.png"
        r2[key] = b"png"

        resp = await client.post("/uploads/complete", json={"key": key, "content_id": content.id})
        assert resp.status_code == 202
        assert resp.json()["status"] == "completed"

        db.refresh(content)
        assert content.media_key == key
        assert content.processing_status == "completed"

    async def test_complete_missing_object_fails_job(self, client, db, creator, creator_user, r2):
        content = add_content(db, creator)
        key = f"content/{creator.user_id}/1700000000000-ghost.png"
        resp = await client.post("/uploads/complete", json={"key": key, "content_id": content.id})
        assert resp.json()["status"] == "failed"
        db.refresh(content)
        assert content.processing_status == "failed"

    async def test_complete_foreign_key_forbidden(self, client, db, creator, creator_user, r2):
        resp = await client.post("/uploads/complete", json={"key": "content/999/1-x.png"})
        assert resp.status_code == 403

    async def test_profile_image(self, client, db, creator, creator_user, r2):
        resp = await client.post(
            "/uploads/profile/avatar", files={"file": ("me.png", b"\x89PNG", "image/png")}
        )
        assert resp.status_code == 200, resp.text
        db.refresh(creator)
        assert creator.avatar_url.endswith(resp.json()["key"])
        assert resp.json()["key"] in r2

    async def test_profile_image_rejects_pdf(self, client, creator_user, r2):
        resp = await client.post(
            "/uploads/profile/banner", files={"file": ("cv.pdf", b"%PDF", "application/pdf")}
        )
        assert resp.status_code == 400

    async def test_delete_requires_ownership(self, client, creator_user, r2):
        resp = await client.delete("/uploads", params={"key": "content/999/1-x.png"})
        assert resp.status_code == 403


class TestVideoJobs:
    async def test_not_ready_goes_back_to_pending(self, db, creator, monkeypatch):
        monkeypatch.setattr(mux_service, "upload_status", AsyncMock(return_value=video_status()))
        job = add_job(db, creator)

        with pytest.raises(MediaNotReady):
            await process_media_job(db, job.job_id)
        db.refresh(job)
        assert job.status == "pending"

    async def test_ready_sets_playback_id(self, db, creator, monkeypatch):
        content = add_content(db, creator, content_type="video")
        monkeypatch.setattr(
            mux_service, "upload_status", AsyncMock(return_value=video_status(ready=True, playback_id="pb_9"))
        )
        job = add_job(db, creator, content=content)

        await process_media_job(db, job.job_id)
        db.refresh(job)
        db.refresh(content)
        assert job.status == "completed"
        assert content.video_id == "pb_9"
        assert content.processing_status == "completed"

    async def test_mux_error_fails_job(self, db, creator, monkeypatch):
        monkeypatch.setattr(mux_service, "upload_status", AsyncMock(return_value=video_status(error="Invalid input")))
        job = add_job(db, creator)

        with pytest.raises(MuxError):
            await process_media_job(db, job.job_id)
        db.refresh(job)
        assert (job.status, job.error) == ("failed", "Invalid input")

    async def test_mux_outage_is_retried(self, db, creator, monkeypatch):
        monkeypatch.setattr(mux_service, "upload_status", AsyncMock(side_effect=MuxError("timeout", 503)))
        job = add_job(db, creator)

        with pytest.raises(MediaNotReady):
            await process_media_job(db, job.job_id)
        db.refresh(job)
        assert job.status == "pending"

    async def test_finished_job_is_not_rerun(self, db, creator, monkeypatch):
        upload_status = AsyncMock()
        monkeypatch.setattr(mux_service, "upload_status", upload_status)
        job = add_job(db, creator)
        job.status = "completed"
        db.commit()

        await process_media_job(db, job.job_id)
        upload_status.assert_not_awaited()

    async def test_create_video_upload(self, client, db, creator, creator_user, monkeypatch):
        content = add_content(db, creator, content_type="video")
        monkeypatch.setattr(mux_service, "is_available", lambda: True)
        monkeypatch.setattr(
            mux_service,
            "create_direct_upload",
            AsyncMock(return_value={"upload_id": "up_77", "upload_url": "https://storage.mux.com/up_77"}),
        )

        resp = await client.post("/uploads/video", json={"content_id": content.id})
        assert resp.status_code == 201
        body = resp.json()
        assert body["upload_id"] == "up_77"

        job = db.query(MediaJob).filter(MediaJob.job_id == body["job_id"]).one()
        assert (job.type, job.file_key, job.status) == ("video", "up_77", "pending")

    async def test_status_endpoint_completes_ready_job(self, client, db, creator, creator_user, monkeypatch):
        content = add_content(db, creator, content_type="video")
        add_job(db, creator, file_key="up_1", content=content)
        monkeypatch.setattr(
            mux_service, "upload_status", AsyncMock(return_value=video_status(ready=True, playback_id="pb_1"))
        )

        resp = await client.get("/uploads/video/up_1/status")
        assert resp.status_code == 200
        assert resp.json()["playback_id"] == "pb_1"
        db.refresh(content)
        assert content.video_id == "pb_1"

    async def test_queue_stats(self, client, db, creator, creator_user):
        add_job(db, creator, file_key="a")
        done = add_job(db, creator, file_key="b")
        done.status = "completed"
        db.commit()

        stats = (await client.get("/uploads/jobs/stats")).json()
        assert stats == {"waiting": 1, "active": 0, "completed": 1, "failed": 0, "total": 2}

    async def test_job_lookup_is_scoped_to_owner(self, client, db, creator, login):
        job = add_job(db, creator)
        login(make_user(db, email="other@example.com"))
        assert (await client.get(f"/uploads/jobs/{job.job_id}")).status_code == 404
