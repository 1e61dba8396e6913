"""
Mux video hosting over its REST API.

Creators upload straight to Mux through a direct-upload URL; we only poll the
upload and its asset until a playback id exists.
"""

import logging
from typing import Optional

import httpx

from ...config import FRONTEND_URL, MUX_TOKEN_ID, MUX_TOKEN_SECRET

logger = logging.getLogger(__name__)

MUX_API_BASE = "https://api.mux.com"


class MuxError(Exception):
    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MuxService:
    def __init__(self, token_id: Optional[str] = None, token_secret: Optional[str] = None):
        self.token_id = token_id or MUX_TOKEN_ID
        self.token_secret = token_secret or MUX_TOKEN_SECRET

    def is_available(self) -> bool:
        return bool(self.token_id and self.token_secret)

    async def _request(self, method: str, path: str, json: Optional[dict] = None) -> dict:
        if not self.is_available():
            raise MuxError("Mux is not configured")
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.request(
                    method,
                    f"{MUX_API_BASE}{path}",
                    json=json,
                    auth=(self.token_id, self.token_secret),
                )
        except httpx.HTTPError as e:
            logger.error(f"❌ Mux request {method} {path} failed: {e}")
            raise MuxError(f"Mux request failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"❌ Mux API error {response.status_code}: {response.text[:300]}")
            raise MuxError(f"Mux API error: {response.status_code}", response.status_code)
        return response.json().get("data") or {}

    async def create_direct_upload(self) -> dict:
        data = await self._request(
            "POST",
            "/video/v1/uploads",
            json={
                "cors_origin": FRONTEND_URL,
                "new_asset_settings": {"playback_policy": ["public"], "mp4_support": "standard"},
            },
        )
        logger.info(f"🎬 Mux direct upload created: {data.get('id')}")
        return {"upload_id": data.get("id"), "upload_url": data.get("url")}

    async def get_upload(self, upload_id: str) -> dict:
        return await self._request("GET", f"/video/v1/uploads/{upload_id}")

    async def get_asset(self, asset_id: str) -> dict:
        return await self._request("GET", f"/video/v1/assets/{asset_id}")

    async def upload_status(self, upload_id: str) -> dict:
        """Combined upload + asset state; ``ready`` once a public playback id exists."""
        upload = await self.get_upload(upload_id)
        asset_id = upload.get("asset_id")
        asset = await self.get_asset(asset_id) if asset_id else {}

        playback_id = None
        if asset.get("status") == "ready" and asset.get("playback_ids"):
            playback_id = asset["playback_ids"][0].get("id")

        error = (upload.get("error") or {}).get("message")
        if not error and asset.get("errors"):
            error = (asset["errors"].get("messages") or [None])[0]

        return {
            "upload_id": upload_id,
            "upload_status": upload.get("status"),
            "asset_id": asset_id,
            "asset_status": asset.get("status"),
            "playback_id": playback_id,
            "playback_url": f"https://stream.mux.com/{playback_id}.m3u8" if playback_id else None,
            "duration": asset.get("duration"),
            "ready": playback_id is not None,
            "error": error,
        }


mux_service = MuxService()
