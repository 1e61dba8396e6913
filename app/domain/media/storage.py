"""
Cloudflare R2 object storage.

Objects are private; the browser uploads straight to R2 through a presigned
PUT and reads back through presigned GETs or the public bucket URL.
"""

import logging
import time
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ...config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_PUBLIC_URL, R2_SECRET_ACCESS_KEY

logger = logging.getLogger(__name__)

# Presigned URL expiration time (1 hour)
PRESIGNED_URL_EXPIRATION = 3600

MB = 1024 * 1024

IMAGE_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
}
DOCUMENT_TYPES = {"application/pdf": "pdf"}

MAX_IMAGE_SIZE = 10 * MB
MAX_DOCUMENT_SIZE = 25 * MB

FOLDERS = ("content", "thumbnails", "documents", "profile")


class UploadValidationError(ValueError):
    pass


def is_configured() -> bool:
    return bool(R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY and R2_BUCKET_NAME)


def get_r2_client():
    """Get configured boto3 client for Cloudflare R2"""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
        region_name="auto",
    )


def validate_upload(content_type: str, size_bytes: int, allow_documents: bool = True) -> str:
    """
    Check type and size of a file before it is accepted.

    Returns the canonical file extension for ``content_type``.
    """
    allowed = {**IMAGE_TYPES, **DOCUMENT_TYPES} if allow_documents else IMAGE_TYPES
    if content_type not in allowed:
        kinds = "PNG, JPEG, WebP, GIF" + (" and PDF" if allow_documents else "")
        raise UploadValidationError(f"Invalid file type. Only {kinds} files are allowed.")

    limit = MAX_DOCUMENT_SIZE if content_type in DOCUMENT_TYPES else MAX_IMAGE_SIZE
    if size_bytes <= 0:
        raise UploadValidationError("File is empty")
    if size_bytes > limit:
        raise UploadValidationError(
            f"File size exceeds {limit // MB}MB limit. Your file is {size_bytes / MB:.2f}MB."
        )
    return allowed[content_type]


def generate_object_key(user_id: int, folder: str, filename: str, extension: str) -> str:
    """
    Unique key for a user's object.

    Format: {folder}/{user_id}/{timestamp}-{safe_name}.{ext}
    """
    stem = filename.rsplit(".", 1)[0] if filename else "file"
    safe_name = "".join(c for c in stem if c.isalnum() or c in "_-")[:80] or "file"
    return f"{folder}/{user_id}/{int(time.time() * 1000)}-{safe_name}.{extension}"


def key_belongs_to(key: str, user_id: int) -> bool:
    parts = key.split("/")
    return len(parts) >= 3 and parts[1] == str(user_id) and ".." not in parts


def public_url(key: str) -> str:
    if R2_PUBLIC_URL:
        return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"
    return f"https://pub-{R2_ACCOUNT_ID}.r2.dev/{R2_BUCKET_NAME}/{key}"


def generate_presigned_upload(key: str, content_type: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> str:
    r2 = get_r2_client()
    url = r2.generate_presigned_url(
        "put_object",
        Params={"Bucket": R2_BUCKET_NAME, "Key": key, "ContentType": content_type},
        ExpiresIn=expiration,
    )
    logger.info(f"✅ Generated presigned upload URL for key: {key}")
    return url


def generate_presigned_url(key: str, expiration: int = PRESIGNED_URL_EXPIRATION) -> str:
    """Generate a presigned URL for reading a private object."""
    r2 = get_r2_client()
    params = {"Bucket": R2_BUCKET_NAME, "Key": key}
    if any(key.lower().endswith(ext) for ext in (".jpg", ".jpeg", ".png", ".webp", ".gif", ".pdf")):
        params["ResponseContentDisposition"] = "inline"
    return r2.generate_presigned_url("get_object", Params=params, ExpiresIn=expiration)


def put_object(key: str, body: bytes, content_type: str) -> None:
    get_r2_client().put_object(Bucket=R2_BUCKET_NAME, Key=key, Body=body, ContentType=content_type)
    logger.info(f"📤 Stored {key} ({len(body)} bytes)")


def head_object(key: str) -> Optional[dict]:
    """Object metadata, or None when the object does not exist."""
    try:
        response = get_r2_client().head_object(Bucket=R2_BUCKET_NAME, Key=key)
    except ClientError as e:
        if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
            return None
        raise
    return {
        "size": response.get("ContentLength"),
        "content_type": response.get("ContentType"),
        "last_modified": response.get("LastModified"),
    }


def delete_object(key: str) -> None:
    get_r2_client().delete_object(Bucket=R2_BUCKET_NAME, Key=key)
    logger.info(f"🗑️ Deleted {key}")
