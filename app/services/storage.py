from __future__ import annotations

import logging
from functools import lru_cache

import boto3
from botocore.client import Config
from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.errors import LimitExceeded, ValidationError

logger = logging.getLogger(__name__)

AVATAR_CONTENT_TYPES = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}
_EXTENSION_CONTENT_TYPES = {ext: ct for ct, ext in AVATAR_CONTENT_TYPES.items()}

_MISSING_CODES = {"404", "NoSuchKey", "NoSuchBucket", "NotFound"}


def avatar_key(handle: str, content_type: str) -> str:
    ext = AVATAR_CONTENT_TYPES.get(content_type)
    if ext is None:
        raise ValidationError("Avatar must be a PNG, JPEG or WebP image")
    return f"{handle}.{ext}"


def check_avatar_upload(data: bytes, content_type: str | None, *, max_bytes: int | None = None) -> str:
    """Validate an avatar upload and return its normalized content type."""
    limit = max_bytes if max_bytes is not None else settings.avatar_max_bytes
    if not data:
        raise ValidationError("Avatar file is empty")
    if len(data) > limit:
        raise LimitExceeded(f"Avatar must be {limit} bytes or fewer", limit=limit)
    normalized = (content_type or "").split(";", 1)[0].strip().lower()
    if normalized not in AVATAR_CONTENT_TYPES:
        raise ValidationError("Avatar must be a PNG, JPEG or WebP image")
    return normalized


class AvatarStorage:
    """S3-compatible bucket (MinIO in development) holding user avatars."""

    def __init__(self, client=None, bucket: str | None = None):
        self.bucket = bucket or settings.s3_bucket
        self.s3 = client or boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
            config=Config(s3={"addressing_style": "path"}),
        )
        self._bucket_ready = False

    def ensure_bucket(self) -> None:
        if self._bucket_ready:
            return
        try:
            self.s3.head_bucket(Bucket=self.bucket)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") not in _MISSING_CODES:
                raise
            logger.info("creating bucket %s", self.bucket)
            self.s3.create_bucket(Bucket=self.bucket)
        self._bucket_ready = True

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self.ensure_bucket()
        self.s3.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        logger.info("uploaded object %s to bucket %s", key, self.bucket)

    def get(self, key: str) -> bytes | None:
        try:
            obj = self.s3.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_CODES:
                return None
            raise
        return obj["Body"].read()

    def delete(self, key: str) -> None:
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            logger.warning("failed to delete object %s: %s", key, e)

    def save_avatar(self, handle: str, data: bytes, content_type: str) -> str:
        key = avatar_key(handle, content_type)
        # one avatar per user: drop copies stored under another format
        for ext in AVATAR_CONTENT_TYPES.values():
            other = f"{handle}.{ext}"
            if other != key:
                self.delete(other)
        self.put(key, data, content_type)
        return key

    def load_avatar(self, handle: str) -> tuple[bytes, str] | None:
        for ext, content_type in _EXTENSION_CONTENT_TYPES.items():
            data = self.get(f"{handle}.{ext}")
            if data is not None:
                return data, content_type
        return None


@lru_cache(maxsize=1)
def get_avatar_storage() -> AvatarStorage:
    return AvatarStorage()
