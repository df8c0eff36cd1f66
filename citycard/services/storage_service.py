"""
Blob storage for generated weather cards.

Two backends share the head/put contract:
- S3BlobStore: any S3-compatible bucket (Cloudflare R2, MinIO, AWS) via boto3
- CloudinaryBlobStore: Cloudinary image uploads

Both SDKs are blocking, so calls run in a worker thread.
"""

import asyncio
import io
import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError
import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader

from citycard.config import settings
from citycard.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class BlobStore:
    """Interface for card storage."""

    # Prefix under which stored keys are publicly served, when the backend has one
    public_base_url: Optional[str] = None

    async def head(self, key: str) -> bool:
        """Return True when an object exists at `key`."""
        raise NotImplementedError

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        """Write `data` at `key`, replacing any existing object."""
        raise NotImplementedError


class S3BlobStore(BlobStore):
    """S3-compatible bucket storage."""

    def __init__(self, client: Any, bucket: str, public_base_url: Optional[str] = None):
        self.client = client
        self.bucket = bucket
        self.public_base_url = public_base_url

    @classmethod
    def from_settings(cls) -> "S3BlobStore":
        if not settings.s3_bucket:
            raise UpstreamUnavailable("S3_BUCKET is not configured")

        client = boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url or None,
            aws_access_key_id=settings.s3_access_key or None,
            aws_secret_access_key=settings.s3_secret_key or None,
            region_name=settings.s3_region or None,
        )
        return cls(client, settings.s3_bucket, public_base_url=settings.s3_public_url or None)

    async def head(self, key: str) -> bool:
        try:
            await asyncio.to_thread(self.client.head_object, Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return False
            raise
        return True

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type,
        )
        logger.info(f"Stored s3://{self.bucket}/{key} ({len(data)} bytes, {content_type})")


class CloudinaryBlobStore(BlobStore):
    """
    Cloudinary storage.

    The object key without its extension is the public id, so
    2026-10/19/v2/paris.webp is delivered from .../image/upload/<folder>/2026-10/19/v2/paris.webp
    """

    def __init__(self, folder: Optional[str] = None, cloud_name: Optional[str] = None):
        self.folder = (folder or "").strip("/")
        if cloud_name:
            base = f"https://res.cloudinary.com/{cloud_name}/image/upload"
            self.public_base_url = f"{base}/{self.folder}" if self.folder else base

    @classmethod
    def from_settings(cls) -> "CloudinaryBlobStore":
        if not settings.cloudinary_cloud_name:
            raise UpstreamUnavailable(
                "Cloudinary settings missing: set CLOUDINARY_CLOUD_NAME, "
                "CLOUDINARY_API_KEY, CLOUDINARY_API_SECRET"
            )

        cloudinary.config(
            cloud_name=settings.cloudinary_cloud_name,
            api_key=settings.cloudinary_api_key,
            api_secret=settings.cloudinary_api_secret,
            secure=True
        )
        return cls(settings.cloudinary_folder, cloud_name=settings.cloudinary_cloud_name)

    def public_id(self, key: str) -> str:
        stem = key.rsplit(".", 1)[0]
        return f"{self.folder}/{stem}" if self.folder else stem

    async def head(self, key: str) -> bool:
        try:
            await asyncio.to_thread(
                cloudinary.api.resource,
                self.public_id(key),
                resource_type="image",
            )
        except cloudinary.exceptions.NotFound:
            return False
        return True

    async def put(self, key: str, data: bytes, content_type: str) -> None:
        response = await asyncio.to_thread(
            cloudinary.uploader.upload,
            io.BytesIO(data),
            public_id=self.public_id(key),
            resource_type="image",
            format="webp",
            overwrite=True,
        )
        logger.info(f"Stored cloudinary {response.get('public_id')} ({len(data)} bytes, {content_type})")


def get_blob_store() -> BlobStore:
    """Build the configured blob store."""
    if settings.storage_backend == "cloudinary":
        return CloudinaryBlobStore.from_settings()
    return S3BlobStore.from_settings()
