"""
Object storage client for uploaded videos.

Works against any S3-compatible service (Cloudflare R2, Backblaze B2,
MinIO, AWS S3) through boto3, with a mock mode for local development.
Path-style addressing is on by default because several non-AWS providers
don't support virtual-hosted-style bucket URLs.

Mock mode stores objects in memory, enabling the full upload/playback
flow without provisioning a bucket.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ...core.videos.service import ObjectStore

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when an object store operation fails. Carries the backend's message."""
    pass


@dataclass
class StorageConfig:
    """
    Configuration for S3-compatible storage.

    Built once at startup from settings and never changed afterwards.
    """
    endpoint_url: str
    access_key_id: str
    secret_access_key: str
    bucket_name: str
    region: str = "auto"  # R2 uses 'auto' for region
    force_path_style: bool = True


class S3ObjectStore:
    """
    S3-compatible object store backed by boto3.

    boto3 is synchronous, so each call is pushed to a worker thread with
    asyncio.to_thread. The boto3 client itself is thread-safe and shared
    by all requests.
    """

    def __init__(self, config: StorageConfig) -> None:
        self._config = config

        # v4 signatures are required by R2 and accepted everywhere else
        boto_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path" if config.force_path_style else "auto"},
        )

        self._s3_client = boto3.client(
            "s3",
            endpoint_url=config.endpoint_url,
            aws_access_key_id=config.access_key_id,
            aws_secret_access_key=config.secret_access_key,
            region_name=config.region,
            config=boto_config,
        )

        logger.info(
            "Initialized S3 object store",
            extra={
                "bucket": config.bucket_name,
                "endpoint": config.endpoint_url,
                "path_style": config.force_path_style,
            }
        )

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str,
        metadata: dict[str, str],
    ) -> None:
        """Upload an object in a single request."""
        try:
            await asyncio.to_thread(
                self._s3_client.put_object,
                Bucket=self._config.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl=cache_control,
                Metadata=metadata,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to upload object",
                extra={"key": key, "error": str(e)}
            )
            raise StoreError(str(e)) from e

        logger.debug(
            "Uploaded object",
            extra={"key": key, "size_bytes": len(data)}
        )

    async def sign(self, key: str, ttl_seconds: int) -> str:
        """
        Generate a presigned GET URL.

        Signing is a local computation; it doesn't check that the key
        exists. A URL for a missing object simply 404s when fetched.
        """
        try:
            url = await asyncio.to_thread(
                self._s3_client.generate_presigned_url,
                "get_object",
                Params={
                    "Bucket": self._config.bucket_name,
                    "Key": key,
                },
                ExpiresIn=ttl_seconds,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to generate presigned URL",
                extra={"key": key, "error": str(e)}
            )
            raise StoreError(str(e)) from e

        logger.debug("Signed object URL", extra={"key": key, "ttl_seconds": ttl_seconds})

        return url


# ---------------------------------------------------------------------------
# Mock Storage for Local Development
# ---------------------------------------------------------------------------

@dataclass
class StoredObject:
    """An object held by the mock store."""
    data: bytes
    content_type: str
    cache_control: str
    metadata: dict[str, str]


class MockObjectStore:
    """
    In-memory object store for local development and tests.

    Unlike a real bucket, signing an unknown key fails. That lets mock mode
    exercise the not-found playback path, which with real storage only
    shows up when the browser fetches the signed URL.

    Not suitable for production: the "URLs" are mock URIs and everything
    is lost on restart.
    """

    def __init__(self) -> None:
        # {key: StoredObject}
        self._objects: dict[str, StoredObject] = {}
        logger.info("Initialized mock object store (in-memory)")

    @property
    def objects(self) -> dict[str, StoredObject]:
        return self._objects

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str,
        metadata: dict[str, str],
    ) -> None:
        """Store object in memory."""
        self._objects[key] = StoredObject(
            data=data,
            content_type=content_type,
            cache_control=cache_control,
            metadata=dict(metadata),
        )

        logger.debug(
            "Stored object in mock store",
            extra={"key": key, "size_bytes": len(data)}
        )

    async def sign(self, key: str, ttl_seconds: int) -> str:
        """Return a mock URL, or fail if nothing was stored under key."""
        if key not in self._objects:
            raise StoreError(f"NoSuchKey: {key}")

        return f"mock://storage/{key}?expires_in={ttl_seconds}"


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------

def create_object_store(
    config: Optional[StorageConfig] = None,
    mock_mode: bool = False,
) -> ObjectStore:
    """
    Create object store based on configuration.

    Args:
        config: Storage configuration (required if not mock_mode)
        mock_mode: If True, return the in-memory store

    Returns:
        ObjectStore implementation (S3 or Mock)
    """
    if mock_mode:
        return MockObjectStore()

    if config is None:
        raise ValueError("config is required when not in mock mode")

    return S3ObjectStore(config)
