"""
Video publishing logic.

Turns an accepted upload into a stored object plus a shareable page URL,
and turns an upload id back into a short-lived playback URL. Knows nothing
about HTTP or boto3; the object store is injected behind a Protocol.
"""

import logging
from datetime import datetime
from typing import Optional, Protocol

from .models import (
    IMMUTABLE_CACHE_CONTROL,
    PLAYBACK_URL_TTL_SECONDS,
    VIDEO_CONTENT_TYPE,
    PayloadTooLargeError,
    PublishedVideo,
    UnsupportedTypeError,
    VideoMetadata,
    new_upload_id,
    require_valid_upload_id,
    storage_key,
    viewer_url,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ObjectStore(Protocol):
    """
    The two object store operations this service needs.

    Implementations raise StoreError (see infrastructure.storage) on any
    backend failure. No retries are expected at this level.
    """

    async def put(
        self,
        key: str,
        data: bytes,
        content_type: str,
        cache_control: str,
        metadata: dict[str, str],
    ) -> None:
        """Write an object so it is durably readable under key."""
        ...

    async def sign(self, key: str, ttl_seconds: int) -> str:
        """Return a time-limited GET URL. Does not check the object exists."""
        ...


# ---------------------------------------------------------------------------
# Video Service
# ---------------------------------------------------------------------------

class VideoService:
    """
    Publishes uploaded videos and hands out playback URLs.

    Stateless apart from its collaborators, so one instance can serve
    any number of concurrent requests.
    """

    def __init__(
        self,
        store: ObjectStore,
        public_base_url: str,
        max_upload_bytes: int,
    ) -> None:
        self._store = store
        self._public_base_url = public_base_url
        self._max_upload_bytes = max_upload_bytes

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def check_content_type(self, content_type: Optional[str]) -> None:
        """Reject anything that is not declared as video/mp4."""
        if content_type != VIDEO_CONTENT_TYPE:
            raise UnsupportedTypeError(content_type)

    def check_size(self, size_bytes: int) -> None:
        """Reject bodies above the ceiling. Exactly at the ceiling is fine."""
        if size_bytes > self._max_upload_bytes:
            raise PayloadTooLargeError(self._max_upload_bytes)

    async def publish(
        self,
        data: bytes,
        filename: Optional[str],
        uploaded_at: Optional[datetime] = None,
    ) -> PublishedVideo:
        """
        Store a validated video under a new id.

        The write is all-or-nothing from our side: either the object exists
        afterwards or StoreError propagates and nothing needs cleaning up.
        """
        self.check_size(len(data))

        upload_id = new_upload_id()
        key = storage_key(upload_id)
        metadata = VideoMetadata.for_upload(filename, uploaded_at)

        await self._store.put(
            key,
            data,
            VIDEO_CONTENT_TYPE,
            IMMUTABLE_CACHE_CONTROL,
            metadata.to_object_metadata(),
        )

        published = PublishedVideo(
            upload_id=upload_id,
            page_url=viewer_url(self._public_base_url, upload_id),
        )

        logger.info(
            "Published video",
            extra={
                "upload_id": upload_id,
                "key": published.key,
                "size_bytes": len(data),
                "original_name": metadata.original_name,
            }
        )

        return published

    async def playback_url(self, upload_id: str) -> str:
        """Signed, 10-minute URL for streaming the video straight from storage."""
        require_valid_upload_id(upload_id)
        return await self._store.sign(storage_key(upload_id), PLAYBACK_URL_TTL_SECONDS)
