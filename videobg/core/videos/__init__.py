"""
Background video uploads.

Contains the identifier scheme, domain errors, and the publishing service.
"""

from .models import (
    IMMUTABLE_CACHE_CONTROL,
    PLAYBACK_URL_TTL_SECONDS,
    VIDEO_CONTENT_TYPE,
    InvalidIdentifierError,
    MissingFileError,
    PayloadTooLargeError,
    PublishedVideo,
    UnsupportedTypeError,
    ValidationError,
    VideoMetadata,
    is_valid_upload_id,
    new_upload_id,
    raw_path,
    require_valid_upload_id,
    storage_key,
    viewer_url,
)
from .service import ObjectStore, VideoService

__all__ = [
    "IMMUTABLE_CACHE_CONTROL",
    "PLAYBACK_URL_TTL_SECONDS",
    "VIDEO_CONTENT_TYPE",
    "InvalidIdentifierError",
    "MissingFileError",
    "PayloadTooLargeError",
    "PublishedVideo",
    "UnsupportedTypeError",
    "ValidationError",
    "VideoMetadata",
    "is_valid_upload_id",
    "new_upload_id",
    "raw_path",
    "require_valid_upload_id",
    "storage_key",
    "viewer_url",
    "ObjectStore",
    "VideoService",
]
