"""
Domain models for uploaded background videos.

An upload is identified by a random UUID. That identifier is both the
public reference (it appears in page URLs) and the root of the storage key,
so nothing else needs to be persisted to find a video again.

No framework or storage imports here. The HTTP layer and the object store
both depend on these definitions, never the other way round.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote
from uuid import uuid4

VIDEO_CONTENT_TYPE = "video/mp4"
VIDEO_EXTENSION = ".mp4"

# Objects are write-once, so browsers and CDNs may cache them forever
IMMUTABLE_CACHE_CONTROL = "public, max-age=31536000, immutable"

PLAYBACK_URL_TTL_SECONDS = 600

MAX_ORIGINAL_NAME_LENGTH = 200
DEFAULT_ORIGINAL_NAME = "video.mp4"

_UPLOAD_ID_PATTERN = re.compile(r"^[0-9a-fA-F-]{20,}$")

# Printable ASCII minus '%', which stays escaped so the encoding is reversible
_METADATA_SAFE_CHARS = "".join(chr(c) for c in range(0x20, 0x7F) if chr(c) != "%")


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ValidationError(Exception):
    """
    Raised when a request input is rejected.

    Always maps to a client error. The message is shown to the user,
    so keep it short.
    """
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class MissingFileError(ValidationError):
    """Upload request did not carry a file."""

    def __init__(self, message: str = "Missing file") -> None:
        super().__init__(message)


class UnsupportedTypeError(ValidationError):
    """Uploaded file is not an MP4."""

    def __init__(self, content_type: Optional[str] = None) -> None:
        super().__init__(f"Only {VIDEO_CONTENT_TYPE} allowed")
        self.content_type = content_type


class PayloadTooLargeError(ValidationError):
    """Uploaded file exceeds the configured ceiling."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"File too large. Maximum size: {max_bytes // (1024 * 1024)}MB")
        self.max_bytes = max_bytes


class InvalidIdentifierError(ValidationError):
    """Path identifier is not a well-formed upload id."""

    def __init__(self, value: str) -> None:
        super().__init__("Bad id")
        self.value = value


# ---------------------------------------------------------------------------
# Identifiers and keys
# ---------------------------------------------------------------------------

def new_upload_id() -> str:
    """Generate a fresh, unguessable upload identifier."""
    return str(uuid4())


def is_valid_upload_id(value: str) -> bool:
    """
    Check the identifier format: 20+ characters of hex digits and hyphens.

    Deliberately looser than a strict UUID check. It only has to keep
    arbitrary input out of storage keys and URLs.
    """
    return bool(_UPLOAD_ID_PATTERN.match(value))


def require_valid_upload_id(value: str) -> str:
    """Return the identifier unchanged, or raise InvalidIdentifierError."""
    if not is_valid_upload_id(value):
        raise InvalidIdentifierError(value)
    return value


def storage_key(upload_id: str) -> str:
    """Object key for an upload. The only mapping from id to storage."""
    return f"{upload_id}{VIDEO_EXTENSION}"


def viewer_url(public_base_url: str, upload_id: str) -> str:
    """Fully-qualified URL of the shareable viewer page."""
    return f"{public_base_url.rstrip('/')}/v/{upload_id}"


def raw_path(upload_id: str) -> str:
    """Path the viewer page's video element plays from."""
    return f"/raw/{upload_id}"


def ascii_metadata_value(value: str) -> str:
    """
    Make a string safe for S3 user metadata, which must be ASCII.

    Printable ASCII passes through untouched; everything else (and '%')
    is percent-encoded as UTF-8, so "Bãi biển.mp4" becomes
    "B%C3%A3i bi%E1%BB%83n.mp4" and urllib.parse.unquote restores it.
    """
    return quote(value, safe=_METADATA_SAFE_CHARS)


def format_uploaded_at(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-01-02T03:04:05.678Z"""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


# ---------------------------------------------------------------------------
# Value objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VideoMetadata:
    """
    Metadata attached to a stored video object.

    The object store is the only persistence, so this is everything
    we know about an upload besides its bytes.
    """
    original_name: str
    uploaded_at: datetime

    @classmethod
    def for_upload(
        cls,
        filename: Optional[str],
        uploaded_at: Optional[datetime] = None,
    ) -> "VideoMetadata":
        name = (filename or DEFAULT_ORIGINAL_NAME)[:MAX_ORIGINAL_NAME_LENGTH]
        return cls(
            original_name=name,
            uploaded_at=uploaded_at or datetime.now(timezone.utc),
        )

    def to_object_metadata(self) -> dict[str, str]:
        """Render as user metadata for the object store. Values are ASCII-only."""
        return {
            "originalname": ascii_metadata_value(self.original_name),
            "uploadedat": format_uploaded_at(self.uploaded_at),
        }


@dataclass(frozen=True)
class PublishedVideo:
    """Result of a successful upload: the id and the page to share."""
    upload_id: str
    page_url: str

    @property
    def key(self) -> str:
        return storage_key(self.upload_id)
