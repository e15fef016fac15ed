"""
Video upload and playback endpoints.

Flow:
1. POST /upload -> video stored under {id}.mp4, client gets the page URL
2. GET /raw/{id} -> 302 to a 10-minute signed URL on the object store

Redirecting instead of proxying means the browser streams (and seeks)
directly against storage, and this server never holds video bytes on
the read path.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from ...core.videos.models import require_valid_upload_id
from ...infrastructure.storage.client import StoreError
from ..dependencies import VideoServiceDep
from ..multipart import FILE_FIELD, SingleFileReceiver, check_declared_length
from .pages import NO_STORE_HEADERS

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class UploadResponse(BaseModel):
    """Response after a successful upload."""
    id: str = Field(description="Upload identifier")
    url: str = Field(description="Shareable viewer page URL")


class ErrorResponse(BaseModel):
    """Error body used by every failing endpoint."""
    error: str = Field(description="Short, human-readable reason")


# The body is parsed from the raw stream, so describe the form by hand
UPLOAD_REQUEST_BODY = {
    "required": True,
    "content": {
        "multipart/form-data": {
            "schema": {
                "type": "object",
                "required": [FILE_FIELD],
                "properties": {
                    FILE_FIELD: {
                        "type": "string",
                        "format": "binary",
                        "description": "MP4 video",
                    },
                },
            },
        },
    },
}


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/upload",
    response_model=UploadResponse,
    status_code=status.HTTP_200_OK,
    summary="Upload an MP4",
    description="Store an MP4 video and return the URL of its background page.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing, non-MP4, or oversized file"},
        500: {"model": ErrorResponse, "description": "Object store write failed"},
    },
    openapi_extra={"requestBody": UPLOAD_REQUEST_BODY},
)
async def upload_video(request: Request, service: VideoServiceDep) -> UploadResponse:
    """
    Accept a single MP4 and publish it.

    Checks run in order and the first failure wins: one file present,
    content type, size. The type is checked from the part header and the
    size while the body streams in, so a bad upload stops being read at
    the point it is rejected. Nothing is written unless all checks pass.
    """
    check_declared_length(request.headers.get("content-length"), service)

    video = await SingleFileReceiver(service).receive(
        request.stream(),
        request.headers.get("content-type", ""),
    )

    logger.info(
        "Video upload accepted",
        extra={
            "video_filename": video.filename,
            "size_bytes": len(video.data),
        }
    )

    try:
        published = await service.publish(video.data, video.filename)
    except StoreError as e:
        logger.error(
            "Video upload failed",
            extra={"video_filename": video.filename, "error": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e) or "Upload failed",
        )

    return UploadResponse(id=published.upload_id, url=published.page_url)


@router.get(
    "/raw/{upload_id}",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    summary="Play an uploaded video",
    description="Redirect to a short-lived signed URL for the stored MP4.",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed id"},
        404: {"model": ErrorResponse, "description": "Video unavailable"},
    },
)
async def play_video(upload_id: str, service: VideoServiceDep) -> RedirectResponse:
    """
    Redirect the browser to the object store.

    Every store failure is reported as 404, whatever the cause. This is
    an unauthenticated read path, so backend details stay in the logs.
    """
    require_valid_upload_id(upload_id)

    try:
        signed_url = await service.playback_url(upload_id)
    except StoreError as e:
        logger.warning(
            "Playback URL unavailable",
            extra={"upload_id": upload_id, "error": str(e)}
        )
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Not found",
        )

    return RedirectResponse(
        signed_url,
        status_code=status.HTTP_302_FOUND,
        headers=NO_STORE_HEADERS,
    )
