"""
HTML pages: the upload UI and the background-video viewer.

Both pages are rendered from Jinja2 templates and sent with
Cache-Control: no-store. The viewer never touches the object store; its
video element points at /raw/{id}, and the browser does the fetching.
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from ...core.videos.models import VIDEO_CONTENT_TYPE, raw_path, require_valid_upload_id
from ..dependencies import SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()

TEMPLATES_DIR = Path(__file__).resolve().parent.parent.parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

NO_STORE_HEADERS = {"Cache-Control": "no-store"}


@router.get(
    "/",
    response_class=HTMLResponse,
    summary="Upload page",
    description="Pick an MP4 and get back a shareable background-video page.",
)
async def upload_page(request: Request, settings: SettingsDep) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "upload.html",
        {
            "content_type": VIDEO_CONTENT_TYPE,
            "max_upload_size_mb": settings.max_upload_size_mb,
        },
        headers=NO_STORE_HEADERS,
    )


@router.get(
    "/v/{upload_id}",
    response_class=HTMLResponse,
    summary="Viewer page",
    description="Fullscreen looping background video for an uploaded MP4.",
    responses={400: {"description": "Malformed id"}},
)
async def viewer_page(request: Request, upload_id: str) -> HTMLResponse:
    """
    Render the viewer for an upload.

    Only the id format is checked. Whether the video exists is discovered
    by the browser when it requests /raw/{id}.
    """
    require_valid_upload_id(upload_id)

    logger.debug("Rendering viewer page", extra={"upload_id": upload_id})

    return templates.TemplateResponse(
        request,
        "viewer.html",
        {
            "video_src": raw_path(upload_id),
            "content_type": VIDEO_CONTENT_TYPE,
        },
        headers=NO_STORE_HEADERS,
    )
