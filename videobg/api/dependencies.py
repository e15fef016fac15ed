"""
FastAPI dependency injection.

Settings and the object store are built once by create_app() and kept on
app.state. Dependencies hand them to route handlers, so:
- Routes don't instantiate their own collaborators (easier to test)
- Tests swap in a fake store by passing it to create_app()
- Nothing reads global mutable state per request
"""

from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings
from ..core.videos.service import ObjectStore, VideoService


def get_app_settings(request: Request) -> Settings:
    """Provide the settings the application was created with."""
    return request.app.state.settings


def get_object_store(request: Request) -> ObjectStore:
    """Provide the shared object store (S3 or mock)."""
    return request.app.state.object_store


def get_video_service(
    settings: Annotated[Settings, Depends(get_app_settings)],
    store: Annotated[ObjectStore, Depends(get_object_store)],
) -> VideoService:
    """
    Provide a VideoService bound to the shared store.

    The service is stateless, so a new instance per request is cheap.
    """
    return VideoService(
        store=store,
        public_base_url=settings.public_base_url,
        max_upload_bytes=settings.max_upload_bytes,
    )


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

SettingsDep = Annotated[Settings, Depends(get_app_settings)]
VideoServiceDep = Annotated[VideoService, Depends(get_video_service)]
