"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Settings and the object store are built once and injected explicitly
- Tests can pass their own settings and a fake store
- Missing configuration fails at startup, not on the first request

For local development:
    uvicorn videobg.main:create_app --factory --reload

For production:
    videobg
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import health, pages, videos
from .config.settings import ConfigurationError, Settings, get_settings
from .core.videos.models import ValidationError
from .core.videos.service import ObjectStore
from .infrastructure.storage.client import StorageConfig, create_object_store

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Everything expensive is already built by create_app(); this only
    marks startup and shutdown in the logs.
    """
    settings: Settings = app.state.settings

    logger.info(
        "Video background service starting",
        extra={
            "version": settings.api_version,
            "mock_mode": {"store": settings.store_mock_mode},
            "public_base_url": settings.public_base_url,
        }
    )

    yield

    logger.info("Video background service shutting down")


def build_object_store(settings: Settings) -> ObjectStore:
    """Create the object store described by settings."""
    if settings.store_mock_mode:
        return create_object_store(mock_mode=True)

    config = StorageConfig(
        endpoint_url=settings.store_endpoint,
        access_key_id=settings.store_access_key_id,
        secret_access_key=settings.store_secret_access_key,
        bucket_name=settings.store_bucket,
        region=settings.store_region,
        force_path_style=settings.store_force_path_style,
    )
    return create_object_store(config=config)


def register_exception_handlers(app: FastAPI) -> None:
    """Every error response has the same shape: {"error": message}."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        logger.warning(
            "Request rejected",
            extra={
                "path": request.url.path,
                "method": request.method,
                "reason": exc.message,
            }
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Bad request") if errors else "Bad request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": message},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Prevents stack traces from leaking to clients. The full error is
        logged server-side.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )


def create_app(
    settings: Optional[Settings] = None,
    object_store: Optional[ObjectStore] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Configuration to use. Loaded from the environment if omitted.
        object_store: Store to use. Built from settings if omitted.

    Raises:
        ConfigurationError: If a required setting is missing.
    """
    settings = settings or get_settings()
    settings.require_valid()

    logging.getLogger().setLevel(settings.log_level.upper())

    if object_store is None:
        object_store = build_object_store(settings)

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Turn an MP4 into a shareable page that plays it as a fullscreen background.

        1. **Upload**: `POST /upload` with multipart field `file` (video/mp4)
           - Returns `{id, url}`
        2. **Share**: `GET /v/{id}` renders the background page
        3. **Play**: `GET /raw/{id}` redirects to a 10-minute signed storage URL
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.object_store = object_store

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(pages.router, tags=["Pages"])
    app.include_router(videos.router, tags=["Videos"])

    register_exception_handlers(app)

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


def run() -> None:
    """Console entry point: serve on the configured host and port."""
    import uvicorn

    settings = get_settings()

    try:
        app = create_app(settings)
    except ConfigurationError as e:
        logger.error(str(e))
        raise SystemExit(1)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
