"""
Health check endpoint.

Used by the hosting platform (and load balancers) to know the process is
alive. It deliberately does not contact the object store: a slow or
unreachable bucket should not get a healthy process restarted.
"""

from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel

from ..dependencies import SettingsDep

router = APIRouter()


class HealthResponse(BaseModel):
    """
    Health check response.

    Standardized format makes it easy for monitoring tools to parse.
    """
    status: str
    version: str
    details: dict[str, Any] = {}


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
    description="Returns 200 if the service is running. Does not check dependencies.",
)
async def health_check(settings: SettingsDep) -> HealthResponse:
    """Liveness check - is the process alive?"""
    return HealthResponse(
        status="ok",
        version=settings.api_version,
        details={
            "mock_mode": {
                "store": settings.store_mock_mode,
            }
        }
    )
