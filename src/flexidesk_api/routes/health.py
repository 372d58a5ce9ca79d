"""Health check endpoint."""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends

from flexidesk.config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    summary="Health check",
    description="Reports that the gateway is up. Does not call the upstream API.",
    response_description="Gateway status",
)
async def health(settings: Settings = Depends(get_settings)) -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": settings.app_name,
        "environment": settings.environment,
        "timestamp": datetime.now(UTC).isoformat(),
    }
