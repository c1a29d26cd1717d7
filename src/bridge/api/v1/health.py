"""Health check endpoints.

Provides liveness (/health) and readiness (/health/ready) checks. Readiness
only reports whether the Twenty API is configured; it makes no CRM calls.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.bridge.api.deps import get_app_settings
from src.bridge.config import Settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(settings: Settings = Depends(get_app_settings)):
    """Basic liveness check. No external dependencies are checked."""
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}


@router.get("/health/ready")
async def readiness_check(settings: Settings = Depends(get_app_settings)):
    """Readiness check: 200 when the Twenty API URL and token are set, 503 otherwise."""
    checks = {
        "twenty_api_url": "ok" if settings.TWENTY_API_URL else "missing",
        "twenty_api_token": "ok" if settings.TWENTY_API_TOKEN else "missing",
        "webhook_secret": "ok" if settings.SMARTLEAD_WEBHOOK_SECRET else "disabled",
    }

    if settings.twenty_configured():
        return {"status": "ready", "checks": checks}

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "not_ready", "checks": checks},
    )
