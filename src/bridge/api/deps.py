"""FastAPI dependency injection for application-scoped resources.

The settings and the lead event processor are built once by create_app()
and stored on app.state; these dependencies hand them to endpoints.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from src.bridge.config import Settings, get_settings
from src.bridge.leads.processor import LeadEventProcessor


async def get_app_settings(request: Request) -> Settings:
    """Settings the app was created with, falling back to the singleton."""
    return getattr(request.app.state, "settings", None) or get_settings()


async def get_processor(request: Request) -> LeadEventProcessor:
    """The LeadEventProcessor on app.state.

    Raises:
        HTTPException(503): If the processor was not initialized.
    """
    processor = getattr(request.app.state, "processor", None)
    if processor is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Lead event processor not initialized",
        )
    return processor
