"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, Sentry,
lifespan events for startup checks and client shutdown, and the v1 API
router (health + SmartLead webhook).
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI
from fastapi.requests import Request
from fastapi.responses import Response

from src.bridge.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.bridge.api.v1.router import router as v1_router
from src.bridge.config import Settings, get_settings
from src.bridge.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.bridge.crm.client import TwentyClient
from src.bridge.crm.gateway import TwentyGateway
from src.bridge.leads.processor import LeadEventProcessor

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: logging and Sentry on startup, close the Twenty client on shutdown."""
    settings: Settings = app.state.settings
    configure_structlog(settings)

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    for name in settings.missing_settings():
        logger.warning("startup.setting_missing", setting=name)
    if not settings.SMARTLEAD_WEBHOOK_SECRET:
        logger.warning("startup.webhook_validation_disabled")

    logger.info(
        "startup.complete",
        webhook_path="/webhooks/smartlead",
        environment=settings.ENVIRONMENT.value,
    )

    yield

    await app.state.twenty_client.aclose()
    logger.info("shutdown.complete")


def create_app(
    settings: Settings | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Settings to use. Defaults to get_settings().
        http_client: Optional httpx client for outbound Twenty calls.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="SmartLead Twenty Bridge",
        version="0.1.0",
        description="Mirrors SmartLead lead events into Twenty CRM",
        lifespan=lifespan,
    )

    twenty_client = TwentyClient(settings, http_client=http_client)
    app.state.settings = settings
    app.state.twenty_client = twenty_client
    app.state.processor = LeadEventProcessor(TwentyGateway(twenty_client))

    # Middleware is added in reverse order (last added = outermost)

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


def run() -> None:
    """Serve the module-level app with uvicorn on HOST:PORT."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.bridge.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


# Module-level app for uvicorn
app = create_app()


if __name__ == "__main__":
    run()
