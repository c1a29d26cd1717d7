"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.bridge.api.v1 import health, webhooks

router = APIRouter()

router.include_router(health.router)
router.include_router(webhooks.router)
