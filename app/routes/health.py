# generated-by: codex-agent 2025-03-03T10:40:00Z
"""
Healthcheck endpoint for container orchestration.
"""

from __future__ import annotations

from fastapi import APIRouter

from app.core.config import settings
from app.core.store import get_store

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health() -> dict[str, str | bool]:
    store_ok = await get_store().self_test()
    status = store_ok and bool(settings.openai_api_key)
    return {
        "status": "ok" if status else "degraded",
        "store": store_ok,
        "store_backend": settings.store_backend,
        "dispatch_mode": settings.dispatch_mode,
        "openai": bool(settings.openai_api_key),
        "serper": bool(settings.serper_api_key),
        "google_places": bool(settings.google_places_api_key),
    }
