# generated-by: codex-agent 2025-03-03T10:45:00Z
"""API router registration."""

from fastapi import FastAPI

from .health import router as health_router
from .search import router as search_router
from .simo import router as simo_router


def register_routes(app: FastAPI) -> None:
    app.include_router(simo_router, prefix="/api")
    app.include_router(search_router, prefix="/api")
    app.include_router(health_router, prefix="/api")
