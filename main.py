# generated-by: codex-agent 2025-03-03T11:00:00Z
"""
FastAPI application entrypoint for the Simo backend.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.corr_id import CorrIdMiddleware
from app.core.store import close_store
from app.dependencies.services import drain_dispatcher
from app.routes import register_routes
from app.utils.error_handlers import install_error_handlers
from app.utils.responses import UTF8JSONResponse

SHUTDOWN_DRAIN_S = 10


def _configure_logging() -> None:
    """Ensure an INFO-level console handler exists (uvicorn may preconfigure logging)."""
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(logging.INFO)
    for name in [
        "simo",
        "simo.backend",
        "simo.http",
        "simo.store",
        "simo.jobs",
        "simo.dispatch",
        "simo.worker",
        "simo.chat",
        "simo.search",
        "simo.places",
        "simo.poller",
        "simo.weather",
    ]:
        logging.getLogger(name).setLevel(logging.INFO)


_configure_logging()
logger = logging.getLogger("simo.backend")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Simo API",
        version="1.2.0",
        description="Simo chat assistant: chat replies, background image jobs, lookups",
        openapi_url="/api/openapi.json",
        default_response_class=UTF8JSONResponse,
    )

    app.add_middleware(CorrIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "x-corr-id"],
    )

    install_error_handlers(app)
    register_routes(app)

    @app.on_event("startup")
    async def _startup() -> None:
        logger.info(
            "Simo backend starting (store=%s, dispatch=%s, job_ttl=%ss)",
            settings.store_backend,
            settings.dispatch_mode,
            settings.job_ttl_s,
        )

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        logger.info("Simo backend shutting down")
        try:
            await asyncio.wait_for(drain_dispatcher(), timeout=SHUTDOWN_DRAIN_S)
        except asyncio.TimeoutError:
            logger.warning("In-flight image jobs still running after %ss; leaving them to expire", SHUTDOWN_DRAIN_S)
        await close_store()

    return app


app = create_app()
