# generated-by: codex-agent 2025-03-02T10:30:00Z
"""
Centralised HTTP error handling that emits the canonical ErrorEnvelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import SimoError
from app.models.envelope import ErrorEnvelope

logger = logging.getLogger("simo.backend")


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SimoError)
    async def _simo_error_handler(request: Request, exc: SimoError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.warning("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.detail)
        envelope = ErrorEnvelope.from_error(code=exc.code, message=exc.message, detail=exc.detail)
        return JSONResponse(status_code=exc.status_code, content=envelope.body())

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # type: ignore[override]
        envelope = ErrorEnvelope.from_error(code="HTTP_ERROR", message=str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=envelope.body())

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = exc.errors()
        detail = "; ".join(err.get("msg", "validation error") for err in errors)
        envelope = ErrorEnvelope.from_error(code="VALIDATION_ERROR", message="Invalid request", detail=detail)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=envelope.body())

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        envelope = ErrorEnvelope.from_error(
            code="INTERNAL_ERROR",
            message="Server error",
            detail=f"{exc.__class__.__name__}: {exc}",
        )
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=envelope.body())
