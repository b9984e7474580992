# generated-by: codex-agent 2025-03-02T09:20:00Z
"""
Domain exceptions raised by services and mapped to HTTP responses in
`app.utils.error_handlers`.
"""

from __future__ import annotations

from typing import Optional

from fastapi import status


class SimoError(Exception):
    """Base class carrying the HTTP status and public error label."""

    code = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal error"

    def __init__(self, detail: Optional[str] = None, *, message: Optional[str] = None) -> None:
        self.detail = detail
        if message is not None:
            self.message = message
        super().__init__(detail or self.message)


class ValidationError(SimoError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class NotFound(SimoError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class JobConflict(SimoError):
    code = "JOB_CONFLICT"
    status_code = status.HTTP_409_CONFLICT
    message = "Job state changed concurrently"


class StoreUnavailable(SimoError):
    code = "STORE_UNAVAILABLE"
    message = "Job store unavailable"


class UpstreamFailure(SimoError):
    code = "UPSTREAM_FAILURE"
    message = "Upstream request failed"


class MissingConfiguration(SimoError):
    code = "MISSING_CONFIGURATION"
    message = "Server is missing required configuration"
