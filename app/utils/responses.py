# generated-by: codex-agent 2025-03-02T10:25:00Z
"""
UTF-8 JSON response class used as the app default.
"""

from __future__ import annotations

from fastapi.responses import JSONResponse


class UTF8JSONResponse(JSONResponse):
    """JSON response enforcing UTF-8 charset."""

    media_type = "application/json; charset=utf-8"
