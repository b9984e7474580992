# generated-by: codex-agent 2025-03-02T10:12:00Z
"""
Error envelope with corr_id field.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel

from app.core.corr_id import get_corr_id


class ErrorEnvelope(BaseModel):
    error: str
    detail: Optional[str] = None
    code: str
    corr_id: str

    @classmethod
    def from_error(cls, code: str, message: str, detail: Optional[str] = None) -> "ErrorEnvelope":
        return cls(error=message, detail=detail, code=code, corr_id=get_corr_id())

    def body(self) -> dict:
        return self.model_dump(exclude_none=True)
