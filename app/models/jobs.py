# generated-by: codex-agent 2025-03-02T10:05:00Z
"""
Image job schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

JobState = Literal["pending", "running", "done", "error"]

TERMINAL_STATES: FrozenSet[str] = frozenset({"done", "error"})

# Predecessor states allowed for each target state; None is "no record".
ALLOWED_PREVIOUS: Dict[str, FrozenSet[Optional[str]]] = {
    "pending": frozenset({None}),
    "running": frozenset({"pending", None}),
    "done": frozenset({"running"}),
    "error": frozenset({"running"}),
}


def can_transition(current: Optional[str], target: str) -> bool:
    return current in ALLOWED_PREVIOUS.get(target, frozenset())


class JobRecord(BaseModel):
    """Stored state of one image job. TTL lives in the store, not here."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    status: JobState
    result: Optional[str] = None
    error: Optional[str] = None
    version: int = Field(default=0, ge=0)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    def to_store(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class JobAccepted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    job_id: str = Field(alias="jobId")


class WorkerRequest(BaseModel):
    id: Optional[str] = None
    prompt: Optional[str] = None


class WorkerResponse(BaseModel):
    ok: bool = True


class StoreProbe(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    store_ok: bool = Field(alias="storeOk")
