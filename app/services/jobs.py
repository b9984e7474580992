# generated-by: codex-agent 2025-03-02T11:30:00Z
"""
Image job lifecycle on top of the key-value job store.

Records move forward only (`pending -> running -> done|error`). Every write
carries the configured TTL and bumps `version`; transitions are conditional
on the version read just before, so a late duplicate worker cannot overwrite
a newer state.
"""

from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Optional

from app.core.config import settings
from app.core.errors import JobConflict
from app.core.store import JobStore
from app.models.jobs import JobRecord, JobState, can_transition

logger = logging.getLogger("simo.jobs")

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _base36(value: int) -> str:
    digits = []
    while True:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
        if value == 0:
            return "".join(reversed(digits))


def new_job_id() -> str:
    """Millisecond timestamp plus 64 random bits."""

    return f"{_base36(time.time_ns() // 1_000_000)}-{secrets.token_hex(8)}"


class JobService:
    """Creates, reads and transitions job records."""

    def __init__(self, store: JobStore, *, ttl_s: Optional[int] = None, key_prefix: Optional[str] = None) -> None:
        self.store = store
        self.ttl_s = ttl_s if ttl_s is not None else settings.job_ttl_s
        self.key_prefix = key_prefix if key_prefix is not None else settings.job_key_prefix

    def key(self, job_id: str) -> str:
        return f"{self.key_prefix}{job_id}"

    async def create(self) -> JobRecord:
        now = datetime.now(timezone.utc)
        record = JobRecord(id=new_job_id(), status="pending", version=1, created_at=now, updated_at=now)
        if not await self.store.compare_and_set(self.key(record.id), record.to_store(), self.ttl_s, None):
            raise JobConflict(f"Job id collision for {record.id}")
        logger.info("Job %s created (pending, ttl=%ss)", record.id, self.ttl_s)
        return record

    async def get_raw(self, job_id: str) -> Optional[dict]:
        return await self.store.get(self.key(job_id))

    async def get(self, job_id: str) -> Optional[JobRecord]:
        raw = await self.get_raw(job_id)
        return JobRecord.model_validate(raw) if raw is not None else None

    async def transition(
        self,
        job_id: str,
        target: JobState,
        *,
        result: Optional[str] = None,
        error: Optional[str] = None,
    ) -> JobRecord:
        """Move `job_id` to `target`; raise JobConflict when the current state forbids it."""

        current = await self.get(job_id)
        current_status = current.status if current else None
        if current is not None and current.is_terminal:
            raise JobConflict(f"Job {job_id} already finished as '{current_status}'")
        if not can_transition(current_status, target):
            raise JobConflict(f"Job {job_id} is '{current_status}', cannot move to '{target}'")

        now = datetime.now(timezone.utc)
        record = JobRecord(
            id=job_id,
            status=target,
            result=result if target == "done" else None,
            error=error if target == "error" else None,
            version=(current.version if current else 0) + 1,
            created_at=current.created_at if current and current.created_at else now,
            updated_at=now,
        )
        expected = current.version if current else None
        if not await self.store.compare_and_set(self.key(job_id), record.to_store(), self.ttl_s, expected):
            raise JobConflict(f"Job {job_id} changed while moving to '{target}'")
        logger.info("Job %s %s -> %s (v%s)", job_id, current_status or "absent", target, record.version)
        return record
