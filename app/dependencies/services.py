# generated-by: codex-agent 2025-03-03T10:00:00Z
"""
FastAPI dependencies for the job store and worker dispatcher.

Tests swap these through `app.dependency_overrides`.
"""

from __future__ import annotations

from fastapi import Depends

from app.core.config import settings
from app.core.store import JobStore, get_store
from app.services.dispatch import Dispatcher, build_dispatcher
from app.services.jobs import JobService

_dispatcher: Dispatcher | None = None


def get_job_store() -> JobStore:
    return get_store()


def get_jobs(store: JobStore = Depends(get_job_store)) -> JobService:
    return JobService(store)


def get_dispatcher(store: JobStore = Depends(get_job_store)) -> Dispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = build_dispatcher(settings, store)
    return _dispatcher


async def drain_dispatcher() -> None:
    if _dispatcher is not None:
        await _dispatcher.drain()
