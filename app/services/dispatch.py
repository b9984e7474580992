# generated-by: codex-agent 2025-03-02T12:10:00Z
"""
Best-effort, fire-and-forget hand-off of image jobs to the worker.

`dispatch()` never raises. A failed hand-off is logged and returned as
`DispatchFailed`; the caller still answers 202 and the job stays `pending`
until its TTL runs out, which is what pollers observe.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Optional, Set, Union

import httpx

from app.core.config import Settings
from app.core.store import JobStore
from app.services.jobs import JobService
from app.services.worker import run_image_job

logger = logging.getLogger("simo.dispatch")


@dataclass(frozen=True)
class Dispatched:
    job_id: str
    mode: str


@dataclass(frozen=True)
class DispatchFailed:
    job_id: str
    reason: str


DispatchResult = Union[Dispatched, DispatchFailed]


class Dispatcher(ABC):
    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    @abstractmethod
    async def dispatch(self, job_id: str, prompt: str) -> DispatchResult:
        """Start work for `job_id` without waiting for it to finish."""

    def _spawn(self, coro: Awaitable[None], job_id: str) -> None:
        task = asyncio.get_running_loop().create_task(coro, name=f"image-job-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for in-flight hand-offs (shutdown and tests)."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class InlineDispatcher(Dispatcher):
    """Runs the worker on this process's event loop."""

    def __init__(self, store: JobStore) -> None:
        super().__init__()
        self._store = store

    async def _run(self, job_id: str, prompt: str) -> None:
        try:
            await run_image_job(JobService(self._store), job_id, prompt)
        except Exception as exc:
            # The worker already persisted the failure when it could.
            logger.warning("Inline worker for job %s ended with %s: %s", job_id, exc.__class__.__name__, exc)

    async def dispatch(self, job_id: str, prompt: str) -> DispatchResult:
        try:
            self._spawn(self._run(job_id, prompt), job_id)
        except RuntimeError as exc:
            logger.error("Dispatch of job %s failed: %s", job_id, exc)
            return DispatchFailed(job_id=job_id, reason=str(exc))
        logger.info("Job %s dispatched inline", job_id)
        return Dispatched(job_id=job_id, mode="inline")


class HttpDispatcher(Dispatcher):
    """POSTs `{id, prompt}` to the worker endpoint from a background task."""

    def __init__(
        self,
        worker_url: Optional[str],
        *,
        timeout_s: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__()
        self._worker_url = worker_url
        self._timeout = timeout_s
        self._transport = transport

    async def _post(self, job_id: str, prompt: str) -> None:
        # Only the connect phase is bounded: the worker answers when the job is done.
        timeout = httpx.Timeout(None, connect=self._timeout)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.post(self._worker_url, json={"id": job_id, "prompt": prompt})
        except httpx.HTTPError as exc:
            logger.error("Worker hand-off for job %s failed: %s: %s", job_id, exc.__class__.__name__, exc)
            return
        if resp.status_code >= 400:
            logger.warning("Worker for job %s answered HTTP %s: %s", job_id, resp.status_code, resp.text[:200])
        else:
            logger.info("Worker for job %s answered HTTP %s", job_id, resp.status_code)

    async def dispatch(self, job_id: str, prompt: str) -> DispatchResult:
        if not self._worker_url:
            logger.error("Dispatch of job %s skipped: WORKER_URL is not configured", job_id)
            return DispatchFailed(job_id=job_id, reason="WORKER_URL is not configured")
        try:
            self._spawn(self._post(job_id, prompt), job_id)
        except RuntimeError as exc:
            logger.error("Dispatch of job %s failed: %s", job_id, exc)
            return DispatchFailed(job_id=job_id, reason=str(exc))
        logger.info("Job %s dispatched to %s", job_id, self._worker_url)
        return Dispatched(job_id=job_id, mode="http")


def build_dispatcher(cfg: Settings, store: JobStore) -> Dispatcher:
    if cfg.dispatch_mode == "http":
        return HttpDispatcher(cfg.worker_url, timeout_s=cfg.dispatch_timeout_s)
    return InlineDispatcher(store)
