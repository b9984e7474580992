# generated-by: codex-agent 2025-03-05T10:00:00Z
"""
Caller-side loop for image jobs: submit a message, then poll until the job
reaches `done` or `error`, backing off between polls and giving up after
`max_wait` seconds.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import httpx

logger = logging.getLogger("simo.poller")

RETRY_MESSAGE = "I couldn't reach Simo just now. Try again."

StatusCallback = Callable[[str], None]


class PollerError(Exception):
    """Base class for client-side job failures."""


class TransportFailure(PollerError):
    def __init__(self, cause: Exception) -> None:
        super().__init__(RETRY_MESSAGE)
        self.cause = cause


class JobFailed(PollerError):
    def __init__(self, job_id: str, error: str) -> None:
        super().__init__(error)
        self.job_id = job_id
        self.error = error


class JobExpired(PollerError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job {job_id} not found (expired or never created)")
        self.job_id = job_id


class PollTimeout(PollerError):
    def __init__(self, job_id: str, waited_s: float, last_status: Optional[str]) -> None:
        super().__init__(f"Job {job_id} still '{last_status}' after {waited_s:.0f}s")
        self.job_id = job_id
        self.last_status = last_status


@dataclass
class Submission:
    text: str
    job_id: Optional[str] = None


class JobPoller:
    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_path: str = "/api/simo",
        interval_s: float = 1.5,
        backoff: float = 1.5,
        max_interval_s: float = 8.0,
        max_wait_s: float = 180.0,
        sleep: Callable[[float], Any] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self._base = base_path.rstrip("/")
        self.interval_s = interval_s
        self.backoff = backoff
        self.max_interval_s = max_interval_s
        self.max_wait_s = max_wait_s
        self._sleep = sleep
        self._clock = clock

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise TransportFailure(exc) from exc

    async def submit(self, message: str) -> Submission:
        resp = await self._request("POST", self._base, json={"message": message})
        body = resp.json() if resp.content else {}
        if resp.status_code >= 400:
            raise PollerError(body.get("detail") or body.get("error") or f"HTTP {resp.status_code}")
        return Submission(text=body.get("text", ""), job_id=body.get("jobId"))

    async def fetch(self, job_id: str) -> Dict[str, Any]:
        resp = await self._request("GET", f"{self._base}/job", params={"id": job_id})
        if resp.status_code == 404:
            raise JobExpired(job_id)
        body = resp.json()
        if resp.status_code >= 400:
            raise PollerError(body.get("detail") or body.get("error") or f"HTTP {resp.status_code}")
        return body

    async def wait(self, job_id: str, on_status: Optional[StatusCallback] = None) -> Dict[str, Any]:
        """Poll until terminal; return the `done` record or raise."""

        started = self._clock()
        interval = self.interval_s
        last_status: Optional[str] = None
        while True:
            record = await self.fetch(job_id)
            status = record.get("status")
            if status != last_status and on_status is not None:
                on_status(status)
            last_status = status
            if status == "done":
                return record
            if status == "error":
                raise JobFailed(job_id, record.get("error") or "Image generation failed")

            waited = self._clock() - started
            if waited + interval > self.max_wait_s:
                raise PollTimeout(job_id, waited, last_status)
            await self._sleep(interval)
            interval = min(interval * self.backoff, self.max_interval_s)

    async def run(self, message: str, on_status: Optional[StatusCallback] = None) -> Dict[str, Any]:
        """Submit `message`; returns `{"text": ...}` or the finished job record."""

        submission = await self.submit(message)
        if not submission.job_id:
            return {"text": submission.text}
        return await self.wait(submission.job_id, on_status)
