import unittest
from unittest.mock import AsyncMock, patch

import httpx

from app.core.store import MemoryJobStore
from app.dependencies.services import get_dispatcher, get_job_store
from app.services.dispatch import InlineDispatcher
from app.services.poller import (
    RETRY_MESSAGE,
    JobExpired,
    JobFailed,
    JobPoller,
    PollTimeout,
    TransportFailure,
)
from main import app


class FakeTime:
    """Clock advanced only by the poller's sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def clock(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def scripted(statuses, job_id="job-1"):
    """MockTransport handler: POST returns a job, GETs walk through `statuses`."""

    remaining = list(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(202, json={"text": "On it.", "jobId": job_id})
        assert request.url.params["id"] == job_id
        record = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if record is None:
            return httpx.Response(404, json={"error": "Job not found"})
        return httpx.Response(200, json={"id": job_id, **record})

    return handler


class JobPollerTest(unittest.IsolatedAsyncioTestCase):
    def _poller(self, handler, fake: FakeTime, **kwargs) -> JobPoller:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://simo.test")
        self.addAsyncCleanup(client.aclose)
        return JobPoller(client, sleep=fake.sleep, clock=fake.clock, **kwargs)

    async def test_polls_until_done_with_backoff(self):
        fake = FakeTime()
        poller = self._poller(
            scripted([{"status": "pending"}, {"status": "running"}, {"status": "running"}, {"status": "done", "result": "u"}]),
            fake,
            interval_s=1.0,
            backoff=2.0,
            max_interval_s=3.0,
        )
        seen = []
        record = await poller.run("show me a book cover", on_status=seen.append)
        self.assertEqual(record["result"], "u")
        self.assertEqual(seen, ["pending", "running", "done"])
        self.assertEqual(fake.sleeps, [1.0, 2.0, 3.0])

    async def test_error_state_raises_job_failed(self):
        poller = self._poller(scripted([{"status": "running"}, {"status": "error", "error": "quota"}]), FakeTime())
        with self.assertRaises(JobFailed) as ctx:
            await poller.run("show me a logo")
        self.assertEqual(ctx.exception.error, "quota")

    async def test_gives_up_after_max_wait(self):
        fake = FakeTime()
        poller = self._poller(scripted([{"status": "pending"}]), fake, interval_s=2.0, backoff=1.0, max_wait_s=10.0)
        with self.assertRaises(PollTimeout) as ctx:
            await poller.wait("job-1")
        self.assertEqual(ctx.exception.last_status, "pending")
        self.assertLessEqual(fake.now, 10.0)

    async def test_missing_job_raises_expired(self):
        poller = self._poller(scripted([None]), FakeTime())
        with self.assertRaises(JobExpired):
            await poller.wait("job-1")

    async def test_direct_reply_needs_no_polling(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"text": "Hi there", "intent": "chat"})

        fake = FakeTime()
        outcome = await self._poller(handler, fake).run("hello")
        self.assertEqual(outcome, {"text": "Hi there"})
        self.assertEqual(fake.sleeps, [])

    async def test_transport_failure_has_retry_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(TransportFailure) as ctx:
            await self._poller(handler, FakeTime()).run("hello")
        self.assertEqual(str(ctx.exception), RETRY_MESSAGE)


class EndToEndPollingTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.store = MemoryJobStore()
        self.dispatcher = InlineDispatcher(self.store)
        app.dependency_overrides[get_job_store] = lambda: self.store
        app.dependency_overrides[get_dispatcher] = lambda: self.dispatcher
        self.client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://simo.test")

    async def asyncTearDown(self):
        await self.dispatcher.drain()
        await self.client.aclose()
        app.dependency_overrides.clear()

    async def test_image_job_runs_to_done(self):
        poller = JobPoller(self.client, interval_s=0.01, max_wait_s=5.0)
        with patch("app.services.worker.generate_image", AsyncMock(return_value="data:image/png;base64,QUJD")):
            record = await poller.run("show me a book cover")
        self.assertEqual(record["status"], "done")
        self.assertEqual(record["result"], "data:image/png;base64,QUJD")

    async def test_image_job_failure_surfaces_error(self):
        poller = JobPoller(self.client, interval_s=0.01, max_wait_s=5.0)
        with patch("app.services.worker.generate_image", AsyncMock(side_effect=RuntimeError("safety system"))):
            with self.assertRaises(JobFailed) as ctx:
                await poller.run("show me a book cover")
        self.assertEqual(ctx.exception.error, "safety system")


if __name__ == "__main__":
    unittest.main()
