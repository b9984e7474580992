import json
import unittest
from unittest.mock import AsyncMock, patch

import httpx

from app.core.errors import JobConflict, UpstreamFailure
from app.core.store import MemoryJobStore
from app.services.dispatch import Dispatched, DispatchFailed, HttpDispatcher, InlineDispatcher
from app.services.jobs import JobService, new_job_id
from app.services.worker import IMAGE_PROMPT_PREAMBLE, build_image_prompt, run_image_job


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class JobLifecycleTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.store = MemoryJobStore(clock=self.clock)
        self.jobs = JobService(self.store, ttl_s=600, key_prefix="img:")

    def test_job_ids_are_unique(self):
        ids = {new_job_id() for _ in range(2000)}
        self.assertEqual(len(ids), 2000)

    async def test_new_job_is_pending(self):
        record = await self.jobs.create()
        polled = await self.jobs.get_raw(record.id)
        self.assertEqual(polled["status"], "pending")
        self.assertNotIn("result", polled)
        self.assertNotIn("error", polled)

    async def test_worker_success_marks_done(self):
        record = await self.jobs.create()
        generate = AsyncMock(return_value="https://img.example/cover.png")

        await run_image_job(self.jobs, record.id, "a lighthouse", generate)

        polled = await self.jobs.get_raw(record.id)
        self.assertEqual(polled["status"], "done")
        self.assertEqual(polled["result"], "https://img.example/cover.png")
        self.assertNotIn("error", polled)
        self.assertEqual(polled["version"], 3)
        prompt = generate.await_args.args[0]
        self.assertTrue(prompt.startswith(IMAGE_PROMPT_PREAMBLE))
        self.assertTrue(prompt.endswith("User request: a lighthouse"))

    async def test_worker_failure_marks_error(self):
        record = await self.jobs.create()
        generate = AsyncMock(side_effect=RuntimeError("content policy violation"))

        with self.assertRaises(UpstreamFailure):
            await run_image_job(self.jobs, record.id, "a lighthouse", generate)

        polled = await self.jobs.get_raw(record.id)
        self.assertEqual(polled["status"], "error")
        self.assertEqual(polled["error"], "content policy violation")
        self.assertNotIn("result", polled)

    async def test_empty_image_payload_is_an_error(self):
        record = await self.jobs.create()
        with self.assertRaises(UpstreamFailure):
            await run_image_job(self.jobs, record.id, "x", AsyncMock(return_value=""))
        polled = await self.jobs.get_raw(record.id)
        self.assertEqual(polled["status"], "error")
        self.assertIn("No image data", polled["error"])

    async def test_terminal_state_is_never_reopened(self):
        record = await self.jobs.create()
        await run_image_job(self.jobs, record.id, "x", AsyncMock(return_value="data:image/png;base64,AAA"))

        late = AsyncMock(return_value="https://img.example/stale.png")
        with self.assertRaises(JobConflict) as ctx:
            await run_image_job(self.jobs, record.id, "x", late)
        late.assert_not_awaited()
        self.assertIn("already finished as 'done'", ctx.exception.detail)

        polled = await self.jobs.get_raw(record.id)
        self.assertEqual(polled["result"], "data:image/png;base64,AAA")

    async def test_worker_on_unknown_id_starts_fresh(self):
        await run_image_job(self.jobs, "manual-1", "x", AsyncMock(return_value="https://img.example/a.png"))
        polled = await self.jobs.get_raw("manual-1")
        self.assertEqual(polled["status"], "done")

    async def test_every_write_renews_ttl(self):
        record = await self.jobs.create()
        self.clock.now += 500
        await self.jobs.transition(record.id, "running")
        self.clock.now += 500
        self.assertEqual((await self.jobs.get_raw(record.id))["status"], "running")
        self.clock.now += 101
        self.assertIsNone(await self.jobs.get_raw(record.id))

    async def test_stale_version_write_is_rejected(self):
        record = await self.jobs.create()
        await self.jobs.transition(record.id, "running")
        raw = await self.jobs.get_raw(record.id)
        # Someone else finishes the job between our read and write.
        with patch.object(self.jobs, "get", AsyncMock(return_value=await self.jobs.get(record.id))):
            await self.store.set(self.jobs.key(record.id), {**raw, "status": "done", "version": raw["version"] + 1}, 600)
            with self.assertRaises(JobConflict):
                await self.jobs.transition(record.id, "error", error="late")
        self.assertEqual((await self.jobs.get_raw(record.id))["status"], "done")


class DispatchTest(unittest.IsolatedAsyncioTestCase):
    async def test_inline_dispatch_runs_worker(self):
        store = MemoryJobStore()
        jobs = JobService(store, ttl_s=600, key_prefix="img:")
        record = await jobs.create()
        dispatcher = InlineDispatcher(store)

        with patch("app.services.worker.generate_image", AsyncMock(return_value="https://img.example/b.png")):
            outcome = await dispatcher.dispatch(record.id, "a fox")
            self.assertIsInstance(outcome, Dispatched)
            await dispatcher.drain()

        self.assertEqual((await jobs.get_raw(record.id))["status"], "done")

    async def test_inline_worker_failure_is_swallowed(self):
        store = MemoryJobStore()
        jobs = JobService(store, ttl_s=600, key_prefix="img:")
        record = await jobs.create()
        dispatcher = InlineDispatcher(store)

        with patch("app.services.worker.generate_image", AsyncMock(side_effect=RuntimeError("boom"))):
            await dispatcher.dispatch(record.id, "a fox")
            await dispatcher.drain()

        polled = await jobs.get_raw(record.id)
        self.assertEqual(polled["status"], "error")
        self.assertEqual(polled["error"], "boom")

    async def test_http_dispatch_without_url_fails_softly(self):
        outcome = await HttpDispatcher(None).dispatch("job-1", "a fox")
        self.assertIsInstance(outcome, DispatchFailed)
        self.assertIn("WORKER_URL", outcome.reason)

    async def test_http_dispatch_posts_job(self):
        seen = []

        def worker(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"ok": True})

        dispatcher = HttpDispatcher("http://worker.test/api/simo/worker", transport=httpx.MockTransport(worker))
        outcome = await dispatcher.dispatch("job-1", "a fox")
        await dispatcher.drain()

        self.assertEqual(outcome, Dispatched(job_id="job-1", mode="http"))
        self.assertEqual(seen, [{"id": "job-1", "prompt": "a fox"}])

    async def test_http_dispatch_swallows_transport_errors(self):
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        dispatcher = HttpDispatcher("http://worker.test/api/simo/worker", transport=httpx.MockTransport(unreachable))
        outcome = await dispatcher.dispatch("job-1", "a fox")
        await dispatcher.drain()
        self.assertIsInstance(outcome, Dispatched)


class PromptTest(unittest.TestCase):
    def test_build_image_prompt_strips_user_text(self):
        prompt = build_image_prompt("  neon city  ")
        self.assertEqual(prompt.splitlines()[-1], "User request: neon city")


if __name__ == "__main__":
    unittest.main()
