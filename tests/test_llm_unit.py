import threading
import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from app.core.config import settings
from app.core.errors import MissingConfiguration, UpstreamFailure
from app.services import llm


class OpenAIHelpersTest(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.client = MagicMock()
        for p in (patch.object(settings, "openai_api_key", "sk-test"), patch("app.services.llm._client", None)):
            p.start()
            self.addCleanup(p.stop)
        openai_patch = patch("app.services.llm.OpenAI", return_value=self.client)
        self.openai_cls = openai_patch.start()
        self.addCleanup(openai_patch.stop)

    async def test_client_makes_a_single_attempt(self):
        self.client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=" hi "))]
        )
        text = await llm.generate_chat_completion([{"role": "user", "content": "hello"}])

        self.assertEqual(text, "hi")
        self.assertEqual(self.openai_cls.call_args.kwargs["max_retries"], 0)
        kwargs = self.client.chat.completions.create.call_args.kwargs
        self.assertEqual(kwargs["timeout"], settings.chat_timeout_s)
        self.assertEqual(kwargs["model"], settings.chat_model)

    async def test_image_call_carries_its_timeout(self):
        self.client.images.generate.return_value = SimpleNamespace(data=[SimpleNamespace(b64_json="QUJD", url=None)])
        result = await llm.generate_image("a lighthouse")

        self.assertEqual(result, "data:image/png;base64,QUJD")
        kwargs = self.client.images.generate.call_args.kwargs
        self.assertEqual(kwargs["timeout"], settings.image_timeout_s)
        self.assertEqual(kwargs["size"], settings.image_size)

    async def test_image_without_data_is_upstream_failure(self):
        self.client.images.generate.return_value = SimpleNamespace(data=[])
        with self.assertRaises(UpstreamFailure) as ctx:
            await llm.generate_image("a lighthouse")
        self.assertIn("No image data", str(ctx.exception))

    async def test_slow_call_times_out(self):
        release = threading.Event()
        self.addCleanup(release.set)

        with self.assertRaises(UpstreamFailure) as ctx:
            await llm._run_bounded(lambda: release.wait(5), 0.05, "Image generation")
        self.assertIn("timed out", ctx.exception.detail)

    async def test_missing_key(self):
        with patch.object(settings, "openai_api_key", None):
            with self.assertRaises(MissingConfiguration):
                await llm.generate_image("a lighthouse")


if __name__ == "__main__":
    unittest.main()
