# generated-by: codex-agent 2025-03-03T08:40:00Z
"""
OpenAI helpers for chat replies and image generation.

The OpenAI client is synchronous; calls run in the default executor and are
bounded with `asyncio.wait_for` so a slow provider cannot hold a request open
indefinitely.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from openai import OpenAI

from app.core.config import settings
from app.core.errors import MissingConfiguration, UpstreamFailure

_client: OpenAI | None = None


def _ensure_client() -> OpenAI:
    global _client
    if _client is not None:
        return _client
    if not settings.openai_api_key:
        raise MissingConfiguration("Missing OPENAI_API_KEY")
    # Single attempt; per-call timeouts match the wait_for bounds.
    _client = OpenAI(api_key=settings.openai_api_key, max_retries=0)
    return _client


async def _run_bounded(fn, timeout_s: float, what: str):
    loop = asyncio.get_running_loop()
    try:
        return await asyncio.wait_for(loop.run_in_executor(None, fn), timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        raise UpstreamFailure(f"{what} timed out after {timeout_s:g}s") from exc
    except UpstreamFailure:
        raise
    except Exception as exc:
        raise UpstreamFailure(f"{what} failed: {exc}") from exc


async def generate_chat_completion(
    messages: List[Dict[str, str]],
    *,
    temperature: Optional[float] = None,
) -> str:
    """Return the assistant text for `messages`."""

    client = _ensure_client()

    def _call() -> str:
        response = client.chat.completions.create(
            model=settings.chat_model,
            messages=messages,
            temperature=settings.chat_temperature if temperature is None else temperature,
            timeout=settings.chat_timeout_s,
        )
        if not response.choices:
            raise UpstreamFailure("Chat completion returned no choices")
        return (response.choices[0].message.content or "").strip()

    return await _run_bounded(_call, settings.chat_timeout_s, "Chat completion")


async def generate_image(prompt: str) -> str:
    """Generate one image; returns a `data:` URL or a hosted URL."""

    client = _ensure_client()

    def _call() -> str:
        result = client.images.generate(
            model=settings.image_model,
            prompt=prompt,
            size=settings.image_size,
            timeout=settings.image_timeout_s,
        )
        first = result.data[0] if getattr(result, "data", None) else None
        b64 = getattr(first, "b64_json", None) if first is not None else None
        if b64:
            return f"data:image/png;base64,{b64}"
        url = getattr(first, "url", None) if first is not None else None
        if url:
            return url
        raise UpstreamFailure("No image data returned from OpenAI")

    return await _run_bounded(_call, settings.image_timeout_s, "Image generation")
