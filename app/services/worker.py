# generated-by: codex-agent 2025-03-02T12:40:00Z
"""
Image job worker: drives one job id from `running` to `done` or `error`.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from app.core.errors import JobConflict, StoreUnavailable, UpstreamFailure
from app.models.jobs import JobRecord
from app.services.jobs import JobService
from app.services.llm import generate_image

logger = logging.getLogger("simo.worker")

ImageGenerator = Callable[[str], Awaitable[str]]

IMAGE_PROMPT_PREAMBLE = (
    "Create a professional book cover concept for a story about a factory worker with big dreams.\n"
    "Mood: gritty but hopeful. Cinematic lighting. Strong composition with clean title space.\n"
    "No readable text inside the image (leave space for title and author)."
)


def build_image_prompt(user_prompt: str) -> str:
    return f"{IMAGE_PROMPT_PREAMBLE}\nUser request: {user_prompt.strip()}"


async def run_image_job(
    jobs: JobService,
    job_id: str,
    prompt: str,
    generate: ImageGenerator | None = None,
) -> JobRecord:
    """Run the generation call once and persist the terminal state.

    Raises UpstreamFailure after the `error` record is written, JobConflict when
    another worker already moved the job, StoreUnavailable when the store
    cannot be written.
    """

    generate = generate or generate_image
    await jobs.transition(job_id, "running")
    logger.info("Job %s running", job_id)

    try:
        image = await generate(build_image_prompt(prompt))
        if not image:
            raise UpstreamFailure("No image data returned from OpenAI")
    except Exception as exc:
        message = str(exc) or exc.__class__.__name__
        logger.warning("Job %s generation failed: %s", job_id, message)
        try:
            await jobs.transition(job_id, "error", error=message)
        except (JobConflict, StoreUnavailable):
            logger.exception("Job %s could not record its failure", job_id)
        raise UpstreamFailure(message, message="Image worker failed") from exc

    record = await jobs.transition(job_id, "done", result=image)
    logger.info("Job %s done", job_id)
    return record
