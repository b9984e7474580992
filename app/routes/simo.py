# generated-by: codex-agent 2025-03-03T10:20:00Z
"""
Chat + image job endpoints: enqueue, worker, poll.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from app.core.errors import NotFound, ValidationError
from app.dependencies.services import get_dispatcher, get_jobs
from app.models.chat import ChatReply, ChatRequest
from app.models.jobs import JobAccepted, StoreProbe, WorkerRequest, WorkerResponse
from app.services.chat import handle_message
from app.services.dispatch import Dispatcher
from app.services.jobs import JobService
from app.services.worker import run_image_job

router = APIRouter(prefix="/simo", tags=["Simo"])


@router.post(
    "",
    responses={
        status.HTTP_200_OK: {"model": ChatReply},
        status.HTTP_202_ACCEPTED: {"model": JobAccepted},
    },
)
async def send_message(
    payload: ChatRequest,
    jobs: JobService = Depends(get_jobs),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> JSONResponse:
    outcome = await handle_message(payload, jobs, dispatcher)
    if isinstance(outcome, JobAccepted):
        return JSONResponse(status_code=status.HTTP_202_ACCEPTED, content=outcome.model_dump(by_alias=True))
    return JSONResponse(status_code=status.HTTP_200_OK, content=outcome.model_dump())


@router.post("/worker", response_model=WorkerResponse)
async def image_worker(payload: WorkerRequest, jobs: JobService = Depends(get_jobs)) -> WorkerResponse:
    job_id = (payload.id or "").strip()
    prompt = (payload.prompt or "").strip()
    if not job_id or not prompt:
        raise ValidationError("Missing id or prompt", message="Missing id or prompt")
    await run_image_job(jobs, job_id, prompt)
    return WorkerResponse(ok=True)


@router.get("/job")
async def poll_job(
    id_: Optional[str] = Query(default=None, alias="id"),
    jobs: JobService = Depends(get_jobs),
) -> JSONResponse:
    job_id = (id_ or "").strip()
    if not job_id:
        probe = StoreProbe(store_ok=await jobs.store.self_test())
        return JSONResponse(content=probe.model_dump(by_alias=True))
    record = await jobs.get_raw(job_id)
    if record is None:
        raise NotFound(f"No job {job_id} (expired or never created)", message="Job not found")
    return JSONResponse(content=record)
