"""
Submit one message to a running Simo API and follow the image job to the end.

Usage:
  python scripts/image_job_smoke.py --base http://localhost:8000 "show me a book cover"
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

import httpx

from app.services.poller import JobFailed, JobPoller, PollerError


def log(step: str, msg: str) -> None:
    print(f"[{step}] {msg}")


async def run(base: str, message: str, max_wait: float) -> int:
    async with httpx.AsyncClient(base_url=base, timeout=10.0) as client:
        poller = JobPoller(client, max_wait_s=max_wait)
        try:
            outcome = await poller.run(message, on_status=lambda s: log("job", f"status={s}"))
        except JobFailed as exc:
            log("job", f"error: {exc.error}")
            return 1
        except PollerError as exc:
            log("error", str(exc))
            return 2
    if "text" in outcome:
        log("reply", outcome["text"])
    else:
        result = outcome.get("result", "")
        log("done", result if len(result) < 120 else result[:117] + "...")
    return 0


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("message", nargs="?", default="show me a book cover")
    ap.add_argument("--base", default=os.environ.get("SIMO_BASE_URL", "http://localhost:8000"))
    ap.add_argument("--max-wait", type=float, default=float(os.environ.get("SMOKE_MAX_WAIT", "180")))
    args = ap.parse_args()
    sys.exit(asyncio.run(run(args.base.rstrip("/"), args.message, args.max_wait)))


if __name__ == "__main__":
    main()
