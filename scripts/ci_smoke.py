"""
Minimal CI smoke test against a running API instance.

Checks:
- GET /api/health returns 200 and JSON
- GET /api/simo/job (no id) reports the store self-test
- GET /api/simo/job?id=<random> returns 404
- POST /api/simo with an empty message returns 400
- POST /api/pro with no key reports missing_key

Usage:
  python scripts/ci_smoke.py --base http://localhost:8000/api
"""

from __future__ import annotations

import argparse
import os
import random
import string

import httpx


def _rand_id() -> str:
    return "ci-smoke-" + "".join(random.choices(string.ascii_lowercase + string.digits, k=8))


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--base", default=os.environ.get("API_BASE", "http://localhost:8000/api"))
    args = ap.parse_args()

    base = args.base.rstrip("/")

    with httpx.Client(timeout=10.0) as client:
        # Health
        r = client.get(f"{base}/health")
        r.raise_for_status()
        assert r.headers.get("content-type", "").startswith("application/json")

        # Store probe
        r = client.get(f"{base}/simo/job")
        r.raise_for_status()
        assert r.json()["storeOk"] is True, r.json()

        # Unknown job
        r = client.get(f"{base}/simo/job", params={"id": _rand_id()})
        assert r.status_code == 404, r.text

        # Validation
        r = client.post(f"{base}/simo", json={"message": ""})
        assert r.status_code == 400, r.text

        # Pro
        r = client.post(f"{base}/pro", json={})
        r.raise_for_status()
        assert r.json()["reason"] == "missing_key"

    print("SMOKE_OK", base)


if __name__ == "__main__":
    main()
