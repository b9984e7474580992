# generated-by: codex-agent 2025-03-04T14:20:00Z
"""
Serper web/image search proxy with normalized result shapes.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.errors import MissingConfiguration, UpstreamFailure
from app.models.search import SearchResponse, SearchType

logger = logging.getLogger("simo.search")

SERPER_ENDPOINTS = {
    "web": "https://google.serper.dev/search",
    "images": "https://google.serper.dev/images",
}
MAX_RESULTS = 20
_LEADING_INT_RE = re.compile(r"\s*[+-]?\d+")


def clamp_num(raw: Optional[str], search_type: SearchType) -> int:
    """Leading integer of `raw` clamped to 1..20 ("5abc" reads as 5)."""

    fallback = 12 if search_type == "images" else 10
    match = _LEADING_INT_RE.match(raw or "")
    if match is None:
        return fallback
    return max(1, min(MAX_RESULTS, int(match.group(0))))


def normalize_images(data: Dict[str, Any], num: int) -> List[Dict[str, str]]:
    results = []
    for img in (data.get("images") or [])[:num]:
        entry = {
            "title": img.get("title") or img.get("source") or "Image",
            "imageUrl": img.get("imageUrl") or img.get("thumbnailUrl") or img.get("url") or "",
            "thumbnailUrl": img.get("thumbnailUrl") or img.get("imageUrl") or "",
            "source": img.get("source") or "",
            "link": img.get("link") or img.get("url") or "",
        }
        if entry["imageUrl"] or entry["thumbnailUrl"]:
            results.append(entry)
    return results


def normalize_web(data: Dict[str, Any], num: int) -> List[Dict[str, str]]:
    results = []
    for item in (data.get("organic") or [])[:num]:
        entry = {
            "title": item.get("title") or "",
            "link": item.get("link") or "",
            "snippet": item.get("snippet") or "",
        }
        if entry["title"] or entry["link"]:
            results.append(entry)
    return results


async def search(
    q: str,
    search_type: SearchType = "web",
    num: int = 10,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> SearchResponse:
    if not settings.serper_api_key:
        raise MissingConfiguration("Missing SERPER_API_KEY")

    own_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.upstream_timeout_s)
    try:
        resp = await http.post(
            SERPER_ENDPOINTS[search_type],
            json={"q": q, "num": num},
            headers={"X-API-KEY": settings.serper_api_key},
        )
    except httpx.HTTPError as exc:
        raise UpstreamFailure(f"Serper request failed: {exc}", message="Serper error") from exc
    finally:
        if own_client:
            await http.aclose()

    if resp.status_code != 200:
        raise UpstreamFailure(resp.text[:500], message="Serper error")
    try:
        data = resp.json()
    except ValueError as exc:
        raise UpstreamFailure("Serper returned non-JSON response", message="Serper error") from exc

    if search_type == "images":
        results = normalize_images(data, num)
    else:
        results = normalize_web(data, num)
    logger.info("Serper %s search returned %d results", search_type, len(results))
    return SearchResponse(type=search_type, q=q, results=results)
