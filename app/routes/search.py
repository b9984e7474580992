# generated-by: codex-agent 2025-03-04T16:00:00Z
"""
Web/image search, planner lookup and Pro key verification.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from app.core.errors import ValidationError
from app.models.search import PlannersResponse, ProRequest, ProResponse, SearchResponse
from app.services.places import clamp_limit, clamp_radius_miles, find_planners
from app.services.pro import verify_pro_key
from app.services.search import clamp_num, search

router = APIRouter(tags=["Lookup"])


@router.get("/search", response_model=SearchResponse)
async def web_search(
    q: str = Query(default=""),
    type_: str = Query(default="web", alias="type"),
    num: Optional[str] = Query(default=None),
) -> SearchResponse:
    query = q.strip()
    if not query:
        raise ValidationError("Missing q", message="Missing q")
    search_type = "images" if type_.strip().lower() == "images" else "web"
    return await search(query, search_type, clamp_num(num, search_type))


@router.get("/planners", response_model=PlannersResponse)
async def planners(
    zip_: str = Query(default="", alias="zip"),
    limit: Optional[str] = Query(default=None),
    radius_miles: Optional[str] = Query(default=None, alias="radiusMiles"),
) -> PlannersResponse:
    zip_code = zip_.strip()
    if not zip_code:
        raise ValidationError(
            "Missing zip parameter. Example: ?zip=48044",
            message="Missing zip parameter",
        )
    return await find_planners(zip_code, clamp_limit(limit), clamp_radius_miles(radius_miles))


@router.post("/pro", response_model=ProResponse)
async def verify_pro(payload: ProRequest) -> ProResponse:
    return verify_pro_key(payload.key)
