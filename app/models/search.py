# generated-by: codex-agent 2025-03-04T14:00:00Z
"""
Search, planner lookup and Pro verification schemas.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SearchType = Literal["web", "images"]


class SearchResponse(BaseModel):
    ok: bool = True
    type: SearchType
    q: str
    results: List[Dict[str, str]]


class GeoCenter(BaseModel):
    lat: float
    lng: float
    formatted: str


class PlannerResult(BaseModel):
    place_id: str
    name: Optional[str] = None
    formatted_address: Optional[str] = None
    formatted_phone_number: Optional[str] = None
    website: Optional[str] = None
    url: Optional[str] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    business_status: Optional[str] = None


class PlannersResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    zip: str
    center: GeoCenter
    radius_miles: float = Field(alias="radiusMiles")
    count: int
    results: List[PlannerResult]


class ProRequest(BaseModel):
    key: Optional[str] = None


class ProResponse(BaseModel):
    ok: bool = True
    pro: bool
    reason: Literal["missing_key", "valid", "invalid"]
