# generated-by: codex-agent 2025-03-04T15:05:00Z
"""
Retirement-planner lookup over the Google Geocoding and Places APIs.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import settings
from app.core.errors import MissingConfiguration, UpstreamFailure
from app.models.search import GeoCenter, PlannerResult, PlannersResponse

logger = logging.getLogger("simo.places")

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
NEARBY_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"

PLANNER_KEYWORD = "financial planner retirement planning"
DETAIL_FIELDS = (
    "name",
    "formatted_address",
    "formatted_phone_number",
    "website",
    "url",
    "rating",
    "user_ratings_total",
    "business_status",
)
METERS_PER_MILE = 1609.34


def clamp_limit(raw: Optional[str]) -> int:
    try:
        value = int(str(raw).strip()) if raw not in (None, "") else 10
    except ValueError:
        value = 10
    return min(max(value or 10, 1), 15)


def clamp_radius_miles(raw: Optional[str]) -> float:
    try:
        value = float(str(raw).strip()) if raw not in (None, "") else 12.0
    except ValueError:
        value = 12.0
    if not math.isfinite(value) or value == 0:
        value = 12.0
    return min(max(value, 2.0), 25.0)


def popularity_score(place: Dict[str, Any]) -> float:
    """Rating weighted by log10 of the review count."""

    rating = place.get("rating") or 0
    reviews = place.get("user_ratings_total") or 1
    return rating * math.log10(reviews)


def rank_places(places: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(places, key=popularity_score, reverse=True)


def _summary_result(place: Dict[str, Any]) -> PlannerResult:
    return PlannerResult(
        place_id=place["place_id"],
        name=place.get("name"),
        formatted_address=place.get("vicinity"),
        rating=place.get("rating"),
        user_ratings_total=place.get("user_ratings_total"),
        business_status=place.get("business_status"),
    )


class PlacesClient:
    def __init__(self, api_key: str, http: httpx.AsyncClient) -> None:
        self._key = api_key
        self._http = http

    async def _get(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        try:
            resp = await self._http.get(url, params={**params, "key": self._key})
            return resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamFailure(f"Google API request failed: {exc}") from exc

    async def geocode_zip(self, zip_code: str) -> GeoCenter:
        data = await self._get(GEOCODE_URL, {"address": zip_code, "components": "country:US"})
        results = data.get("results") or []
        if data.get("status") != "OK" or not results:
            raise UpstreamFailure(f"Geocoding failed: {data.get('status')}")
        first = results[0]
        loc = first["geometry"]["location"]
        return GeoCenter(lat=loc["lat"], lng=loc["lng"], formatted=first.get("formatted_address", ""))

    async def nearby(self, center: GeoCenter, radius_m: int) -> List[Dict[str, Any]]:
        data = await self._get(
            NEARBY_URL,
            {
                "location": f"{center.lat},{center.lng}",
                "radius": str(radius_m),
                "keyword": PLANNER_KEYWORD,
                "type": "finance",
            },
        )
        if data.get("status") not in ("OK", "ZERO_RESULTS"):
            raise UpstreamFailure(f"Nearby search failed: {data.get('status')}")
        return data.get("results") or []

    async def details(self, place_id: str) -> Dict[str, Any]:
        data = await self._get(DETAILS_URL, {"place_id": place_id, "fields": ",".join(DETAIL_FIELDS)})
        if data.get("status") != "OK" or not data.get("result"):
            raise UpstreamFailure(f"Details failed: {data.get('status')}")
        return data["result"]


async def find_planners(
    zip_code: str,
    limit: int = 10,
    radius_miles: float = 12.0,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> PlannersResponse:
    if not settings.google_places_api_key:
        raise MissingConfiguration("Missing GOOGLE_PLACES_API_KEY")

    own_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.upstream_timeout_s)
    places = PlacesClient(settings.google_places_api_key, http)
    try:
        center = await places.geocode_zip(zip_code)
        nearby = await places.nearby(center, round(radius_miles * METERS_PER_MILE))
        results: List[PlannerResult] = []
        for place in rank_places(nearby)[:limit]:
            try:
                detail = await places.details(place["place_id"])
            except UpstreamFailure as exc:
                logger.info("Details for %s unavailable (%s); using nearby summary", place["place_id"], exc)
                results.append(_summary_result(place))
                continue
            results.append(
                PlannerResult(
                    place_id=place["place_id"],
                    name=detail.get("name"),
                    formatted_address=detail.get("formatted_address"),
                    formatted_phone_number=detail.get("formatted_phone_number"),
                    website=detail.get("website"),
                    url=detail.get("url"),
                    rating=detail.get("rating"),
                    user_ratings_total=detail.get("user_ratings_total"),
                    business_status=detail.get("business_status"),
                )
            )
    finally:
        if own_client:
            await http.aclose()

    return PlannersResponse(
        zip=zip_code,
        center=center,
        radius_miles=radius_miles,
        count=len(results),
        results=results,
    )
