# generated-by: codex-agent 2025-03-05T09:30:00Z
"""
Current conditions for chat replies: US ZIP -> lat/lon via Zippopotam, then
Open-Meteo. Lookups return None on upstream trouble so the chat reply can
ask the user to try again instead of failing the request.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger("simo.weather")

ZIPPOPOTAM_URL = "https://api.zippopotam.us/us/{zip}"
OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
CURRENT_FIELDS = "temperature_2m,apparent_temperature,precipitation,weather_code,wind_speed_10m"

_ZIP_RE = re.compile(r"^[0-9]{5}(?:-[0-9]{4})?$")
_ZIP_IN_TEXT_RE = re.compile(r"\b\d{5}(?:-\d{4})?\b")


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float
    label: str


@dataclass(frozen=True)
class Conditions:
    temp_f: float
    feels_f: float
    wind_mph: float
    precip_in: float
    code: Optional[int]
    tz: Optional[str] = None


def is_probably_zip(text: str) -> bool:
    return bool(_ZIP_RE.match((text or "").strip()))


def zip_in_text(text: str) -> Optional[str]:
    match = _ZIP_IN_TEXT_RE.search(text or "")
    return match.group(0) if match else None


def code_to_summary(code: Any) -> str:
    """WMO weather code to a short phrase."""

    try:
        c = int(code)
    except (TypeError, ValueError):
        return "weather"
    if c == 0:
        return "clear"
    if c in (1, 2):
        return "mostly clear"
    if c == 3:
        return "cloudy"
    if c in (45, 48):
        return "foggy"
    if 51 <= c <= 57:
        return "drizzle"
    if 61 <= c <= 67:
        return "rain"
    if 71 <= c <= 77:
        return "snow"
    if 80 <= c <= 82:
        return "rain showers"
    if 85 <= c <= 86:
        return "snow showers"
    if c == 95:
        return "thunderstorms"
    if c in (96, 99):
        return "thunderstorms with hail"
    return "mixed conditions"


def describe(conditions: Conditions, label: str) -> str:
    summary = code_to_summary(conditions.code)
    text = (
        f"Right now in {label}: {round(conditions.temp_f)}°F (feels like {round(conditions.feels_f)}°F), "
        f"{summary}. Wind ~{round(conditions.wind_mph)} mph."
    )
    if conditions.precip_in and conditions.precip_in > 0:
        text += f" Precip: {conditions.precip_in:.2f} in."
    return text


async def _get_json(http: httpx.AsyncClient, url: str, params: Optional[Dict[str, str]] = None) -> Optional[Dict[str, Any]]:
    try:
        resp = await http.get(url, params=params)
    except httpx.HTTPError as exc:
        logger.warning("GET %s failed: %s: %s", url, exc.__class__.__name__, exc)
        return None
    if resp.status_code != 200:
        logger.info("GET %s answered HTTP %s", url, resp.status_code)
        return None
    try:
        data = resp.json()
    except ValueError:
        logger.warning("GET %s returned non-JSON body", url)
        return None
    return data if isinstance(data, dict) else None


async def zip_to_point(zip_code: str, *, client: Optional[httpx.AsyncClient] = None) -> Optional[GeoPoint]:
    own_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.upstream_timeout_s)
    try:
        data = await _get_json(http, ZIPPOPOTAM_URL.format(zip=zip_code.strip()))
    finally:
        if own_client:
            await http.aclose()
    places = (data or {}).get("places") or []
    if not places:
        return None
    place = places[0]
    try:
        lat = float(place["latitude"])
        lon = float(place["longitude"])
    except (KeyError, TypeError, ValueError):
        return None
    label = f"{place.get('place name', '')}, {place.get('state abbreviation', '')} {data.get('post code', zip_code)}"
    return GeoPoint(lat=lat, lon=lon, label=label)


async def current_conditions(
    lat: float,
    lon: float,
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[Conditions]:
    params = {
        "latitude": str(lat),
        "longitude": str(lon),
        "current": CURRENT_FIELDS,
        "temperature_unit": "fahrenheit",
        "wind_speed_unit": "mph",
        "precipitation_unit": "inch",
        "timezone": "auto",
    }
    own_client = client is None
    http = client or httpx.AsyncClient(timeout=settings.upstream_timeout_s)
    try:
        data = await _get_json(http, OPEN_METEO_URL, params)
    finally:
        if own_client:
            await http.aclose()
    current = (data or {}).get("current")
    if not current:
        return None
    try:
        return Conditions(
            temp_f=float(current["temperature_2m"]),
            feels_f=float(current["apparent_temperature"]),
            wind_mph=float(current["wind_speed_10m"]),
            precip_in=float(current.get("precipitation") or 0),
            code=current.get("weather_code"),
            tz=data.get("timezone"),
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("Open-Meteo response missing current fields: %r", current)
        return None
