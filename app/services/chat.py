# generated-by: codex-agent 2025-03-03T09:15:00Z
"""
Message handling for `/api/simo`: image requests become background jobs;
arithmetic, time, weather and a few canned replies are answered locally;
everything else goes to the chat model.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.errors import ValidationError
from app.models.chat import ChatMessage, ChatReply, ChatRequest, ClientLocation, ClientTime
from app.models.jobs import JobAccepted
from app.services import weather
from app.services.dispatch import DispatchFailed, Dispatcher
from app.services.intent import classify, evaluate_math, format_number, wants_steps
from app.services.jobs import JobService
from app.services.llm import generate_chat_completion

logger = logging.getLogger("simo.chat")

HISTORY_TURNS = 12

IMAGE_ACK = "On it. I'm cooking up your image now, it usually takes under a minute."
MATH_RETRY = "Give me the exact expression (e.g., `217 x 22`)."
TIME_NEEDS_CLIENT = "Tell me your city/timezone (or refresh the page) and I'll tell you the time."
LOCATION_PROMPT = "Yep. Tap **Use my location** or type your ZIP/city and I'll pull the weather."
WEATHER_NEEDS_PLACE = "Send your ZIP or tap **Use my location** and I'll give the current weather."
WEATHER_BAD_ZIP = "That ZIP didn't resolve. Try again (5 digits) or give city/state."
WEATHER_UNAVAILABLE = (
    "Weather's glitching on my end. Try again, or tell me what you're planning and I'll help you plan around it."
)
LOOP_FATIGUE_REPLY = (
    "Yeah... that loop is exhausting. No more circles.\n\n"
    "Pick one:\n"
    "1) One sentence: what do you want from them?\n"
    "2) Copy/paste what they said that set you off.\n"
    "3) Just vent. I'm here, no lectures."
)

SIMO_SYSTEM_PROMPT = """
You are Simo: the user's private best friend who can handle anything on a moment's notice.

Style:
- Human, warm, confident, calm. Match the user's tone.
- No therapy-speak by default. No generic "communicate better" lectures unless asked.
- Keep answers efficient; don't over-explain.

Rules:
- Math: give ONLY the answer unless they ask for steps.
- Time/weather/location: do NOT refuse or loop. If info exists, answer. If missing, ask once.
- If you don't know something, say so. Never make things up.
- If the user is tired of a repeating argument loop: one empathic line + 2-3 options. No lectures.
""".strip()


def _has_point(location: Optional[ClientLocation]) -> bool:
    return location is not None and location.lat is not None and location.lon is not None


def build_system_prompt(payload: ChatRequest) -> str:
    ct = payload.client_time
    zip_code = (payload.zip or "").strip()
    context = [
        f"Client time available: {ct.iso} ({ct.tz})." if ct and ct.iso and ct.tz else "Client time not provided.",
        f"Client location available: lat {payload.location.lat}, lon {payload.location.lon}."
        if _has_point(payload.location)
        else "Client location not provided.",
        f"ZIP provided: {zip_code}." if zip_code else "ZIP not provided.",
    ]
    return SIMO_SYSTEM_PROMPT + "\n\nContext:\n" + "\n".join(f"- {line}" for line in context)


def _build_messages(payload: ChatRequest, message: str) -> List[dict]:
    turns = [{"role": turn.role, "content": turn.content} for turn in payload.history if turn.content.strip()]
    return [
        {"role": "system", "content": build_system_prompt(payload)},
        *turns[-HISTORY_TURNS:],
        {"role": "user", "content": message},
    ]


def format_client_time(client_time: Optional[ClientTime]) -> Optional[str]:
    """Render the browser's clock in its own timezone, e.g. "Monday, March 2, 2026 at 3:05 PM"."""

    if client_time is None or not client_time.iso or not client_time.tz:
        return None
    try:
        moment = datetime.fromisoformat(client_time.iso.strip().replace("Z", "+00:00"))
        zone = ZoneInfo(client_time.tz)
    except (ValueError, ZoneInfoNotFoundError):
        logger.info("Unusable client time %r", client_time)
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=zone)
    local = moment.astimezone(zone)
    hour = local.hour % 12 or 12
    return f"{local:%A}, {local:%B} {local.day}, {local.year} at {hour}:{local:%M} {local:%p}"


async def answer_weather(payload: ChatRequest, message: str) -> str:
    zip_code = (payload.zip or "").strip()
    point: Optional[weather.GeoPoint] = None

    if zip_code and weather.is_probably_zip(zip_code):
        point = await weather.zip_to_point(zip_code)
        if point is None:
            return WEATHER_BAD_ZIP
    elif _has_point(payload.location):
        point = weather.GeoPoint(lat=payload.location.lat, lon=payload.location.lon, label="your area")
    else:
        mentioned = weather.zip_in_text(message)
        if mentioned:
            point = await weather.zip_to_point(mentioned)

    if point is None:
        return WEATHER_NEEDS_PLACE

    conditions = await weather.current_conditions(point.lat, point.lon)
    if conditions is None:
        return WEATHER_UNAVAILABLE
    return weather.describe(conditions, point.label)


async def start_image_job(message: str, jobs: JobService, dispatcher: Dispatcher) -> JobAccepted:
    # Fail before writing anything so an outage never leaves orphaned pending jobs.
    await jobs.store.ensure_available()
    record = await jobs.create()
    outcome = await dispatcher.dispatch(record.id, message)
    if isinstance(outcome, DispatchFailed):
        logger.warning("Job %s accepted but not dispatched: %s", record.id, outcome.reason)
    return JobAccepted(text=IMAGE_ACK, job_id=record.id)


async def handle_message(
    payload: ChatRequest,
    jobs: JobService,
    dispatcher: Dispatcher,
) -> Union[JobAccepted, ChatReply]:
    message = (payload.message or "").strip()
    if not message:
        raise ValidationError("Missing message", message="Missing message")

    intent = classify(message)
    logger.info("Message classified as %s", intent)

    if intent == "image":
        return await start_image_job(message, jobs, dispatcher)

    if intent == "math":
        value = evaluate_math(message)
        if value is None:
            return ChatReply(text=MATH_RETRY, intent=intent)
        if not wants_steps(message):
            return ChatReply(text=format_number(value), intent=intent)

    if intent == "time":
        readable = format_client_time(payload.client_time)
        if readable is None:
            return ChatReply(text=TIME_NEEDS_CLIENT, intent=intent)
        return ChatReply(text=f"It's {readable} ({payload.client_time.tz}).", intent=intent)

    if intent == "location_request":
        return ChatReply(text=LOCATION_PROMPT, intent=intent)

    if intent == "weather":
        return ChatReply(text=await answer_weather(payload, message), intent=intent)

    if intent == "loop_fatigue":
        return ChatReply(text=LOOP_FATIGUE_REPLY, intent=intent)

    text = await generate_chat_completion(_build_messages(payload, message))
    return ChatReply(text=text, intent=intent)
