# generated-by: codex-agent 2025-03-02T10:10:00Z
"""
Chat request/response schemas.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

MessageRole = Literal["user", "assistant"]
Intent = Literal["image", "math", "time", "weather", "location_request", "loop_fatigue", "chat"]


class ChatMessage(BaseModel):
    role: MessageRole
    content: str


class ClientTime(BaseModel):
    iso: Optional[str] = None
    tz: Optional[str] = None


class ClientLocation(BaseModel):
    lat: Optional[float] = None
    lon: Optional[float] = None


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    history: List[ChatMessage] = Field(default_factory=list)
    client_time: Optional[ClientTime] = Field(default=None, alias="clientTime")
    location: Optional[ClientLocation] = None
    zip: Optional[str] = None


class ChatReply(BaseModel):
    text: str
    intent: Intent
