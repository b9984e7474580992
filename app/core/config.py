# generated-by: codex-agent 2025-03-02T09:10:00Z
"""
Runtime configuration loading for the Simo backend.

Defaults come from `.env.example`; environment variables override them so the
same build runs locally (memory store, inline worker) and deployed (Upstash
store, HTTP-dispatched worker).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import List, Literal, Optional

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator

StoreBackend = Literal["upstash", "memory"]
DispatchMode = Literal["inline", "http"]


class Settings(BaseModel):
    """Typed settings derived from .env.example with environment overrides."""

    model_config = ConfigDict(populate_by_name=True, validate_assignment=True)

    store_backend: StoreBackend = Field(alias="STORE_BACKEND")
    store_url: Optional[str] = Field(default=None, alias="UPSTASH_REDIS_REST_URL")
    store_token: Optional[str] = Field(default=None, alias="UPSTASH_REDIS_REST_TOKEN")
    store_timeout_s: float = Field(alias="STORE_TIMEOUT_S", gt=0)
    job_ttl_s: int = Field(alias="JOB_TTL_S", gt=0)
    job_key_prefix: str = Field(alias="JOB_KEY_PREFIX")

    dispatch_mode: DispatchMode = Field(alias="DISPATCH_MODE")
    worker_url: Optional[str] = Field(default=None, alias="WORKER_URL")
    dispatch_timeout_s: float = Field(alias="DISPATCH_TIMEOUT_S", gt=0)

    openai_api_key: Optional[str] = Field(default=None, alias="OPENAI_API_KEY")
    chat_model: str = Field(alias="OPENAI_MODEL")
    chat_temperature: float = Field(alias="CHAT_TEMPERATURE", ge=0, le=2)
    chat_timeout_s: float = Field(alias="CHAT_TIMEOUT_S", gt=0)
    image_model: str = Field(alias="IMAGE_MODEL")
    image_size: str = Field(alias="IMAGE_SIZE")
    image_timeout_s: float = Field(alias="IMAGE_TIMEOUT_S", gt=0)

    serper_api_key: Optional[str] = Field(default=None, alias="SERPER_API_KEY")
    google_places_api_key: Optional[str] = Field(default=None, alias="GOOGLE_PLACES_API_KEY")
    upstream_timeout_s: float = Field(alias="UPSTREAM_TIMEOUT_S", gt=0)

    pro_license_keys: List[str] = Field(default_factory=list, alias="PRO_LICENSE_KEYS")
    cors_origins: List[str] = Field(alias="CORS_ORIGINS")

    @field_validator("cors_origins", "pro_license_keys", mode="before")
    @classmethod
    def split_csv(cls, value: str | List[str] | None) -> List[str]:
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [item.strip() for item in value.split(",") if item.strip()]

    @field_validator("store_backend", "dispatch_mode", mode="before")
    @classmethod
    def normalize_choice(cls, value: str) -> str:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator(
        "store_url",
        "store_token",
        "worker_url",
        "openai_api_key",
        "serper_api_key",
        "google_places_api_key",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


def load_settings() -> Settings:
    """Load configuration using `.env.example` as the baseline."""

    repo_root = Path(__file__).resolve().parents[2]
    env_example = repo_root / ".env.example"
    defaults = dotenv_values(env_example) if env_example.exists() else {}

    merged: dict[str, Optional[str]] = {**defaults, **dict(os.environ)}

    required = {
        "STORE_BACKEND": "memory",
        "STORE_TIMEOUT_S": "5",
        "JOB_TTL_S": "600",
        "JOB_KEY_PREFIX": "img:",
        "DISPATCH_MODE": "inline",
        "DISPATCH_TIMEOUT_S": "5",
        "OPENAI_MODEL": "gpt-4o-mini",
        "CHAT_TEMPERATURE": "0.8",
        "CHAT_TIMEOUT_S": "30",
        "IMAGE_MODEL": "gpt-image-1",
        "IMAGE_SIZE": "1024x1536",
        "IMAGE_TIMEOUT_S": "120",
        "UPSTREAM_TIMEOUT_S": "8",
        "CORS_ORIGINS": "*",
    }
    for key, fallback in required.items():
        merged.setdefault(key, fallback)

    known = {field.alias for field in Settings.model_fields.values() if field.alias}
    return Settings(**{key: value for key, value in merged.items() if key in known})  # type: ignore[arg-type]


settings = load_settings()
