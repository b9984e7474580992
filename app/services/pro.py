# generated-by: codex-agent 2025-03-04T15:40:00Z
"""Pro unlock: a static license-key list from PRO_LICENSE_KEYS."""

from __future__ import annotations

from typing import Iterable, Optional

from app.core.config import settings
from app.models.search import ProResponse


def verify_pro_key(key: Optional[str], valid_keys: Optional[Iterable[str]] = None) -> ProResponse:
    candidate = (key or "").strip()
    if not candidate:
        return ProResponse(pro=False, reason="missing_key")
    keys = set(settings.pro_license_keys if valid_keys is None else valid_keys)
    is_valid = candidate in keys
    return ProResponse(pro=is_valid, reason="valid" if is_valid else "invalid")
