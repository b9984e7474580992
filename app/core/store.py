# generated-by: codex-agent 2025-03-02T09:40:00Z
"""
Key-value job store with per-key expiry.

Two backends share the `JobStore` contract: the Upstash REST protocol (a
Redis-compatible store reached over HTTPS, used in deployment) and an
in-process dict used for local runs and tests. Values are JSON objects.
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple

import httpx

from app.core.config import Settings, settings
from app.core.errors import MissingConfiguration, StoreUnavailable

logger = logging.getLogger("simo.store")

SELF_TEST_PREFIX = "selftest:"
SELF_TEST_TTL_S = 30

# KEYS[1] = record key; ARGV = expected version ("" = key must be absent), payload, ttl
_CAS_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if ARGV[1] == '' then
  if current then return 0 end
else
  if not current then return 0 end
  local ok, doc = pcall(cjson.decode, current)
  if not ok or type(doc) ~= 'table' then return 0 end
  if tostring(doc['version']) ~= ARGV[1] then return 0 end
end
redis.call('SET', KEYS[1], ARGV[2], 'EX', tonumber(ARGV[3]))
return 1
"""


class JobStore(ABC):
    """Minimal key-value contract the job handlers depend on."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the stored object, or None when the key is absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Dict[str, Any], ttl_s: int) -> None:
        """Store `value` under `key`, replacing any previous value."""

    @abstractmethod
    async def compare_and_set(
        self,
        key: str,
        value: Dict[str, Any],
        ttl_s: int,
        expected_version: Optional[int],
    ) -> bool:
        """Write only if the stored `version` equals `expected_version`.

        `expected_version=None` means the key must not exist. Returns True when
        the write happened.
        """

    async def self_test(self) -> bool:
        """Write a canary value, read it back and compare."""

        key = f"{SELF_TEST_PREFIX}{secrets.token_hex(8)}"
        canary = {"canary": secrets.token_hex(8)}
        try:
            await self.set(key, canary, SELF_TEST_TTL_S)
            echoed = await self.get(key)
        except StoreUnavailable as exc:
            logger.warning("Store self-test failed: %s", exc)
            return False
        if echoed != canary:
            logger.warning("Store self-test read back %r, expected %r", echoed, canary)
            return False
        return True

    async def ensure_available(self) -> None:
        if not await self.self_test():
            raise StoreUnavailable("Store self-test failed (write/read canary mismatch or unreachable)")

    async def close(self) -> None:
        return None


class MemoryJobStore(JobStore):
    """Single-process store; expiry is evaluated lazily on access."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._items: Dict[str, Tuple[float, str]] = {}

    def _live(self, key: str) -> Optional[str]:
        entry = self._items.get(key)
        if entry is None:
            return None
        expires_at, raw = entry
        if expires_at <= self._clock():
            del self._items[key]
            return None
        return raw

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = self._live(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Dict[str, Any], ttl_s: int) -> None:
        self._items[key] = (self._clock() + ttl_s, json.dumps(value))

    async def compare_and_set(
        self,
        key: str,
        value: Dict[str, Any],
        ttl_s: int,
        expected_version: Optional[int],
    ) -> bool:
        # No await between read and write: atomic on a single event loop.
        raw = self._live(key)
        if expected_version is None:
            if raw is not None:
                return False
        else:
            if raw is None or json.loads(raw).get("version") != expected_version:
                return False
        self._items[key] = (self._clock() + ttl_s, json.dumps(value))
        return True


class UpstashJobStore(JobStore):
    """Upstash REST client: each command is a JSON array POSTed to the base URL."""

    def __init__(
        self,
        url: str,
        token: str,
        *,
        timeout_s: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url.rstrip("/")
        self._token = token
        self._timeout = timeout_s
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Authorization": f"Bearer {self._token}"},
                transport=self._transport,
            )
        return self._client

    async def _command(self, *args: Any) -> Any:
        command = [str(arg) for arg in args]
        try:
            resp = await self._http().post(self._url, json=command)
        except httpx.HTTPError as exc:
            raise StoreUnavailable(f"{command[0]} failed: {exc.__class__.__name__}: {exc}") from exc
        try:
            body = resp.json()
        except ValueError as exc:
            raise StoreUnavailable(f"{command[0]} returned non-JSON response (HTTP {resp.status_code})") from exc
        if resp.status_code != 200 or not isinstance(body, dict) or "error" in body:
            error = body.get("error") if isinstance(body, dict) else body
            raise StoreUnavailable(f"{command[0]} rejected (HTTP {resp.status_code}): {error}")
        return body.get("result")

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = await self._command("GET", key)
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as exc:
            raise StoreUnavailable(f"GET {key} returned undecodable value") from exc
        return value if isinstance(value, dict) else {"value": value}

    async def set(self, key: str, value: Dict[str, Any], ttl_s: int) -> None:
        await self._command("SET", key, json.dumps(value), "EX", ttl_s)

    async def compare_and_set(
        self,
        key: str,
        value: Dict[str, Any],
        ttl_s: int,
        expected_version: Optional[int],
    ) -> bool:
        expected = "" if expected_version is None else str(expected_version)
        result = await self._command("EVAL", _CAS_SCRIPT, 1, key, expected, json.dumps(value), ttl_s)
        return int(result or 0) == 1

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class UnconfiguredJobStore(JobStore):
    """Stands in when the backend has no credentials; every operation reports an outage."""

    def __init__(self, reason: str) -> None:
        self.reason = reason

    def _unavailable(self) -> StoreUnavailable:
        return StoreUnavailable(self.reason, message="Job store is not configured")

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise self._unavailable()

    async def set(self, key: str, value: Dict[str, Any], ttl_s: int) -> None:
        raise self._unavailable()

    async def compare_and_set(
        self,
        key: str,
        value: Dict[str, Any],
        ttl_s: int,
        expected_version: Optional[int],
    ) -> bool:
        raise self._unavailable()

    async def ensure_available(self) -> None:
        raise self._unavailable()


def build_store(cfg: Settings) -> JobStore:
    if cfg.store_backend == "memory":
        logger.info("Using in-memory job store (single process only)")
        return MemoryJobStore()
    if not cfg.store_url or not cfg.store_token:
        raise MissingConfiguration(
            "Missing UPSTASH_REDIS_REST_URL or UPSTASH_REDIS_REST_TOKEN",
            message="Job store is not configured",
        )
    return UpstashJobStore(cfg.store_url, cfg.store_token, timeout_s=cfg.store_timeout_s)


_store: JobStore | None = None


def get_store() -> JobStore:
    global _store
    if _store is None:
        try:
            _store = build_store(settings)
        except MissingConfiguration as exc:
            # Not cached: operations fail as an outage, the probes report storeOk=false.
            logger.error("Job store is not configured: %s", exc.detail)
            return UnconfiguredJobStore(exc.detail or exc.message)
    return _store


async def close_store() -> None:
    global _store
    if _store is not None:
        await _store.close()
        _store = None
