"""TTL key-value store abstractions with in-process and Redis implementations."""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger("salesbot.cache")


class TTLStore(ABC):
    """Abstract JSON key-value cache with per-key expiry.

    Implementations degrade to "always miss" on backend failure: ``get`` returns
    ``None`` and ``set``/``delete`` return ``False`` instead of raising.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the decoded value for ``key`` or ``None`` when absent."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        """Store a JSON-serialisable value, optionally expiring after ``ttl_seconds``."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove ``key``; return whether something was deleted."""

    async def ping(self) -> bool:
        """Report whether the backend is reachable."""

        return True

    async def close(self) -> None:
        """Release backend resources."""


class InMemoryTTLStore(TTLStore):
    """Process-local store used in development and tests.

    Values are kept serialised so callers never share mutable state with the
    cache, matching what a networked store would hand back.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[float | None, str]] = {}

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, raw = entry
        if expires_at is not None and self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return json.loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        try:
            raw = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError):
            logger.warning("Refusing to cache non-serialisable value for key %s", key)
            return False
        expires_at = self._clock() + ttl_seconds if ttl_seconds else None
        self._entries[key] = (expires_at, raw)
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def __len__(self) -> int:
        return len(self._entries)


class RedisTTLStore(TTLStore):
    """Redis-backed store; connection problems are logged and treated as misses."""

    def __init__(
        self,
        url: str,
        *,
        socket_timeout: float = 5.0,
        socket_connect_timeout: float = 5.0,
    ) -> None:
        self._url = url
        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_connect_timeout,
        )

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except RedisError as exc:
            logger.warning("Redis get failed for key %s: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        try:
            raw = json.dumps(value, separators=(",", ":"))
        except (TypeError, ValueError):
            logger.warning("Refusing to cache non-serialisable value for key %s", key)
            return False
        try:
            if ttl_seconds:
                await self._client.set(key, raw, ex=ttl_seconds)
            else:
                await self._client.set(key, raw)
        except RedisError as exc:
            logger.warning("Redis set failed for key %s: %s", key, exc)
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._client.delete(key))
        except RedisError as exc:
            logger.warning("Redis delete failed for key %s: %s", key, exc)
            return False

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()


def create_ttl_store(redis_url: str | None) -> TTLStore:
    """Return a Redis store for a valid URL, otherwise an in-process store."""

    if not redis_url or not redis_url.strip():
        logger.info("Redis URL not provided; using in-process cache")
        return InMemoryTTLStore()
    if not redis_url.startswith(("redis://", "rediss://", "unix://")):
        logger.warning("Redis URL format invalid; using in-process cache")
        return InMemoryTTLStore()
    return RedisTTLStore(redis_url)
