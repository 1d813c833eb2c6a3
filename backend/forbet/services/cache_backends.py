"""
backend/forbet/services/cache_backends.py

Purpose:
    Uniform key/value cache contract with per-entry expiry and three
    interchangeable backends: in-process memory, Redis, and MongoDB.
    Backend failures never reach callers; they are logged and read as a
    miss (get) or ignored (set/delete).

Dependencies:
    - redis.asyncio
    - motor.motor_asyncio
    - forbet.config
    - forbet.utils
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Callable

import redis.asyncio as redis
from motor.motor_asyncio import AsyncIOMotorClient

from forbet.config import Settings
from forbet.utils import ensure_utc, utcnow

logger = logging.getLogger("forbet.cache")


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), default=str)


def _loads(raw: str | bytes | None) -> Any:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        return json.loads(raw)
    except ValueError:
        # Entries written by other tooling may be plain text.
        return raw


class CacheClient(ABC):
    """Async cache contract. Implementations must never raise from get/set/delete."""

    backend_name = "abstract"

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    async def clear(self) -> None:
        """Drop every entry the backend owns (best effort)."""

    @abstractmethod
    def is_connected(self) -> bool:
        ...

    async def start(self) -> None:
        """Start background work owned by the backend."""

    async def close(self) -> None:
        """Stop background work and release connections."""


class MemoryCacheClient(CacheClient):
    """Process-local cache with lazy expiry plus a periodic sweep task."""

    backend_name = "memory"

    def __init__(self, sweep_interval_seconds: float = 300.0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        # key -> (expires_at monotonic, json text)
        self._store: dict[str, tuple[float, str]] = {}
        self._sweep_interval = float(sweep_interval_seconds)
        self._sweep_task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._store)

    async def get(self, key: str) -> Any | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        expires_at, raw = entry
        if self._clock() >= expires_at:
            self._store.pop(key, None)
            return None
        return _loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            raw = _dumps(value)
        except (TypeError, ValueError) as exc:
            logger.error("Cache value for [%s] is not JSON-serializable: %s", key, exc)
            return
        self._store[key] = (self._clock() + max(0, int(ttl_seconds)), raw)
        logger.debug("Cache set in memory [%s] TTL: %ss", key, ttl_seconds)

    async def delete(self, key: str) -> None:
        self._store.pop(key, None)
        logger.debug("Cache removed from memory [%s]", key)

    async def clear(self) -> None:
        self._store.clear()
        logger.info("Memory cache cleared")

    def is_connected(self) -> bool:
        return True

    def sweep(self) -> int:
        """Evict expired entries; returns how many were removed."""
        now = self._clock()
        expired = [key for key, (expires_at, _) in self._store.items() if now >= expires_at]
        for key in expired:
            self._store.pop(key, None)
        if expired:
            logger.info("Cache sweep removed %d expired entries", len(expired))
        return len(expired)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()

    async def start(self) -> None:
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        self._sweep_task = asyncio.create_task(self._sweep_loop(), name="forbet-cache-sweep")

    async def close(self) -> None:
        task = self._sweep_task
        self._sweep_task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


class RedisCacheClient(CacheClient):
    """Redis-backed cache using native key expiry (SET ... EX)."""

    backend_name = "redis"

    def __init__(self, url: str, *, client: Any | None = None) -> None:
        self._client = client if client is not None else redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
        )
        self._connected = True

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(key)
        except Exception as exc:
            self._connected = False
            logger.error("Redis cache get failed [%s]: %s", key, exc)
            return None
        self._connected = True
        return _loads(raw)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            raw = _dumps(value)
        except (TypeError, ValueError) as exc:
            logger.error("Cache value for [%s] is not JSON-serializable: %s", key, exc)
            return
        try:
            await self._client.set(key, raw, ex=max(1, int(ttl_seconds)))
        except Exception as exc:
            self._connected = False
            logger.error("Redis cache set failed [%s]: %s", key, exc)
            return
        self._connected = True
        logger.debug("Cache set in redis [%s] TTL: %ss", key, ttl_seconds)

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except Exception as exc:
            self._connected = False
            logger.error("Redis cache delete failed [%s]: %s", key, exc)

    async def clear(self) -> None:
        try:
            await self._client.flushdb()
        except Exception as exc:
            logger.error("Redis cache clear failed: %s", exc)

    def is_connected(self) -> bool:
        return self._connected

    async def close(self) -> None:
        try:
            await self._client.aclose()
        except Exception as exc:
            logger.warning("Redis cache close failed: %s", exc)


class MongoCacheClient(CacheClient):
    """MongoDB-backed cache; expiry is checked on read and by a TTL index."""

    backend_name = "mongo"

    def __init__(
        self,
        uri: str,
        *,
        database: str,
        collection: str = "cache_entries",
        client: Any | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client if client is not None else AsyncIOMotorClient(uri, maxPoolSize=10)
        self._collection = self._client[database][collection]
        self._connected = True

    async def start(self) -> None:
        try:
            await self._collection.create_index("expires_at", expireAfterSeconds=0)
        except Exception as exc:
            self._connected = False
            logger.warning("Mongo cache TTL index setup failed: %s", exc)

    async def get(self, key: str) -> Any | None:
        try:
            doc = await self._collection.find_one({"_id": str(key)})
        except Exception as exc:
            self._connected = False
            logger.error("Mongo cache get failed [%s]: %s", key, exc)
            return None
        self._connected = True
        if not isinstance(doc, dict):
            return None
        expires_at = doc.get("expires_at")
        if expires_at is None or ensure_utc(expires_at) <= utcnow():
            return None
        return _loads(doc.get("payload"))

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            raw = _dumps(value)
        except (TypeError, ValueError) as exc:
            logger.error("Cache value for [%s] is not JSON-serializable: %s", key, exc)
            return
        now = utcnow()
        try:
            await self._collection.update_one(
                {"_id": str(key)},
                {
                    "$set": {
                        "payload": raw,
                        "updated_at": now,
                        "expires_at": now + timedelta(seconds=max(0, int(ttl_seconds))),
                    },
                    "$setOnInsert": {"created_at": now},
                },
                upsert=True,
            )
        except Exception as exc:
            self._connected = False
            logger.error("Mongo cache set failed [%s]: %s", key, exc)
            return
        self._connected = True

    async def delete(self, key: str) -> None:
        try:
            await self._collection.delete_one({"_id": str(key)})
        except Exception as exc:
            self._connected = False
            logger.error("Mongo cache delete failed [%s]: %s", key, exc)

    async def clear(self) -> None:
        try:
            await self._collection.delete_many({})
        except Exception as exc:
            logger.error("Mongo cache clear failed: %s", exc)

    def is_connected(self) -> bool:
        return self._connected

    async def close(self) -> None:
        if self._owns_client:
            self._client.close()


def create_cache_client(settings: Settings) -> CacheClient:
    """Pick the durable backend whose connection string is configured, else memory."""
    redis_url = str(settings.REDIS_URL or "").strip()
    mongo_uri = str(settings.MONGO_URI or "").strip()
    try:
        if redis_url:
            logger.info("Cache backend: redis")
            return RedisCacheClient(redis_url)
        if mongo_uri:
            logger.info("Cache backend: mongo (%s.%s)", settings.MONGO_DB, settings.MONGO_CACHE_COLLECTION)
            return MongoCacheClient(
                mongo_uri,
                database=settings.MONGO_DB,
                collection=settings.MONGO_CACHE_COLLECTION,
            )
    except Exception as exc:
        logger.warning("Durable cache backend unavailable, using memory: %s", exc)
    logger.info("Cache backend: memory")
    return MemoryCacheClient(sweep_interval_seconds=settings.CACHE_SWEEP_INTERVAL_SECONDS)
