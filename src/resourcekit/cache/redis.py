"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/redis.py.
"""

from __future__ import annotations

import json
import logging
import math

from .base import CacheBackend, CacheEntry, token_matches_prefix

logger = logging.getLogger("resourcekit.cache.redis")


class RedisCacheBackend(CacheBackend):
    """Redis-backed cache backend for multi-process deployments."""

    backend_id = "redis"

    def __init__(self, redis_client, *, prefix: str = "resourcekit:cache") -> None:
        self._redis = redis_client
        self._prefix = prefix.rstrip(":")

    def _key(self, key: str) -> str:
        return f"{self._prefix}:{key}"

    async def get(self, key: str) -> CacheEntry | None:
        blob = await self._redis.get(self._key(key))
        if blob is None:
            return None
        try:
            row = json.loads(blob)
        except (TypeError, ValueError):
            logger.warning("Dropping undecodable cache row for %s", key)
            await self._redis.delete(self._key(key))
            return None
        if not isinstance(row, dict):
            return None
        return CacheEntry(
            key=key,
            value=row.get("value"),
            fetched_at_s=float(row.get("fetched_at_s", 0.0)),
            ttl_s=float(row.get("ttl_s", 0.0)),
        )

    async def set(self, entry: CacheEntry) -> None:
        payload = {
            "value": entry.value,
            "fetched_at_s": entry.fetched_at_s,
            "ttl_s": entry.ttl_s,
        }
        # Redis expiry is a backstop; freshness is decided from fetched_at_s.
        await self._redis.setex(
            self._key(entry.key),
            int(max(1, math.ceil(entry.ttl_s))),
            json.dumps(payload, ensure_ascii=True),
        )

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))

    async def delete_prefix(self, prefix: str) -> int:
        head = f"{self._prefix}:"
        pattern = f"{head}{prefix.strip().strip('/')}*"
        doomed = []
        async for raw in self._redis.scan_iter(match=pattern):
            name = raw.decode("utf-8") if isinstance(raw, bytes) else str(raw)
            if token_matches_prefix(name[len(head):], prefix):
                doomed.append(name)
        if doomed:
            await self._redis.delete(*doomed)
        return len(doomed)

    async def clear(self) -> None:
        doomed = []
        async for raw in self._redis.scan_iter(match=f"{self._prefix}:*"):
            doomed.append(raw)
        if doomed:
            await self._redis.delete(*doomed)

    async def evict_expired(self, now_s: float) -> int:
        """Redis expires rows itself through the ``setex`` TTL."""
        _ = now_s
        return 0
