"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting cache backends from settings.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import CacheBackend
from .inmemory import InMemoryCacheBackend

if TYPE_CHECKING:
    from ..settings import ResourceSettings


def create_cache_backend_from_env(
    *,
    settings: ResourceSettings | None = None,
    redis_client: Any | None = None,
) -> CacheBackend:
    """
    Create a cache backend from `RESOURCEKIT_*` settings.

    Backends:
    - `inmemory` (default)
    - `redis`

    Uses the provided `redis_client` when supplied, otherwise builds one from
    `RESOURCEKIT_REDIS_URL` (or `REDIS_URL`), defaulting to localhost.
    """
    from ..settings import ResourceSettings

    resolved = settings or ResourceSettings.from_env()
    backend = resolved.cache_backend.strip().lower()

    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryCacheBackend()

    if backend == "redis":
        from .redis import RedisCacheBackend

        client = redis_client
        if client is None:
            try:
                import redis.asyncio as redis
            except ModuleNotFoundError as exc:  # pragma: no cover
                raise RuntimeError(
                    "Redis cache backend requires `redis` to be installed."
                ) from exc
            client = redis.Redis.from_url(resolved.redis_url or "redis://localhost:6379/0")

        return RedisCacheBackend(client, prefix=resolved.redis_prefix)

    raise ValueError(f"Unknown RESOURCEKIT_CACHE_BACKEND: {backend}")
