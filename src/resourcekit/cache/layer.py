"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

TTL cache in front of the coalesced, retrying fetcher.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..fetching.cancellation import CancellationToken
from ..fetching.coalescing import RequestCoalescer
from ..fetching.fetcher import CancelableFetcher
from ..metrics import CounterSink, NoOpCounterSink
from ..types import FetchKey, JSONValue
from .base import CacheBackend, CacheEntry, CachePolicy
from .inmemory import InMemoryCacheBackend

logger = logging.getLogger("resourcekit.cache")


class ResourceCache:
    """
    Fetch-through cache keyed by ``FetchKey``.

    Construct one per service at startup and pass it to the handlers that
    read resources; call ``close()`` at shutdown.
    """

    def __init__(
        self,
        fetcher: CancelableFetcher,
        *,
        backend: CacheBackend | None = None,
        cache_policy: CachePolicy | None = None,
        coalescer: RequestCoalescer | None = None,
        clock: Callable[[], float] = time.time,
        metrics: CounterSink | None = None,
        sweep_interval_s: float = 60.0,
    ) -> None:
        self._fetcher = fetcher
        self._backend = backend if backend is not None else InMemoryCacheBackend()
        self._policy = cache_policy if cache_policy is not None else CachePolicy()
        self._coalescer = (
            coalescer if coalescer is not None else RequestCoalescer(fetcher)
        )
        self._clock = clock
        self._metrics = metrics if metrics is not None else NoOpCounterSink()
        self._sweep_interval_s = sweep_interval_s
        self._last_sweep_s = clock()
        self._generation = 0
        self._closed = False

    @property
    def backend(self) -> CacheBackend:
        return self._backend

    @property
    def coalescer(self) -> RequestCoalescer:
        return self._coalescer

    async def get(
        self,
        key: FetchKey,
        *,
        cancel: CancellationToken | None = None,
    ) -> JSONValue:
        """Return a live cached value or fetch, store, and return a fresh one."""
        if self._closed:
            raise RuntimeError("ResourceCache is closed")
        await self._sweep_if_due()
        tags = {"resource": key.resource}
        entry = await self._backend.get(key.token)
        if entry is not None:
            if not entry.is_expired(self._clock()):
                self._metrics.incr("cache_hit", tags=tags)
                return entry.value
            await self._backend.delete(key.token)

        self._metrics.incr("cache_miss", tags=tags)
        generation = self._generation

        async def _load(token: CancellationToken) -> JSONValue:
            value = await self._fetcher.fetch(key, token)
            if generation != self._generation:
                logger.debug("Skipping cache write for %s after invalidation", key.token)
                return value
            await self._backend.set(
                CacheEntry(
                    key=key.token,
                    value=value,
                    fetched_at_s=self._clock(),
                    ttl_s=self._policy.ttl_for(key),
                )
            )
            self._metrics.incr("cache_store", tags=tags)
            return value

        return await self._coalescer.run(key, _load, cancel=cancel)

    async def _sweep_if_due(self) -> None:
        """Evict expired rows once per sweep interval, read or not."""
        now = self._clock()
        if now - self._last_sweep_s < self._sweep_interval_s:
            return
        self._last_sweep_s = now
        evicted = await self._backend.evict_expired(now)
        if evicted:
            self._metrics.incr("cache_evict", evicted)
            logger.debug("Evicted %d expired cache entries", evicted)

    async def invalidate(self, target: FetchKey | str) -> int:
        """
        Drop one key (``FetchKey``) or every key under a resource prefix (``str``).

        In-flight loads for matching keys are detached so the next ``get``
        starts a fresh fetch, and they no longer write their result.
        """
        self._generation += 1
        if isinstance(target, FetchKey):
            await self._backend.delete(target.token)
            self._coalescer.detach(lambda key: key == target)
            removed = 1
            resource = target.resource
        else:
            removed = await self._backend.delete_prefix(target)
            self._coalescer.detach(lambda key: key.matches_prefix(target))
            resource = target.strip().strip("/")
        self._metrics.incr("cache_invalidate", tags={"resource": resource})
        logger.debug("Invalidated %s (%d entries)", resource, removed)
        return removed

    async def close(self) -> None:
        """Cancel in-flight loads and drop every cached entry."""
        self._closed = True
        self._generation += 1
        await self._coalescer.close()
        await self._backend.clear()
