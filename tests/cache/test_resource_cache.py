from __future__ import annotations

import asyncio

import pytest

from resourcekit import (
    CachePolicy,
    CancelableFetcher,
    CancellationToken,
    FetchKey,
    InMemoryCacheBackend,
    InMemoryCounterSink,
    ResourceCache,
    ResourceCancelledError,
    RetryPolicy,
    TimeoutPolicy,
    TransientExhaustedError,
)


def run_async(coro):
    return asyncio.run(coro)


CLIENTS_P1 = FetchKey.of("admin/clients", page=1)
CLIENTS_P2 = FetchKey.of("admin/clients", page=2)
USERS_P1 = FetchKey.of("admin/users", page=1)


class _Clock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


class _CountingSource:
    def __init__(self, *, failures: int = 0) -> None:
        self.calls: list[str] = []
        self.failures = failures
        self.gate: asyncio.Event | None = None

    async def load(self, key):
        self.calls.append(key.token)
        if self.gate is not None:
            await self.gate.wait()
        if self.failures > 0:
            self.failures -= 1
            raise ConnectionError("upstream reset")
        return {"key": key.token, "version": len(self.calls)}


def _cache(source, clock=None, **kwargs) -> ResourceCache:
    fetcher = CancelableFetcher(
        source,
        retry_policy=RetryPolicy(max_retries=0),
        timeout_policy=TimeoutPolicy(read_timeout_s=None),
    )
    return ResourceCache(fetcher, clock=clock or _Clock(), **kwargs)


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


def test_get_within_ttl_fetches_once_and_refetches_after_expiry():
    source = _CountingSource()
    clock = _Clock()
    cache = _cache(source, clock, cache_policy=CachePolicy(ttl_s=60.0))

    async def scenario():
        first = await cache.get(CLIENTS_P1)
        clock.now += 60.0
        second = await cache.get(CLIENTS_P1)
        clock.now += 0.5
        third = await cache.get(CLIENTS_P1)
        return first, second, third

    first, second, third = run_async(scenario())
    assert first == second == {"key": CLIENTS_P1.token, "version": 1}
    assert third["version"] == 2
    assert len(source.calls) == 2


def test_ttl_is_resolved_per_resource_type():
    policy = CachePolicy(
        ttl_s=60.0,
        ttl_by_resource={"admin/clients": 45.0, "admin/clients/one": 30.0},
    )
    assert policy.ttl_for(FetchKey.of("admin/clients/one", id="c1")) == 30.0
    assert policy.ttl_for(FetchKey.of("admin/clients/one/notes")) == 30.0
    assert policy.ttl_for(CLIENTS_P1) == 45.0
    assert policy.ttl_for(USERS_P1) == 60.0


def test_failed_fetch_does_not_populate_cache():
    source = _CountingSource(failures=1)
    backend = InMemoryCacheBackend()
    cache = _cache(source, backend=backend)

    async def scenario():
        with pytest.raises(TransientExhaustedError):
            await cache.get(CLIENTS_P1)
        assert len(backend) == 0
        return await cache.get(CLIENTS_P1)

    value = run_async(scenario())
    assert value["version"] == 2
    assert len(backend) == 1


def test_concurrent_gets_for_expired_key_are_coalesced():
    source = _CountingSource()
    cache = _cache(source)

    async def scenario():
        source.gate = asyncio.Event()
        tasks = [asyncio.create_task(cache.get(CLIENTS_P1)) for _ in range(5)]
        await _settle()
        source.gate.set()
        return await asyncio.gather(*tasks)

    results = run_async(scenario())
    assert len(source.calls) == 1
    assert all(result == results[0] for result in results)


def test_invalidate_prefix_forces_fresh_fetch_for_that_resource_only():
    source = _CountingSource()
    cache = _cache(source)

    async def scenario():
        for key in (CLIENTS_P1, CLIENTS_P2, USERS_P1):
            await cache.get(key)
        removed = await cache.invalidate("admin/clients")
        for key in (CLIENTS_P1, CLIENTS_P2, USERS_P1):
            await cache.get(key)
        return removed

    removed = run_async(scenario())
    assert removed == 2
    assert source.calls.count(CLIENTS_P1.token) == 2
    assert source.calls.count(CLIENTS_P2.token) == 2
    assert source.calls.count(USERS_P1.token) == 1


def test_invalidate_single_key():
    source = _CountingSource()
    cache = _cache(source)

    async def scenario():
        await cache.get(CLIENTS_P1)
        await cache.get(CLIENTS_P2)
        await cache.invalidate(CLIENTS_P1)
        await cache.get(CLIENTS_P1)
        await cache.get(CLIENTS_P2)

    run_async(scenario())
    assert source.calls.count(CLIENTS_P1.token) == 2
    assert source.calls.count(CLIENTS_P2.token) == 1


def test_invalidation_during_inflight_load_skips_stale_write():
    source = _CountingSource()
    backend = InMemoryCacheBackend()
    cache = _cache(source, backend=backend)

    async def scenario():
        source.gate = asyncio.Event()
        stale = asyncio.create_task(cache.get(CLIENTS_P1))
        await _settle()
        await cache.invalidate("admin/clients")
        fresh = asyncio.create_task(cache.get(CLIENTS_P1))
        await _settle()
        source.gate.set()
        return await stale, await fresh

    stale, fresh = run_async(scenario())
    assert len(source.calls) == 2
    assert stale["version"] == 2
    assert fresh["version"] == 2
    assert len(backend) == 1


def test_cancelled_last_caller_leaves_no_entry():
    source = _CountingSource()
    backend = InMemoryCacheBackend()
    cache = _cache(source, backend=backend)

    async def scenario():
        source.gate = asyncio.Event()
        token = CancellationToken()
        task = asyncio.create_task(cache.get(CLIENTS_P1, cancel=token))
        await _settle()
        token.cancel()
        with pytest.raises(ResourceCancelledError):
            await task
        await _settle()

    run_async(scenario())
    assert len(backend) == 0
    assert cache.coalescer.inflight_count() == 0


def test_metrics_count_hits_misses_and_invalidations():
    source = _CountingSource()
    metrics = InMemoryCounterSink()
    cache = _cache(source, metrics=metrics)

    async def scenario():
        await cache.get(CLIENTS_P1)
        await cache.get(CLIENTS_P1)
        await cache.get(CLIENTS_P1)
        await cache.invalidate("admin")

    run_async(scenario())
    assert metrics.total("cache_miss") == 1
    assert metrics.total("cache_hit") == 2
    assert metrics.total("cache_store") == 1
    assert metrics.total("cache_invalidate") == 1


def test_closed_cache_rejects_reads():
    source = _CountingSource()
    backend = InMemoryCacheBackend()
    cache = _cache(source, backend=backend)

    async def scenario():
        await cache.get(CLIENTS_P1)
        await cache.close()
        assert len(backend) == 0
        with pytest.raises(RuntimeError, match="closed"):
            await cache.get(CLIENTS_P1)

    run_async(scenario())


def test_injected_empty_backend_receives_writes():
    source = _CountingSource()
    backend = InMemoryCacheBackend()
    metrics = InMemoryCounterSink()
    cache = _cache(source, backend=backend, metrics=metrics)

    assert cache.backend is backend

    async def scenario():
        for page in range(3):
            await cache.get(FetchKey.of("admin/clients", page=page))

    run_async(scenario())
    assert len(backend) == 3
    assert metrics.total("cache_store") == 3


def test_expired_unread_entries_are_swept():
    source = _CountingSource()
    clock = _Clock()
    backend = InMemoryCacheBackend()
    metrics = InMemoryCounterSink()
    cache = _cache(
        source,
        clock,
        backend=backend,
        metrics=metrics,
        cache_policy=CachePolicy(ttl_s=60.0),
        sweep_interval_s=30.0,
    )

    async def scenario():
        for page in range(100):
            await cache.get(FetchKey.of("admin/clients", page=page))
        assert len(backend) == 100
        clock.now += 10_000.0
        await cache.get(USERS_P1)

    run_async(scenario())
    assert len(backend) == 1
    assert metrics.total("cache_evict") == 100


def test_live_entries_survive_the_sweep():
    source = _CountingSource()
    clock = _Clock()
    backend = InMemoryCacheBackend()
    cache = _cache(
        source,
        clock,
        backend=backend,
        cache_policy=CachePolicy(ttl_s=60.0, ttl_by_resource={"admin/users": 600.0}),
        sweep_interval_s=30.0,
    )

    async def scenario():
        await cache.get(CLIENTS_P1)
        await cache.get(USERS_P1)
        clock.now += 120.0
        await cache.get(CLIENTS_P2)

    run_async(scenario())
    assert len(backend) == 2
    assert run_async(backend.get(CLIENTS_P1.token)) is None
    assert run_async(backend.get(USERS_P1.token)) is not None
