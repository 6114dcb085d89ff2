from __future__ import annotations

import asyncio

import pytest

from resourcekit import (
    CancelableFetcher,
    CancellationToken,
    FatalResourceError,
    FetchKey,
    RequestCoalescer,
    ResourceCancelledError,
    TimeoutPolicy,
)


def run_async(coro):
    return asyncio.run(coro)


KEY = FetchKey.of("admin/users", page=2, tier="SMB")


class _GatedSource:
    def __init__(self, *, fail: Exception | None = None):
        self.calls = 0
        self.aborted = 0
        self.fail = fail
        self.release: asyncio.Event | None = None

    async def load(self, key):
        if self.release is None:
            self.release = asyncio.Event()
        self.calls += 1
        try:
            await self.release.wait()
        except asyncio.CancelledError:
            self.aborted += 1
            raise
        if self.fail is not None:
            raise self.fail
        return {"resource": key.resource, "call": self.calls}


def _coalescer(source) -> RequestCoalescer:
    fetcher = CancelableFetcher(source, timeout_policy=TimeoutPolicy(read_timeout_s=None))
    return RequestCoalescer(fetcher)


async def _settle():
    for _ in range(5):
        await asyncio.sleep(0)


def test_fetch_key_equality_is_value_based():
    assert FetchKey.of("admin/users", tier="SMB", page=2) == KEY
    assert hash(FetchKey.of("/admin/users/", page=2, tier="SMB")) == hash(KEY)
    assert FetchKey.of("admin/users", page=3) != KEY
    assert KEY.token == "admin/users?page=2&tier=%22SMB%22"
    assert KEY.param("tier") == "SMB"
    assert KEY.matches_prefix("admin")
    assert not FetchKey.of("admin/usersx").matches_prefix("admin/users")


def test_concurrent_requests_share_one_fetch():
    source = _GatedSource()
    coalescer = _coalescer(source)

    async def scenario():
        tasks = [asyncio.create_task(coalescer.request(KEY)) for _ in range(10)]
        await _settle()
        assert coalescer.inflight_count() == 1
        source.release.set()
        results = await asyncio.gather(*tasks)
        assert coalescer.inflight_count() == 0
        return results

    results = run_async(scenario())
    assert source.calls == 1
    assert all(result == {"resource": "admin/users", "call": 1} for result in results)


def test_every_subscriber_receives_the_same_failure():
    source = _GatedSource(fail=PermissionError("denied"))
    coalescer = _coalescer(source)

    async def scenario():
        tasks = [asyncio.create_task(coalescer.request(KEY)) for _ in range(3)]
        await _settle()
        source.release.set()
        return await asyncio.gather(*tasks, return_exceptions=True)

    outcomes = run_async(scenario())
    assert source.calls == 1
    assert all(isinstance(outcome, FatalResourceError) for outcome in outcomes)
    assert outcomes[0] is outcomes[1] is outcomes[2]


def test_request_after_settlement_starts_a_fresh_fetch():
    source = _GatedSource()
    coalescer = _coalescer(source)

    async def scenario():
        first = asyncio.create_task(coalescer.request(KEY))
        await _settle()
        source.release.set()
        await first
        assert not coalescer.is_inflight(KEY)
        return await coalescer.request(KEY)

    second = run_async(scenario())
    assert source.calls == 2
    assert second["call"] == 2


def test_leaving_subscriber_does_not_cancel_shared_fetch():
    source = _GatedSource()
    coalescer = _coalescer(source)

    async def scenario():
        leaving = asyncio.create_task(coalescer.request(KEY))
        staying = asyncio.create_task(coalescer.request(KEY))
        await _settle()
        leaving.cancel()
        await _settle()
        assert leaving.cancelled()
        source.release.set()
        return await staying

    result = run_async(scenario())
    assert result["call"] == 1
    assert source.calls == 1
    assert source.aborted == 0


def test_last_subscriber_leaving_cancels_the_fetch():
    source = _GatedSource()
    coalescer = _coalescer(source)

    async def scenario():
        token = CancellationToken()
        task = asyncio.create_task(coalescer.request(KEY, cancel=token))
        await _settle()
        token.cancel("navigated away")
        with pytest.raises(ResourceCancelledError, match="navigated away"):
            await task
        await _settle()
        assert coalescer.inflight_count() == 0

    run_async(scenario())
    assert source.calls == 1
    assert source.aborted == 1


def test_run_accepts_custom_factories_and_detach_forgets_entries():
    coalescer = RequestCoalescer()

    async def scenario():
        gate = asyncio.Event()
        calls = []

        async def factory(token):
            _ = token
            calls.append(1)
            await gate.wait()
            return len(calls)

        first = asyncio.create_task(coalescer.run(KEY, factory))
        await _settle()
        assert coalescer.detach(lambda key: key.matches_prefix("admin")) == 1
        second = asyncio.create_task(coalescer.run(KEY, factory))
        await _settle()
        gate.set()
        return await first, await second

    first, second = run_async(scenario())
    assert (first, second) == (2, 2)


def test_request_requires_a_bound_fetcher():
    with pytest.raises(RuntimeError, match="requires a fetcher"):
        run_async(RequestCoalescer().request(KEY))


def test_close_cancels_inflight_requests():
    source = _GatedSource()
    coalescer = _coalescer(source)

    async def scenario():
        task = asyncio.create_task(coalescer.request(KEY))
        await _settle()
        await coalescer.close()
        with pytest.raises(ResourceCancelledError):
            await task
        await _settle()

    run_async(scenario())
    assert source.aborted == 1


def test_detached_call_settling_keeps_its_replacement_inflight():
    coalescer = RequestCoalescer()
    first_gate = asyncio.Event()
    second_gate = asyncio.Event()

    def gated(gate, value):
        async def factory(token):
            await gate.wait()
            return value

        return factory

    async def scenario():
        old = asyncio.create_task(coalescer.run(KEY, gated(first_gate, "old")))
        await _settle()
        assert coalescer.detach(lambda key: key == KEY) == 1
        new = asyncio.create_task(coalescer.run(KEY, gated(second_gate, "new")))
        await _settle()
        first_gate.set()
        assert await old == "old"
        await _settle()
        assert coalescer.is_inflight(KEY)
        joined = asyncio.create_task(coalescer.run(KEY, gated(first_gate, "unused")))
        await _settle()
        second_gate.set()
        return await new, await joined

    assert run_async(scenario()) == ("new", "new")
    assert coalescer.inflight_count() == 0
