"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: fetching/coalescing.py.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..errors import ResourceCancelledError
from ..types import FetchKey, JSONValue
from .cancellation import CancellationToken

if TYPE_CHECKING:
    from .fetcher import CancelableFetcher

logger = logging.getLogger("resourcekit.fetching")

Factory = Callable[[CancellationToken], Awaitable[Any]]


def _retrieve_outcome(task: asyncio.Task[Any]) -> None:
    # outcome may have no subscribers left to observe it
    if not task.cancelled():
        task.exception()


@dataclass(slots=True)
class _InFlight:
    """One shared in-flight call and the number of callers waiting on it."""

    key: FetchKey
    token: CancellationToken
    task: asyncio.Task[Any]
    subscribers: int = 0


class RequestCoalescer:
    """
    Deduplicate identical in-flight requests.

    The table is only read and written between suspension points, and the
    entry is dropped by the shared task itself when it settles, so a caller
    arriving after settlement always starts a fresh call.
    """

    def __init__(self, fetcher: CancelableFetcher | None = None) -> None:
        self._fetcher = fetcher
        self._inflight: dict[FetchKey, _InFlight] = {}
        self._lock = asyncio.Lock()

    def inflight_count(self) -> int:
        return len(self._inflight)

    def is_inflight(self, key: FetchKey) -> bool:
        return key in self._inflight

    async def request(
        self,
        key: FetchKey,
        *,
        cancel: CancellationToken | None = None,
    ) -> JSONValue:
        """Fetch ``key`` through the bound fetcher, sharing in-flight calls."""
        if self._fetcher is None:
            raise RuntimeError("RequestCoalescer.request requires a fetcher")
        fetcher = self._fetcher
        return await self.run(key, lambda token: fetcher.fetch(key, token), cancel=cancel)

    async def run(
        self,
        key: FetchKey,
        factory: Factory,
        *,
        cancel: CancellationToken | None = None,
    ) -> Any:
        async with self._lock:
            entry = self._inflight.get(key)
            if entry is None:
                token = CancellationToken()
                task = asyncio.create_task(self._drive(key, token, factory))
                task.add_done_callback(_retrieve_outcome)
                entry = _InFlight(key=key, token=token, task=task)
                self._inflight[key] = entry
            else:
                logger.debug("Joining in-flight request for %s", key.token)
            entry.subscribers += 1

        return await self._await_outcome(entry, cancel)

    async def _drive(
        self, key: FetchKey, token: CancellationToken, factory: Factory
    ) -> Any:
        try:
            return await factory(token)
        finally:
            entry = self._inflight.get(key)
            if entry is not None and entry.task is asyncio.current_task():
                del self._inflight[key]

    async def _await_outcome(
        self,
        entry: _InFlight,
        cancel: CancellationToken | None,
    ) -> Any:
        task = entry.task
        waiter = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        pending: set[asyncio.Future[Any]] = {task}
        if waiter is not None:
            pending.add(waiter)
        try:
            await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            self._leave(entry)
            raise
        finally:
            if waiter is not None:
                waiter.cancel()

        if task.done():
            entry.subscribers -= 1
            return task.result()

        self._leave(entry)
        raise ResourceCancelledError(
            (cancel.reason if cancel is not None else None)
            or f"Request for {entry.key.token} cancelled"
        )

    def _leave(self, entry: _InFlight) -> None:
        """Drop one subscriber; the last one out cancels the shared call."""
        entry.subscribers -= 1
        if entry.subscribers > 0:
            return
        task = entry.task
        if task.done():
            return
        logger.debug("Last subscriber left %s; cancelling fetch", entry.key.token)
        entry.token.cancel(f"Request for {entry.key.token} cancelled")
        if self._inflight.get(entry.key) is entry:
            del self._inflight[entry.key]

    def detach(self, predicate: Callable[[FetchKey], bool]) -> int:
        """Forget matching in-flight entries without cancelling them."""
        keys = [key for key in self._inflight if predicate(key)]
        for key in keys:
            del self._inflight[key]
        return len(keys)

    async def close(self) -> None:
        """Cancel every in-flight call and wait for them to settle."""
        entries = list(self._inflight.values())
        self._inflight.clear()
        for entry in entries:
            entry.token.cancel("Coalescer closed")
        tasks = [entry.task for entry in entries]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
