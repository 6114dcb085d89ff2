"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Retrying, cancelable fetcher for one resource source.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from ..errors import (
    ResourceCancelledError,
    ResourceError,
    ResourceTimeoutError,
    TransientExhaustedError,
)
from ..types import FetchKey, JSONValue
from .cancellation import CancellationToken
from .contracts import RetryPolicy, TimeoutPolicy
from .retry import classify_error, is_retryable

logger = logging.getLogger("resourcekit.fetching")


class ResourceSource(Protocol):
    """Underlying call that resolves a ``FetchKey`` into a payload."""

    async def load(self, key: FetchKey) -> JSONValue: ...


class CancelableFetcher:
    """
    Execute source loads with a read timeout, bounded retries, and
    cooperative cancellation.

    Safe to call concurrently for different keys; it holds no per-call state.
    """

    def __init__(
        self,
        source: ResourceSource,
        *,
        retry_policy: RetryPolicy | None = None,
        timeout_policy: TimeoutPolicy | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._source = source
        self._retry_policy = retry_policy if retry_policy is not None else RetryPolicy()
        self._timeout_policy = (
            timeout_policy if timeout_policy is not None else TimeoutPolicy()
        )
        self._sleep = sleep

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    async def fetch(
        self,
        key: FetchKey,
        cancel: CancellationToken | None = None,
    ) -> JSONValue:
        token = cancel if cancel is not None else CancellationToken()
        policy = self._retry_policy
        backoff = policy.backoff
        last: ResourceError | None = None

        for attempt in range(policy.max_retries + 1):
            token.raise_if_cancelled()
            try:
                return await self._attempt(key, token)
            except ResourceCancelledError:
                raise
            except Exception as error:
                classified = classify_error(error)
                if not is_retryable(classified):
                    if classified is error:
                        raise
                    raise classified from error
                last = classified
                if attempt >= policy.max_retries:
                    break
                delay = backoff.delay(attempt)
                logger.warning(
                    "Fetch %s failed (attempt %d/%d): %s; retrying in %.3fs",
                    key.token,
                    attempt + 1,
                    policy.max_retries + 1,
                    classified,
                    delay,
                )
                await self._pause(delay, token)

        attempts = policy.max_retries + 1
        if policy.max_retries == 0 and isinstance(last, ResourceTimeoutError):
            raise last
        raise TransientExhaustedError(
            f"Fetch {key.token} failed after {attempts} attempts: {last}",
            attempts=attempts,
            last_error=last,
        ) from last

    async def _attempt(self, key: FetchKey, token: CancellationToken) -> JSONValue:
        """Run one source call raced against cancellation and the timeout."""
        timeout_s = self._timeout_policy.read_timeout_s
        call = asyncio.ensure_future(self._source.load(key))
        waiter = asyncio.ensure_future(token.wait())
        try:
            done, _ = await asyncio.wait(
                {call, waiter},
                timeout=timeout_s,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            call.cancel()
            raise
        finally:
            waiter.cancel()

        if call in done:
            return call.result()

        call.cancel()
        if token.cancelled:
            raise ResourceCancelledError(token.reason or f"Fetch {key.token} cancelled")
        raise ResourceTimeoutError(f"Fetch {key.token} timed out after {timeout_s}s")

    async def _pause(self, delay_s: float, token: CancellationToken) -> None:
        """Sleep between attempts, waking early on cancellation."""
        sleeper = asyncio.ensure_future(self._sleep(delay_s))
        waiter = asyncio.ensure_future(token.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()
        token.raise_if_cancelled()
