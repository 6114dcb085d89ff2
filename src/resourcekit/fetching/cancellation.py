"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cooperative cancellation token.
"""

from __future__ import annotations

import asyncio

from ..errors import ResourceCancelledError


class CancellationToken:
    """
    One-shot cooperative cancellation signal.

    Fetch code checks the token at retry boundaries and races it against the
    underlying call; it never interrupts work already committed elsewhere.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str | None = None) -> None:
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ResourceCancelledError(self._reason or "Cancelled")
