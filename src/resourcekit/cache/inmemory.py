"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/inmemory.py.
"""

from __future__ import annotations

from .base import CacheBackend, CacheEntry, token_matches_prefix


class InMemoryCacheBackend(CacheBackend):
    """Process-local cache backend suitable for single-process services and tests."""

    backend_id = "inmemory"

    def __init__(self) -> None:
        self._rows: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._rows)

    async def get(self, key: str) -> CacheEntry | None:
        return self._rows.get(key)

    async def set(self, entry: CacheEntry) -> None:
        self._rows[entry.key] = entry

    async def delete(self, key: str) -> None:
        self._rows.pop(key, None)

    async def delete_prefix(self, prefix: str) -> int:
        doomed = [key for key in self._rows if token_matches_prefix(key, prefix)]
        for key in doomed:
            del self._rows[key]
        return len(doomed)

    async def clear(self) -> None:
        self._rows.clear()

    async def evict_expired(self, now_s: float) -> int:
        expired = [key for key, entry in self._rows.items() if entry.is_expired(now_s)]
        for key in expired:
            del self._rows[key]
        return len(expired)
