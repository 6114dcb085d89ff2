"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol

from ..types import FetchKey, JSONValue


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One cached payload with the time it was fetched and its TTL."""

    key: str
    value: JSONValue
    fetched_at_s: float
    ttl_s: float

    def is_expired(self, now_s: float) -> bool:
        return now_s - self.fetched_at_s > self.ttl_s


@dataclass(frozen=True, slots=True)
class CachePolicy:
    """TTL controls, optionally per resource type."""

    ttl_s: float = 60.0
    ttl_by_resource: Mapping[str, float] = field(default_factory=dict)

    def ttl_for(self, key: FetchKey) -> float:
        """Resolve TTL by exact resource, then by longest ``/``-prefix."""
        parts = key.resource.split("/")
        for size in range(len(parts), 0, -1):
            ttl = self.ttl_by_resource.get("/".join(parts[:size]))
            if ttl is not None:
                return float(ttl)
        return self.ttl_s


def resource_of(token: str) -> str:
    """Return the resource part of a ``FetchKey.token``."""
    return token.split("?", 1)[0]


def token_matches_prefix(token: str, prefix: str) -> bool:
    resource = resource_of(token)
    normalized = prefix.strip().strip("/")
    return resource == normalized or resource.startswith(normalized + "/")


class CacheBackend(Protocol):
    """Protocol implemented by storage backends behind ``ResourceCache``."""

    backend_id: str

    async def get(self, key: str) -> CacheEntry | None: ...

    async def set(self, entry: CacheEntry) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def delete_prefix(self, prefix: str) -> int: ...

    async def clear(self) -> None: ...

    async def evict_expired(self, now_s: float) -> int:
        """Drop rows whose TTL has elapsed at ``now_s``; return how many."""
        ...

