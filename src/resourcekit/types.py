"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Shared value types.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, TypeAlias
from urllib.parse import urlencode

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


def _canonical(value: Any) -> str:
    return json.dumps(value, ensure_ascii=True, sort_keys=True, default=str)


@dataclass(frozen=True, slots=True)
class FetchKey:
    """
    Value identity of one logical query.

    ``resource`` is a ``/``-separated resource type such as
    ``admin/clients``; ``params`` holds the query parameters as sorted
    ``(name, canonical JSON)`` pairs so equal queries compare and hash equal.
    """

    resource: str
    params: tuple[tuple[str, str], ...] = ()

    @classmethod
    def of(cls, resource: str, **params: Any) -> "FetchKey":
        """Build a key from keyword parameters; ``None`` values are dropped."""
        name = resource.strip().strip("/")
        if not name:
            raise ValueError("FetchKey resource must be non-empty")
        pairs = tuple(
            sorted(
                (str(k), _canonical(v)) for k, v in params.items() if v is not None
            )
        )
        return cls(resource=name, params=pairs)

    @property
    def token(self) -> str:
        """Deterministic string form used as a storage key."""
        if not self.params:
            return self.resource
        return f"{self.resource}?{urlencode(self.params)}"

    def param(self, name: str, default: Any = None) -> Any:
        """Return one decoded parameter value."""
        for key, raw in self.params:
            if key == name:
                return json.loads(raw)
        return default

    def matches_prefix(self, prefix: str) -> bool:
        """True when this key belongs to the resource type ``prefix``."""
        normalized = prefix.strip().strip("/")
        return self.resource == normalized or self.resource.startswith(
            normalized + "/"
        )
