"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Runtime settings and explicit environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from .cache.base import CachePolicy
from .fetching.contracts import RetryPolicy, TimeoutPolicy


def _env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def _parse_ttl_map(raw: str | None) -> dict[str, float]:
    """Parse ``admin/clients=60,admin/clients/one=30`` into a TTL mapping."""
    out: dict[str, float] = {}
    for part in (raw or "").split(","):
        if not part.strip():
            continue
        resource, sep, ttl = part.partition("=")
        if not sep or not resource.strip():
            raise ValueError(f"Invalid TTL mapping entry: {part!r}")
        out[resource.strip().strip("/")] = float(ttl)
    return out


@dataclass(frozen=True, slots=True)
class ResourceSettings:
    """Explicit settings used by the fetch, cache, and register components."""

    read_timeout_s: float | None = 10.0
    write_timeout_s: float | None = 15.0
    max_retries: int = 3
    backoff_base_s: float = 0.5
    backoff_max_s: float = 30.0
    backoff_jitter_s: float = 0.0

    cache_backend: str = "inmemory"
    cache_ttl_s: float = 60.0
    cache_ttl_by_resource: dict[str, float] = field(default_factory=dict)
    redis_url: str | None = None
    redis_prefix: str = "resourcekit:cache"

    elevated_role_marker: str = "ADMIN"

    @staticmethod
    def from_env() -> "ResourceSettings":
        """Load settings from `RESOURCEKIT_*` environment variables."""
        return ResourceSettings(
            read_timeout_s=float(_env_first("RESOURCEKIT_READ_TIMEOUT_S", default="10")),
            write_timeout_s=float(
                _env_first("RESOURCEKIT_WRITE_TIMEOUT_S", default="15")
            ),
            max_retries=int(_env_first("RESOURCEKIT_MAX_RETRIES", default="3")),
            backoff_base_s=float(
                _env_first("RESOURCEKIT_BACKOFF_BASE_S", default="0.5")
            ),
            backoff_max_s=float(_env_first("RESOURCEKIT_BACKOFF_MAX_S", default="30")),
            backoff_jitter_s=float(
                _env_first("RESOURCEKIT_BACKOFF_JITTER_S", default="0")
            ),
            cache_backend=(
                _env_first("RESOURCEKIT_CACHE_BACKEND", default="inmemory") or "inmemory"
            ).lower(),
            cache_ttl_s=float(_env_first("RESOURCEKIT_CACHE_TTL_S", default="60")),
            cache_ttl_by_resource=_parse_ttl_map(
                _env_first("RESOURCEKIT_CACHE_TTL_BY_RESOURCE")
            ),
            redis_url=_env_first("RESOURCEKIT_REDIS_URL", "REDIS_URL"),
            redis_prefix=_env_first(
                "RESOURCEKIT_REDIS_PREFIX", default="resourcekit:cache"
            )
            or "resourcekit:cache",
            elevated_role_marker=_env_first(
                "RESOURCEKIT_ELEVATED_ROLE", default="ADMIN"
            )
            or "ADMIN",
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            backoff_base_s=self.backoff_base_s,
            backoff_max_s=self.backoff_max_s,
            backoff_jitter_s=self.backoff_jitter_s,
        )

    def timeout_policy(self) -> TimeoutPolicy:
        return TimeoutPolicy(
            read_timeout_s=self.read_timeout_s,
            write_timeout_s=self.write_timeout_s,
        )

    def cache_policy(self) -> CachePolicy:
        return CachePolicy(
            ttl_s=self.cache_ttl_s,
            ttl_by_resource=dict(self.cache_ttl_by_resource),
        )
