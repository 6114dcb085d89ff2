"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

resourcekit: coalesced, retrying, cached resource fetching plus
single-default-per-group updates and shared record filtering.

Quick start::

    from resourcekit import CancelableFetcher, FetchKey, ResourceCache

    cache = ResourceCache(CancelableFetcher(my_source))
    clients = await cache.get(FetchKey.of("admin/clients", page=1))
    await cache.invalidate("admin/clients")
"""

from .cache import (
    CacheBackend,
    CacheEntry,
    CachePolicy,
    InMemoryCacheBackend,
    RedisCacheBackend,
    ResourceCache,
    create_cache_backend_from_env,
)
from .defaults import (
    CallerCapability,
    GroupAuthorizer,
    GroupDefaultRegister,
    GroupMember,
    GroupMemberStore,
    InMemoryGroupMemberStore,
    OwnerOrRoleAuthorizer,
)
from .errors import (
    ConflictDuringUpdateError,
    FatalResourceError,
    ForbiddenError,
    NotFoundError,
    ResourceCancelledError,
    ResourceError,
    ResourceTimeoutError,
    RetryableResourceError,
    StoreUnavailableError,
    TransientExhaustedError,
)
from .fetching import (
    BackoffPolicy,
    CancelableFetcher,
    CancellationToken,
    RequestCoalescer,
    ResourceSource,
    RetryPolicy,
    TimeoutPolicy,
)
from .filtering import FilterSpec, filter_records, matches
from .metrics import (
    CounterSink,
    InMemoryCounterSink,
    NoOpCounterSink,
    PrometheusCounterSink,
)
from .settings import ResourceSettings
from .types import FetchKey, JSONValue

__all__ = [
    "BackoffPolicy",
    "CacheBackend",
    "CacheEntry",
    "CachePolicy",
    "CallerCapability",
    "CancelableFetcher",
    "CancellationToken",
    "ConflictDuringUpdateError",
    "CounterSink",
    "FatalResourceError",
    "FetchKey",
    "FilterSpec",
    "ForbiddenError",
    "GroupAuthorizer",
    "GroupDefaultRegister",
    "GroupMember",
    "GroupMemberStore",
    "InMemoryCacheBackend",
    "InMemoryCounterSink",
    "InMemoryGroupMemberStore",
    "JSONValue",
    "NoOpCounterSink",
    "NotFoundError",
    "OwnerOrRoleAuthorizer",
    "PrometheusCounterSink",
    "RedisCacheBackend",
    "RequestCoalescer",
    "ResourceCache",
    "ResourceCancelledError",
    "ResourceError",
    "ResourceSettings",
    "ResourceSource",
    "ResourceTimeoutError",
    "RetryPolicy",
    "RetryableResourceError",
    "StoreUnavailableError",
    "TimeoutPolicy",
    "TransientExhaustedError",
    "create_cache_backend_from_env",
    "filter_records",
    "matches",
]
