"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: fetching/__init__.py.
"""

from .backoff import BackoffPolicy, backoff_delay
from .cancellation import CancellationToken
from .coalescing import RequestCoalescer
from .contracts import RetryPolicy, TimeoutPolicy
from .fetcher import CancelableFetcher, ResourceSource
from .retry import classify_error, is_retryable
from .timeouts import await_with_timeout

__all__ = [
    "BackoffPolicy",
    "backoff_delay",
    "CancellationToken",
    "RequestCoalescer",
    "RetryPolicy",
    "TimeoutPolicy",
    "CancelableFetcher",
    "ResourceSource",
    "classify_error",
    "is_retryable",
    "await_with_timeout",
]
