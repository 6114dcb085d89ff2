"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: fetching/retry.py.
"""

from __future__ import annotations

import asyncio
import socket

from ..errors import (
    FatalResourceError,
    ResourceError,
    ResourceTimeoutError,
    RetryableResourceError,
    StoreUnavailableError,
)

_TRANSIENT_PHRASES = (
    "rate limit",
    "timeout",
    "timed out",
    "temporarily",
    "unavailable",
    "overloaded",
    "429",
    "502",
    "503",
    "504",
)


def classify_error(error: BaseException) -> ResourceError:
    """Classify exceptions into retryable/non-retryable resource errors."""
    if isinstance(error, ResourceError):
        return error
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, socket.timeout)):
        return ResourceTimeoutError(str(error) or "Timed out")
    if isinstance(error, PermissionError):
        return FatalResourceError(str(error) or "Permission denied")
    if isinstance(error, (ConnectionError, OSError)):
        return StoreUnavailableError(str(error) or "Connection failed")
    if isinstance(error, (ValueError, LookupError, TypeError)):
        return FatalResourceError(str(error))

    msg = str(error).lower()
    if any(token in msg for token in _TRANSIENT_PHRASES):
        return RetryableResourceError(str(error))
    return FatalResourceError(str(error))


def is_retryable(error: ResourceError) -> bool:
    return isinstance(error, RetryableResourceError)
