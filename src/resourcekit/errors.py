"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy shared by fetching, caching, and group-default updates.
"""

from __future__ import annotations


class ResourceError(Exception):
    """Base class for every error raised by resourcekit."""

    category = "error"
    safe_message = "Resource operation failed"


class RetryableResourceError(ResourceError):
    """Transient failure that may succeed when attempted again."""

    category = "transient"
    safe_message = "Resource temporarily unavailable"


class ResourceTimeoutError(RetryableResourceError):
    """Raised when an external call exceeds its timeout."""

    category = "timeout"
    safe_message = "Request timed out"


class StoreUnavailableError(RetryableResourceError):
    """Raised when the backing store cannot be reached."""

    category = "store_unavailable"
    safe_message = "Store unavailable"


class ResourceCancelledError(ResourceError):
    """Raised when a caller (or the last subscriber) cancels a fetch."""

    category = "cancelled"
    safe_message = "Request cancelled"


class TransientExhaustedError(ResourceError):
    """Raised after every retry of a transient failure has been used."""

    category = "transient_exhausted"
    safe_message = "Resource temporarily unavailable"

    def __init__(
        self,
        message: str,
        *,
        attempts: int = 0,
        last_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class FatalResourceError(ResourceError):
    """Non-retryable failure such as permission or validation errors."""

    category = "fatal"
    safe_message = "Request failed"


class NotFoundError(ResourceError):
    """Raised when a record does not exist in the expected group."""

    category = "not_found"
    safe_message = "Not found"


class ForbiddenError(ResourceError):
    """Raised when a caller may not mutate the requested group."""

    category = "forbidden"
    safe_message = "Forbidden"


class ConflictDuringUpdateError(ResourceError):
    """Raised when the one-default-per-group invariant cannot be restored."""

    category = "conflict"
    safe_message = "Conflicting update, please retry"
