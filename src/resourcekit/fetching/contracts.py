"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed policies for resource fetch execution.
"""

from __future__ import annotations

from dataclasses import dataclass

from .backoff import BackoffPolicy


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retry semantics for one fetch path."""

    max_retries: int = 3
    backoff_base_s: float = 0.5
    backoff_max_s: float = 30.0
    backoff_jitter_s: float = 0.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @property
    def backoff(self) -> BackoffPolicy:
        return BackoffPolicy(
            base_s=self.backoff_base_s,
            max_s=self.backoff_max_s,
            jitter_s=self.backoff_jitter_s,
        )


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Timeouts for reads (fetches) and writes (store updates)."""

    read_timeout_s: float | None = 10.0
    write_timeout_s: float | None = 15.0
