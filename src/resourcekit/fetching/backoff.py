"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: fetching/backoff.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from random import random


def backoff_delay(
    attempt: int,
    base_s: float,
    max_s: float,
    jitter_s: float = 0.0,
) -> float:
    """Compute capped exponential delay for zero-based ``attempt``."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    if base_s <= 0:
        delay = 0.0
    else:
        # 2**attempt overflows float for very large attempts
        delay = max_s if attempt >= 64 else base_s * (2**attempt)
    if jitter_s > 0:
        delay += random() * jitter_s
    return min(delay, max_s)


@dataclass(frozen=True, slots=True)
class BackoffPolicy:
    """Capped exponential backoff, ``min(base_s * 2**attempt, max_s)``."""

    base_s: float = 0.5
    max_s: float = 30.0
    jitter_s: float = 0.0

    def __post_init__(self) -> None:
        if self.base_s < 0:
            raise ValueError("base_s must be >= 0")
        if self.max_s < 0:
            raise ValueError("max_s must be >= 0")
        if self.jitter_s < 0:
            raise ValueError("jitter_s must be >= 0")

    def delay(self, attempt: int) -> float:
        return backoff_delay(attempt, self.base_s, self.max_s, self.jitter_s)
