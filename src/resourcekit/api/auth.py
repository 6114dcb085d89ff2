"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Caller authentication for the admin API.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from typing import Protocol

from ..defaults.types import CallerCapability


class PresetAuthError(PermissionError):
    """Raised when a request carries no valid caller identity."""


class PresetAuthProvider(Protocol):
    """Resolves the calling user from request headers."""

    provider_id: str

    async def authenticate(self, headers: Mapping[str, str]) -> CallerCapability:
        """Return the caller or raise ``PresetAuthError``."""
        ...


class APIKeyPresetAuthProvider:
    """API key authentication mapping hashed keys to callers."""

    provider_id = "api_key"

    def __init__(
        self,
        *,
        key_to_caller: Mapping[str, CallerCapability],
        header_name: str = "x-api-key",
    ) -> None:
        self._header_name = header_name.lower()
        self._caller_by_digest = {
            self._hash_key(key): caller for key, caller in key_to_caller.items()
        }

    async def authenticate(self, headers: Mapping[str, str]) -> CallerCapability:
        key = self._get_header(headers, self._header_name)
        if not key:
            raise PresetAuthError("Missing API key")
        caller = self._caller_by_digest.get(self._hash_key(key))
        if caller is None:
            raise PresetAuthError("Invalid API key")
        return caller

    @staticmethod
    def _get_header(headers: Mapping[str, str], name: str) -> str | None:
        for key, value in headers.items():
            if key.lower() == name:
                return value.strip()
        return None

    @staticmethod
    def _hash_key(value: str) -> str:
        return hashlib.sha256(value.encode("utf-8")).hexdigest()
