"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Authorization collaborator for group-default mutations.
"""

from __future__ import annotations

from typing import Protocol

from .types import CallerCapability, GroupMember


class GroupAuthorizer(Protocol):
    """Decides whether a caller may change defaults for a member's group."""

    async def can_mutate(
        self, capability: CallerCapability, member: GroupMember
    ) -> bool: ...


class OwnerOrRoleAuthorizer:
    """Allow the record owner, or any caller whose role contains the marker."""

    def __init__(self, *, elevated_marker: str = "ADMIN") -> None:
        marker = elevated_marker.strip().upper()
        if not marker:
            raise ValueError("elevated_marker must be non-empty")
        self._marker = marker

    def is_elevated(self, capability: CallerCapability) -> bool:
        return any(self._marker in role.upper() for role in capability.roles)

    async def can_mutate(
        self, capability: CallerCapability, member: GroupMember
    ) -> bool:
        if member.owner_id is not None and member.owner_id == capability.subject:
            return True
        return self.is_elevated(capability)
