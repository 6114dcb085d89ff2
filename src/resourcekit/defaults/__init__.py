"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: defaults/__init__.py.
"""

from .auth import GroupAuthorizer, OwnerOrRoleAuthorizer
from .register import GroupDefaultRegister
from .store import GroupMemberStore, InMemoryGroupMemberStore, RelationResolver
from .types import CallerCapability, GroupMember

__all__ = [
    "CallerCapability",
    "GroupAuthorizer",
    "GroupDefaultRegister",
    "GroupMember",
    "GroupMemberStore",
    "InMemoryGroupMemberStore",
    "OwnerOrRoleAuthorizer",
    "RelationResolver",
]
