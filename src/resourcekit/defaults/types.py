"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Group member record and caller capability types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..types import JSONValue


@dataclass(slots=True)
class GroupMember:
    """
    One record that may be flagged as the default of its group.

    Only ``GroupDefaultRegister`` flips ``is_default``; ``relations`` carries
    associated data resolved by the store (for example the creator).
    """

    id: str
    group_key: str
    is_default: bool = False
    owner_id: str | None = None
    version: int = 0
    updated_at: float | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    relations: dict[str, JSONValue] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CallerCapability:
    """Identity and roles of the caller attempting a mutation."""

    subject: str
    roles: tuple[str, ...] = ()
    tenant_id: str | None = None
