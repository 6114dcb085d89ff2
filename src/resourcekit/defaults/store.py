"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Repository contract for group members and an in-memory implementation.
"""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import Any, Protocol

from ..types import JSONValue
from .types import GroupMember

RelationResolver = Callable[[GroupMember], Awaitable[dict[str, JSONValue]]]


class GroupMemberStore(Protocol):
    """
    Persistence collaborator used by ``GroupDefaultRegister``.

    Stores may also provide ``transaction()`` (an async context manager that
    makes both update phases atomic) and ``hydrate(member)`` (resolves
    associated fields for display); the register uses them when present.
    """

    async def get(self, member_id: str) -> GroupMember | None: ...

    async def list_group(self, group_key: str) -> list[GroupMember]: ...

    async def clear_defaults(self, group_key: str, *, except_id: str) -> int: ...

    async def mark_default(self, member_id: str) -> GroupMember | None: ...


def _copy(member: GroupMember) -> GroupMember:
    return replace(
        member,
        attributes=dict(member.attributes),
        relations=dict(member.relations),
    )


class InMemoryGroupMemberStore:
    """
    Dict-backed member store with snapshot/rollback transactions.

    Rows are copied on the way in and out, so callers cannot flip
    ``is_default`` without going through the store.
    """

    def __init__(
        self,
        members: Iterable[GroupMember] = (),
        *,
        relation_resolver: RelationResolver | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._rows: dict[str, GroupMember] = {m.id: _copy(m) for m in members}
        self._resolver = relation_resolver
        self._clock = clock

    def _touch(self, member: GroupMember) -> None:
        member.version += 1
        member.updated_at = self._clock()

    async def add(self, member: GroupMember) -> GroupMember:
        if member.id in self._rows:
            raise ValueError(f"Member '{member.id}' already exists")
        row = _copy(member)
        row.updated_at = row.updated_at or self._clock()
        self._rows[row.id] = row
        return _copy(row)

    async def update(self, member_id: str, **attributes: Any) -> GroupMember:
        """Change attributes only; ``is_default`` is never touched here."""
        row = self._rows.get(member_id)
        if row is None:
            raise KeyError(f"Member '{member_id}' not found")
        row.attributes.update(attributes)
        self._touch(row)
        return _copy(row)

    async def delete(self, member_id: str) -> bool:
        return self._rows.pop(member_id, None) is not None

    async def get(self, member_id: str) -> GroupMember | None:
        row = self._rows.get(member_id)
        return _copy(row) if row is not None else None

    async def list_group(self, group_key: str) -> list[GroupMember]:
        return [_copy(row) for row in self._rows.values() if row.group_key == group_key]

    async def clear_defaults(self, group_key: str, *, except_id: str) -> int:
        cleared = 0
        for row in self._rows.values():
            if row.group_key == group_key and row.is_default and row.id != except_id:
                row.is_default = False
                self._touch(row)
                cleared += 1
        return cleared

    async def mark_default(self, member_id: str) -> GroupMember | None:
        row = self._rows.get(member_id)
        if row is None:
            return None
        if not row.is_default:
            row.is_default = True
            self._touch(row)
        return _copy(row)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        snapshot = {key: _copy(row) for key, row in self._rows.items()}
        try:
            yield
        except BaseException:
            self._rows = snapshot
            raise

    async def hydrate(self, member: GroupMember) -> GroupMember:
        if self._resolver is None:
            return member
        hydrated = _copy(member)
        hydrated.relations.update(await self._resolver(member))
        return hydrated
