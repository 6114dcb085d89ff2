"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Maintains "at most one default member per group".
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import weakref
from typing import Any

from ..errors import (
    ConflictDuringUpdateError,
    ForbiddenError,
    NotFoundError,
    ResourceError,
    ResourceTimeoutError,
    StoreUnavailableError,
)
from ..fetching.timeouts import await_with_timeout
from ..metrics import CounterSink, NoOpCounterSink
from .auth import GroupAuthorizer, OwnerOrRoleAuthorizer
from .store import GroupMemberStore
from .types import CallerCapability, GroupMember

logger = logging.getLogger("resourcekit.defaults")


class GroupDefaultRegister:
    """
    The only component allowed to flip ``GroupMember.is_default``.

    ``set_default`` clears every other default in the group and then flags the
    target, inside the store's transaction when it offers one, and under a
    per-group lock so two calls on one group never interleave.
    """

    def __init__(
        self,
        store: GroupMemberStore,
        authorizer: GroupAuthorizer | None = None,
        *,
        write_timeout_s: float | None = 15.0,
        metrics: CounterSink | None = None,
    ) -> None:
        self._store = store
        self._authorizer = (
            authorizer if authorizer is not None else OwnerOrRoleAuthorizer()
        )
        self._write_timeout_s = write_timeout_s
        self._metrics = metrics if metrics is not None else NoOpCounterSink()
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, group_key: str) -> asyncio.Lock:
        lock = self._locks.get(group_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[group_key] = lock
        return lock

    def _transaction(self) -> Any:
        factory = getattr(self._store, "transaction", None)
        if factory is None:
            return contextlib.nullcontext()
        return factory()

    async def set_default(
        self,
        member_id: str,
        group_key: str,
        capability: CallerCapability,
    ) -> GroupMember:
        """
        Make ``member_id`` the single default of ``group_key``.

        Raises:
            NotFoundError: member missing or not in ``group_key``.
            ForbiddenError: caller may not mutate the group; nothing changes.
            ConflictDuringUpdateError: the invariant could not be restored.
            ResourceTimeoutError: the write exceeded ``write_timeout_s``.
            StoreUnavailableError: the store could not be reached.
        """
        try:
            member = await self._store.get(member_id)
            if member is None or member.group_key != group_key:
                raise NotFoundError(f"Member '{member_id}' not found in '{group_key}'")
            if not await self._authorizer.can_mutate(capability, member):
                raise ForbiddenError(
                    f"'{capability.subject}' may not change defaults of '{group_key}'"
                )

            async with self._lock_for(group_key):
                updated = await await_with_timeout(
                    self._apply(member_id, group_key),
                    self._write_timeout_s,
                )

            hydrate = getattr(self._store, "hydrate", None)
            if hydrate is not None:
                updated = await hydrate(updated)
        except ResourceError as exc:
            self._metrics.incr("set_default_failed", tags={"category": exc.category})
            raise
        except TimeoutError as exc:
            self._metrics.incr("set_default_failed", tags={"category": "timeout"})
            raise ResourceTimeoutError(str(exc) or "Store call timed out") from exc
        except (ConnectionError, OSError) as exc:
            self._metrics.incr(
                "set_default_failed", tags={"category": "store_unavailable"}
            )
            raise StoreUnavailableError(str(exc) or "Store unavailable") from exc

        self._metrics.incr("set_default")
        logger.info(
            "Member %s is now default of %s (by %s)",
            member_id,
            group_key,
            capability.subject,
        )
        return updated

    async def _apply(self, member_id: str, group_key: str) -> GroupMember:
        # Both phases are idempotent, so a failed verification replays them once.
        for attempt in range(2):
            async with self._transaction():
                cleared = await self._store.clear_defaults(group_key, except_id=member_id)
                updated = await self._store.mark_default(member_id)
                if updated is None:
                    logger.warning(
                        "Member %s vanished while becoming default of %s; retrying",
                        member_id,
                        group_key,
                    )
                    updated = await self._store.mark_default(member_id)
                if updated is None:
                    raise ConflictDuringUpdateError(
                        f"Member '{member_id}' disappeared while becoming default "
                        f"of '{group_key}'"
                    )
            logger.debug("Cleared %d previous defaults in %s", cleared, group_key)

            if await self._holds_single_default(group_key, member_id):
                return updated
            logger.warning(
                "Default invariant broken for %s after attempt %d", group_key, attempt + 1
            )

        raise ConflictDuringUpdateError(
            f"Could not make '{member_id}' the single default of '{group_key}'"
        )

    async def _holds_single_default(self, group_key: str, member_id: str) -> bool:
        defaults = [m for m in await self._store.list_group(group_key) if m.is_default]
        return len(defaults) == 1 and defaults[0].id == member_id
