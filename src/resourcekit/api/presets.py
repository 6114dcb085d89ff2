"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Filter preset records: storage mapping, response models, list source.
"""

from __future__ import annotations

import json
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..defaults.store import GroupMemberStore
from ..defaults.types import GroupMember
from ..types import FetchKey, JSONValue

PRESETS_RESOURCE = "admin/filter-presets"


def preset_group_key(tenant_id: str, entity_type: str) -> str:
    """Defaults are unique per tenant and entity type."""
    return f"{tenant_id}:{entity_type}"


def new_preset(
    preset_id: str,
    *,
    tenant_id: str,
    entity_type: str,
    name: str,
    created_by: str,
    filter_config: Mapping[str, Any] | str | None = None,
    is_default: bool = False,
) -> GroupMember:
    """Build the stored form of a preset; ``filter_config`` is kept as JSON text."""
    if filter_config is None:
        config_text = "{}"
    elif isinstance(filter_config, str):
        config_text = filter_config
    else:
        config_text = json.dumps(dict(filter_config), ensure_ascii=True)
    return GroupMember(
        id=preset_id,
        group_key=preset_group_key(tenant_id, entity_type),
        is_default=is_default,
        owner_id=created_by,
        attributes={
            "name": name,
            "tenant_id": tenant_id,
            "entity_type": entity_type,
            "filter_config": config_text,
            "created_by": created_by,
            "created_at": time.time(),
        },
    )


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PresetCreator(_CamelModel):
    """Public identity fields of the preset's creator."""

    id: str
    name: str | None = None
    image: str | None = None


class FilterPresetView(_CamelModel):
    """Preset as returned to API callers, with its filter config decoded."""

    id: str
    name: str
    tenant_id: str
    entity_type: str
    filter_config: Any
    is_default: bool
    created_by: str | None = None
    created_at: float | None = None
    updated_at: float | None = None
    version: int = 0
    creator: PresetCreator | None = None

    @classmethod
    def from_member(cls, member: GroupMember) -> "FilterPresetView":
        attrs = member.attributes
        raw_config = attrs.get("filter_config") or "{}"
        config = json.loads(raw_config) if isinstance(raw_config, str) else raw_config
        creator = member.relations.get("creator")
        return cls(
            id=member.id,
            name=str(attrs.get("name", "")),
            tenant_id=str(attrs.get("tenant_id", "")),
            entity_type=str(attrs.get("entity_type", "")),
            filter_config=config,
            is_default=member.is_default,
            created_by=attrs.get("created_by") or member.owner_id,
            created_at=attrs.get("created_at"),
            updated_at=member.updated_at,
            version=member.version,
            creator=PresetCreator(**creator) if isinstance(creator, dict) else None,
        )


def creator_resolver(
    users: Mapping[str, Mapping[str, Any]],
) -> Callable[[GroupMember], Awaitable[dict[str, JSONValue]]]:
    """Resolve ``creator`` relations from a user directory mapping."""

    async def _resolve(member: GroupMember) -> dict[str, JSONValue]:
        user = users.get(member.owner_id or "")
        if user is None:
            return {"creator": None}
        return {
            "creator": {
                "id": str(user.get("id", member.owner_id)),
                "name": user.get("name"),
                "image": user.get("image"),
            }
        }

    return _resolve


class PresetListSource:
    """``ResourceSource`` listing a tenant's presets for one entity type."""

    def __init__(self, store: GroupMemberStore) -> None:
        self._store = store

    async def load(self, key: FetchKey) -> JSONValue:
        tenant_id = key.param("tenantId")
        entity_type = key.param("entityType")
        if not tenant_id or not entity_type:
            raise ValueError(f"Preset list key needs tenantId and entityType: {key.token}")
        members = await self._store.list_group(preset_group_key(tenant_id, entity_type))
        hydrate = getattr(self._store, "hydrate", None)
        rows = []
        for member in sorted(members, key=lambda m: m.id):
            if hydrate is not None:
                member = await hydrate(member)
            rows.append(
                FilterPresetView.from_member(member).model_dump(
                    mode="json", by_alias=True
                )
            )
        return rows
