"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Admin HTTP surface for filter presets.
"""

from .auth import APIKeyPresetAuthProvider, PresetAuthError, PresetAuthProvider
from .presets import (
    PRESETS_RESOURCE,
    FilterPresetView,
    PresetCreator,
    PresetListSource,
    creator_resolver,
    new_preset,
    preset_group_key,
)
from .server import FilterPresetServiceHost, PresetServiceHostError

__all__ = [
    "APIKeyPresetAuthProvider",
    "FilterPresetServiceHost",
    "FilterPresetView",
    "PRESETS_RESOURCE",
    "PresetAuthError",
    "PresetAuthProvider",
    "PresetCreator",
    "PresetListSource",
    "PresetServiceHostError",
    "creator_resolver",
    "new_preset",
    "preset_group_key",
]
