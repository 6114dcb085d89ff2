"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .base import CacheBackend, CacheEntry, CachePolicy
from .factory import create_cache_backend_from_env
from .inmemory import InMemoryCacheBackend
from .layer import ResourceCache
from .redis import RedisCacheBackend

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "CachePolicy",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "ResourceCache",
    "create_cache_backend_from_env",
]
