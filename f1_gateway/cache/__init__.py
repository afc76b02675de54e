"""
Caching module with path-classified TTLs and an injectable in-memory store.
"""
from .core import CacheEntry, TTLClass
from .ttl_policies import (
    TTL_CONFIG,
    build_ttl_config,
    classify_path,
    get_ttl_for_class,
)
from .store import CacheStore

__all__ = [
    # Core types
    "CacheEntry",
    "TTLClass",
    # TTL policies
    "TTL_CONFIG",
    "build_ttl_config",
    "classify_path",
    "get_ttl_for_class",
    # Store
    "CacheStore",
]
