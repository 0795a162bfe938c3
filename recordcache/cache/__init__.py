"""Caching utilities: runtime, wrappers, invalidation, and key helpers."""

from .bus import InvalidationBus, InvalidationEvent
from .decorator import (
    CachedOperation,
    Namespace,
    Operation,
    OperationPolicy,
    build_registration_table,
    cached,
    resolve_ttl,
    wrap_operations,
)
from .graph import DependencyGraph
from .invalidation import CacheRef, invalidate_all, invalidate_cache, invalidate_namespace
from .keys import build_cache_key, build_key_prefix, parse_cache_key
from .pending import PendingCallRegistry
from .runtime import CacheRuntime, CacheStats
from .scope import DependencyScope
from .store import CacheEntry, CacheStore, is_cacheable

__all__ = [
    # Runtime
    "CacheRuntime",
    "CacheStats",
    # Wrapping
    "cached",
    "wrap_operations",
    "build_registration_table",
    "resolve_ttl",
    "CachedOperation",
    "Namespace",
    "Operation",
    "OperationPolicy",
    "DependencyScope",
    # Invalidation
    "CacheRef",
    "invalidate_cache",
    "invalidate_namespace",
    "invalidate_all",
    "InvalidationBus",
    "InvalidationEvent",
    # Building blocks
    "CacheStore",
    "CacheEntry",
    "is_cacheable",
    "DependencyGraph",
    "PendingCallRegistry",
    "build_cache_key",
    "build_key_prefix",
    "parse_cache_key",
]
