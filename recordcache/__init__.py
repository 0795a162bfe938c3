"""In-process caching and invalidation in front of a record store."""

from .cache import CacheRuntime, cached, wrap_operations
from .database import build_database

__version__ = "0.1.0"

__all__ = ["CacheRuntime", "cached", "wrap_operations", "build_database"]
