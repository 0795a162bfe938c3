"""In-process key/value store with lazy TTL expiry."""

import time
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional

from recordcache.logging_config import get_logger

logger = get_logger(name=__name__)


@dataclass
class CacheEntry:
    """A stored value and its expiry (``None`` = until invalidated)."""
    value: Any
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at < now


def is_cacheable(value: Any) -> bool:
    """Return False for results not worth caching.

    None, booleans, empty collections and empty mappings are skipped.
    Strings and numbers are always cacheable, including "" and 0.
    """
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, (str, bytes)):
        return True
    if isinstance(value, (Mapping, Collection)):
        return len(value) > 0
    return True


class CacheStore:
    """Mapping from cache key to :class:`CacheEntry`.

    Expiry is checked lazily on :meth:`get`. When an expired entry is found
    it is removed and ``on_expire`` is called with its key, which lets the
    owning runtime cascade the invalidation to dependents.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        on_expire: Optional[Callable[[str], None]] = None,
    ):
        self._entries: Dict[str, CacheEntry] = {}
        self._clock = clock
        self._on_expire = on_expire

    def get(self, key: str) -> Any:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if entry.is_expired(self._clock()):
            logger.debug("Cache EXPIRED: {}", key)
            self._entries.pop(key, None)
            if self._on_expire is not None:
                self._on_expire(key)
            return None

        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """Store a value; ``ttl`` in seconds, None for no expiry.

        Returns False when the value was not stored because it is not
        cacheable.
        """
        if not is_cacheable(value):
            logger.debug("Cache SKIP (uncacheable result): {}", key)
            return False

        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = CacheEntry(value=value, expires_at=expires_at)
        return True

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    def entry(self, key: str) -> Optional[CacheEntry]:
        """Return the raw entry without checking expiry."""
        return self._entries.get(key)

    def keys(self) -> List[str]:
        """Snapshot of the stored keys, expired or not."""
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())
