"""The cache runtime: one object owning every piece of shared cache state.

Usage:
    from recordcache.cache import CacheRuntime, wrap_operations

    runtime = CacheRuntime()
    database = wrap_operations(runtime, "database", {...}, mutations=["setData"])

Build one runtime per process (or per test) and hand it to everything that
wraps operations or triggers invalidation.
"""

import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Optional, Set

from recordcache.logging_config import get_logger
from recordcache.settings import CacheSettings, get_settings

from .bus import InvalidationBus
from .graph import DependencyGraph
from .keys import parse_cache_key
from .pending import PendingCallRegistry
from .store import CacheStore

logger = get_logger(name=__name__)


@dataclass
class CacheStats:
    """Counters since the runtime was created."""
    hits: int = 0
    misses: int = 0
    coalesced: int = 0
    failures: int = 0
    invalidations: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class _Cascade:
    """Bookkeeping for one root invalidation.

    ``visited`` holds keys currently being invalidated further up the
    recursion (the cycle guard). ``completed`` holds keys already fully
    invalidated in this cascade, so a key reached through two paths is
    processed and announced once.
    """

    __slots__ = ("visited", "completed")

    def __init__(self, visited: Optional[Set[str]] = None):
        self.visited: Set[str] = visited if visited is not None else set()
        self.completed: Set[str] = set()


class CacheRuntime:
    """Owns the store, dependency graph, pending registry and bus."""

    def __init__(
        self,
        settings: Optional[CacheSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.store = CacheStore(clock=clock, on_expire=self.invalidate)
        self.graph = DependencyGraph()
        self.pending = PendingCallRegistry()
        self.bus = InvalidationBus()
        self.stats = CacheStats()

    @property
    def default_ttl(self) -> float:
        return self.settings.default_ttl_seconds

    @property
    def observed_namespace(self) -> str:
        return self.settings.observed_namespace

    def invalidate(self, key: str, visited: Optional[Set[str]] = None) -> None:
        """Invalidate ``key`` and, recursively, everything built from it.

        Absent keys are fine: the cascade still runs through their recorded
        dependents. Subscribers of the observed namespace are notified for a
        key only after its entry and outgoing edges are gone.
        """
        self._invalidate(key, _Cascade(visited))

    def _invalidate(self, key: str, cascade: _Cascade) -> None:
        if key in cascade.visited or key in cascade.completed:
            return
        cascade.visited.add(key)

        self.store.delete(key)
        self.stats.invalidations += 1

        dependents = self.graph.dependents_of(key)
        if dependents:
            logger.debug("Invalidating {} -> cascading to {} dependents", key, len(dependents))
        for dependent in dependents:
            self._invalidate(dependent, cascade)

        self.graph.drop_dependencies(key)

        namespace, operation_name, args_string = parse_cache_key(key)
        if namespace == self.observed_namespace:
            self.bus.emit(key, namespace, operation_name, args_string)

        cascade.visited.discard(key)
        cascade.completed.add(key)

    def invalidate_by_prefix(self, prefix: str) -> int:
        """Invalidate every stored key starting with ``prefix``.

        Each matching key is its own root cascade.

        Returns:
            Number of stored keys that matched.
        """
        matched = [key for key in self.store.keys() if key.startswith(prefix)]
        for key in matched:
            self.invalidate(key)

        if matched:
            logger.debug("Invalidated {} cache keys with prefix '{}'", len(matched), prefix)
        return len(matched)

    def snapshot(self) -> Dict[str, Any]:
        """Counters plus current sizes, for diagnostics."""
        data: Dict[str, Any] = self.stats.to_dict()
        data["entries"] = len(self.store)
        data["edges"] = self.graph.edge_count()
        data["pending"] = len(self.pending)
        return data
