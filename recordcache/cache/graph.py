"""Dependency edges between cache keys.

An edge ``dependent -> dependency`` means invalidating ``dependency`` must
also invalidate ``dependent``. Edges are recorded while an operation runs,
whenever it calls another memoized operation through its scope, so the
graph only ever reflects the calls that actually happened.

The graph keeps a reverse index so that finding the dependents of a key
does not scan every edge. It may reference keys that are no longer in the
store; callers treat those as harmless.
"""

from typing import Dict, List, Set


class DependencyGraph:
    """Forward and reverse adjacency sets for recorded dependencies."""

    def __init__(self):
        self._dependencies: Dict[str, Set[str]] = {}
        self._dependents: Dict[str, Set[str]] = {}

    def add_dependency(self, dependent_key: str, dependency_key: str) -> None:
        """Record that ``dependent_key`` was built from ``dependency_key``."""
        self._dependencies.setdefault(dependent_key, set()).add(dependency_key)
        self._dependents.setdefault(dependency_key, set()).add(dependent_key)

    def dependencies_of(self, key: str) -> Set[str]:
        return set(self._dependencies.get(key, ()))

    def dependents_of(self, key: str) -> List[str]:
        """Snapshot of every key whose dependency set contains ``key``."""
        return list(self._dependents.get(key, ()))

    def drop_dependencies(self, key: str) -> None:
        """Remove the outgoing edges of ``key``.

        Incoming edges are left alone: a dependent's edge to ``key`` stays
        valid until that dependent is itself invalidated.
        """
        for dependency in self._dependencies.pop(key, ()):
            dependents = self._dependents.get(dependency)
            if dependents is None:
                continue
            dependents.discard(key)
            if not dependents:
                del self._dependents[dependency]

    def has_edge(self, dependent_key: str, dependency_key: str) -> bool:
        return dependency_key in self._dependencies.get(dependent_key, ())

    def edge_count(self) -> int:
        return sum(len(deps) for deps in self._dependencies.values())

    def clear(self) -> None:
        self._dependencies.clear()
        self._dependents.clear()

    def __len__(self) -> int:
        return len(self._dependencies)
