"""Per-invocation dependency tracking.

Each time a cached operation actually runs, it receives a fresh
:class:`DependencyScope` bound to its own cache key as the first argument.
Calling another memoized operation through ``scope.call`` records an edge
from the running key to the callee's key, so invalidating the callee later
also invalidates the caller.

The scope is passed explicitly rather than kept in a context variable, so
the caller identity never leaks between interleaved tasks.
"""

from typing import TYPE_CHECKING, Any, Callable

from .pending import wait_for

if TYPE_CHECKING:
    from .runtime import CacheRuntime


class DependencyScope:
    """Handle for invoking other operations while recording dependencies."""

    def __init__(self, runtime: "CacheRuntime", key: str):
        self._runtime = runtime
        self.key = key

    async def call(self, operation: Callable[..., Any], *args: Any) -> Any:
        """Invoke ``operation(*args)`` and record it as a dependency.

        If ``operation`` is a cached operation, an in-flight computation for
        the same key is reused instead of calling through the wrapper. The
        edge is recorded once the result is available, whichever path ran.
        A plain coroutine function is simply awaited, with no caching and
        no edge.
        """
        cache_key = getattr(operation, "cache_key", None)
        if cache_key is None:
            return await operation(*args)

        callee_key = cache_key(*args)
        in_flight = self._runtime.pending.get(callee_key)
        if in_flight is not None:
            self._runtime.stats.coalesced += 1
            result = await wait_for(in_flight)
        else:
            result = await operation(*args)

        self._runtime.graph.add_dependency(self.key, callee_key)
        return result

    def __repr__(self) -> str:
        return f"DependencyScope({self.key!r})"
