"""Cache invalidation helpers.

Mutations call these after writing to the record store. Every helper goes
through :meth:`CacheRuntime.invalidate`, so dependents are always
invalidated too and observers of the published namespace are notified.
"""

from typing import Any, Iterable, NamedTuple, Sequence

from recordcache.logging_config import get_logger

from .keys import build_cache_key, build_key_prefix, namespace_prefix
from .runtime import CacheRuntime

logger = get_logger(name=__name__)


class CacheRef(NamedTuple):
    """Identifies a cached call, or with ``by_prefix`` a family of calls."""
    namespace: str
    operation: str
    args: Sequence[Any] = ()


def invalidate_cache(runtime: CacheRuntime, refs: Iterable[CacheRef], by_prefix: bool = False) -> int:
    """Invalidate the calls identified by ``refs``.

    Args:
        runtime: Runtime holding the cache state
        refs: Calls to invalidate
        by_prefix: Treat each ref's args as leading arguments and invalidate
            every stored call that starts with them (e.g. every cached read
            of one table tab regardless of the mapping requested)

    Returns:
        Number of root keys invalidated (dependents not counted).
    """
    count = 0
    for ref in refs:
        if by_prefix:
            count += runtime.invalidate_by_prefix(build_key_prefix(ref.namespace, ref.operation, ref.args))
        else:
            runtime.invalidate(build_cache_key(ref.namespace, ref.operation, ref.args))
            count += 1
    return count


def invalidate_namespace(runtime: CacheRuntime, namespace: str) -> int:
    """Invalidate every stored key in a namespace.

    Returns:
        Number of keys invalidated.
    """
    deleted = runtime.invalidate_by_prefix(namespace_prefix(namespace))

    if deleted > 0:
        logger.info("Invalidated {} cache keys in namespace '{}'", deleted, namespace)
    else:
        logger.debug("No cache keys found in namespace '{}' to invalidate", namespace)

    return deleted


def invalidate_all(runtime: CacheRuntime) -> int:
    """Invalidate every stored key in every namespace.

    Edges of keys no longer in the store are dropped as well, so the graph
    is empty afterwards.

    Returns:
        Number of stored keys invalidated.
    """
    keys = runtime.store.keys()
    for key in keys:
        runtime.invalidate(key)
    runtime.graph.clear()

    logger.info("Invalidated ALL {} cache keys", len(keys))
    return len(keys)
