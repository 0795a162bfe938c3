"""Memoizing wrappers for named asynchronous operations.

Usage:
    from recordcache.cache import CacheRuntime, cached, wrap_operations

    runtime = CacheRuntime()

    async def get_tabs(scope, table_id):
        ...

    async def find_tab(scope, table_id, name):
        tabs = await scope.call(database.getTabs, table_id)
        ...

    async def create_tab(table_id, template, name):
        ...  # write, then invalidate explicitly

    database = wrap_operations(
        runtime,
        "database",
        {"getTabs": get_tabs, "findTabByName": find_tab, "createTab": create_tab},
        mutations=["createTab"],
    )

    @cached(runtime, namespace="reports", ttl=60)
    async def summary(scope, table_id):
        ...

Cached operations receive a :class:`DependencyScope` as their first
argument and must be called with positional arguments only. Mutations are
exposed unchanged: they are never cached and get no scope.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
)

from recordcache.logging_config import get_logger

from .keys import build_cache_key
from .pending import wait_for
from .runtime import CacheRuntime
from .scope import DependencyScope

logger = get_logger(name=__name__)


class OperationPolicy(str, Enum):
    """How an operation in a namespace is treated."""
    CACHED = "cached"
    INFINITE = "infinite"
    MUTATION = "mutation"


@dataclass(frozen=True)
class Operation:
    """One row of a namespace's registration table."""
    name: str
    func: Callable[..., Awaitable[Any]]
    policy: OperationPolicy = OperationPolicy.CACHED
    ttl: Optional[float] = None  # custom TTL in seconds, overrides the policy


def resolve_ttl(operation: Operation, default_ttl: float) -> Optional[float]:
    """Custom TTL, else no expiry for infinite operations, else the default."""
    if operation.ttl is not None:
        return operation.ttl
    if operation.policy is OperationPolicy.INFINITE:
        return None
    return default_ttl


def build_registration_table(
    operations: Mapping[str, Callable[..., Awaitable[Any]]],
    mutations: Iterable[str] = (),
    infinite: Iterable[str] = (),
    custom_ttls: Optional[Mapping[str, float]] = None,
) -> List[Operation]:
    """Turn the policy inputs for a namespace into registration rows.

    Raises:
        ValueError: If a policy input names an operation that is not in
            ``operations``, or an operation is both a mutation and cached.
    """
    mutations = set(mutations)
    infinite = set(infinite)
    custom_ttls = dict(custom_ttls or {})

    policy_inputs = (
        ("mutations", mutations),
        ("infinite", infinite),
        ("custom_ttls", set(custom_ttls)),
    )
    for label, names in policy_inputs:
        unknown = names - set(operations)
        if unknown:
            raise ValueError(f"{label} names unknown operations: {sorted(unknown)}")

    conflicting = mutations & (infinite | set(custom_ttls))
    if conflicting:
        raise ValueError(f"Mutations cannot carry a cache policy: {sorted(conflicting)}")

    table = []
    for name, func in operations.items():
        if name in mutations:
            policy = OperationPolicy.MUTATION
        elif name in infinite:
            policy = OperationPolicy.INFINITE
        else:
            policy = OperationPolicy.CACHED
        table.append(Operation(name=name, func=func, policy=policy, ttl=custom_ttls.get(name)))
    return table


class CachedOperation:
    """A memoized, dependency-tracked, coalesced version of one operation."""

    def __init__(
        self,
        runtime: CacheRuntime,
        namespace: str,
        name: str,
        func: Callable[..., Awaitable[Any]],
        ttl: Optional[float],
    ):
        self._runtime = runtime
        self._func = func
        self.namespace = namespace
        self.name = name
        self.ttl = ttl
        self.__name__ = name
        self.__doc__ = getattr(func, "__doc__", None)

    def cache_key(self, *args: Any) -> str:
        return build_cache_key(self.namespace, self.name, args)

    async def __call__(self, *args: Any) -> Any:
        key = self.cache_key(*args)
        runtime = self._runtime

        cached_value = runtime.store.get(key)
        if cached_value is not None:
            runtime.stats.hits += 1
            logger.debug("Cache HIT: {}", key)
            return cached_value

        task, started = runtime.pending.join_or_start(
            key, lambda: asyncio.ensure_future(self._compute(key, args))
        )
        if started:
            runtime.stats.misses += 1
            logger.debug("Cache MISS: {}", key)
        else:
            runtime.stats.coalesced += 1

        return await wait_for(task)

    async def _compute(self, key: str, args: tuple) -> Any:
        try:
            scope = DependencyScope(self._runtime, key)
            try:
                result = await self._func(scope, *args)
            except Exception as e:
                self._runtime.stats.failures += 1
                logger.warning("Cached operation failed for {}: {}", key, e)
                raise
            self._runtime.store.set(key, result, self.ttl)
            return result
        finally:
            self._runtime.pending.discard(key)

    def __repr__(self) -> str:
        return f"CachedOperation({self.namespace}:{self.name}, ttl={self.ttl})"


class Namespace:
    """The callable surface produced by wrapping an operation set.

    Operations are reachable as attributes (``database.getData``) or items
    (``database["getData"]``).
    """

    def __init__(self, runtime: CacheRuntime, name: str, table: Iterable[Operation]):
        self.runtime = runtime
        self.name = name
        self._policies: Dict[str, OperationPolicy] = {}
        self._operations: Dict[str, Callable[..., Awaitable[Any]]] = {}

        for row in table:
            self._policies[row.name] = row.policy
            if row.policy is OperationPolicy.MUTATION:
                self._operations[row.name] = row.func
            else:
                self._operations[row.name] = CachedOperation(
                    runtime, name, row.name, row.func, resolve_ttl(row, runtime.default_ttl)
                )

    def policy(self, operation_name: str) -> OperationPolicy:
        return self._policies[operation_name]

    def __getattr__(self, operation_name: str) -> Callable[..., Awaitable[Any]]:
        # Only reached for names that are not regular attributes
        operations = self.__dict__.get("_operations", {})
        try:
            return operations[operation_name]
        except KeyError:
            name = self.__dict__.get("name")
            raise AttributeError(f"Namespace '{name}' has no operation '{operation_name}'") from None

    def __getitem__(self, operation_name: str) -> Callable[..., Awaitable[Any]]:
        return self._operations[operation_name]

    def __contains__(self, operation_name: str) -> bool:
        return operation_name in self._operations

    def __iter__(self) -> Iterator[str]:
        return iter(self._operations)

    def __repr__(self) -> str:
        return f"Namespace({self.name!r}, operations={list(self._operations)})"


def wrap_operations(
    runtime: CacheRuntime,
    namespace: str,
    operations: Mapping[str, Callable[..., Awaitable[Any]]],
    mutations: Iterable[str] = (),
    infinite: Iterable[str] = (),
    custom_ttls: Optional[Mapping[str, float]] = None,
) -> Namespace:
    """Wrap a set of named operations under ``namespace``.

    Args:
        runtime: Runtime holding the shared cache state
        namespace: Key prefix shared by the operations (no ':')
        operations: Operation name -> coroutine function
        mutations: Names passed through unwrapped (never cached, no scope)
        infinite: Names cached until explicitly invalidated
        custom_ttls: Name -> TTL in seconds, overriding both defaults
    """
    if not namespace or ":" in namespace:
        raise ValueError(f"Invalid namespace: {namespace!r}")

    table = build_registration_table(operations, mutations, infinite, custom_ttls)
    logger.debug(
        "Wrapped namespace '{}': {} operations ({} mutations)",
        namespace,
        len(table),
        sum(1 for row in table if row.policy is OperationPolicy.MUTATION),
    )
    return Namespace(runtime, namespace, table)


def cached(
    runtime: CacheRuntime,
    namespace: str,
    ttl: Optional[float] = None,
    infinite: bool = False,
    name: Optional[str] = None,
) -> Callable[[Callable[..., Awaitable[Any]]], CachedOperation]:
    """Decorator that memoizes a single coroutine function.

    Args:
        runtime: Runtime holding the shared cache state
        namespace: Cache namespace for keys and grouped invalidation
        ttl: Time-to-live in seconds; defaults to the runtime's default TTL
        infinite: Cache until explicitly invalidated (ignored if ``ttl`` is set)
        name: Operation name used in keys; defaults to the function name
    """
    def decorator(func: Callable[..., Awaitable[Any]]) -> CachedOperation:
        row = Operation(
            name=name or func.__name__,
            func=func,
            policy=OperationPolicy.INFINITE if infinite else OperationPolicy.CACHED,
            ttl=ttl,
        )
        return CachedOperation(runtime, namespace, row.name, func, resolve_ttl(row, runtime.default_ttl))
    return decorator
