"""Cascading, prefix and namespace invalidation."""

import pytest

from recordcache.cache import (
    CacheRef,
    invalidate_all,
    invalidate_cache,
    invalidate_namespace,
    wrap_operations,
)


def seed(runtime, *keys):
    for key in keys:
        runtime.store.set(key, [key])


class TestCascade:

    def test_invalidating_dependency_removes_dependents(self, runtime):
        seed(runtime, "ns:a:", "ns:b:", "ns:c:")
        runtime.graph.add_dependency("ns:a:", "ns:b:")
        runtime.graph.add_dependency("ns:b:", "ns:c:")

        runtime.invalidate("ns:c:")

        assert len(runtime.store) == 0
        assert runtime.graph.edge_count() == 0

    def test_cycle_does_not_recurse_forever(self, runtime):
        seed(runtime, "ns:a:", "ns:b:", "ns:c:")
        runtime.graph.add_dependency("ns:a:", "ns:b:")
        runtime.graph.add_dependency("ns:b:", "ns:c:")
        runtime.graph.add_dependency("ns:c:", "ns:a:")

        runtime.invalidate("ns:c:")

        assert len(runtime.store) == 0

    def test_absent_key_still_cascades(self, runtime):
        seed(runtime, "ns:a:")
        runtime.graph.add_dependency("ns:a:", "ns:gone:")

        runtime.invalidate("ns:gone:")

        assert "ns:a:" not in runtime.store

    def test_unrelated_entries_survive(self, runtime):
        seed(runtime, "ns:a:", "ns:b:", "ns:x:")
        runtime.graph.add_dependency("ns:a:", "ns:b:")

        runtime.invalidate("ns:b:")

        assert runtime.store.keys() == ["ns:x:"]

    def test_invalidation_is_idempotent(self, runtime):
        seed(runtime, "ns:a:")
        runtime.invalidate("ns:a:")
        runtime.invalidate("ns:a:")
        assert len(runtime.store) == 0

    def test_diamond_emits_once_per_key(self, runtime):
        events = []
        runtime.bus.subscribe("database", events.append)
        top, left, right, bottom = (f"database:{name}:" for name in "tlrb")
        seed(runtime, top, left, right, bottom)
        runtime.graph.add_dependency(top, left)
        runtime.graph.add_dependency(top, right)
        runtime.graph.add_dependency(left, bottom)
        runtime.graph.add_dependency(right, bottom)

        runtime.invalidate(bottom)

        assert sorted(e.key for e in events) == sorted([top, left, right, bottom])
        # Dependents are announced before the key they were built from
        assert events[-1].key == bottom

    def test_subscriber_sees_consistent_state(self, runtime):
        seen = []
        key, dependent = "database:getData:", "database:report:"
        seed(runtime, key, dependent)
        runtime.graph.add_dependency(dependent, key)

        def check(event):
            seen.append((event.key, event.key in runtime.store, runtime.graph.dependencies_of(event.key)))

        runtime.bus.subscribe("database", check)
        runtime.invalidate(key)

        assert seen == [(dependent, False, set()), (key, False, set())]

    def test_only_observed_namespace_emits(self, runtime):
        events = []
        runtime.bus.subscribe("other", events.append)
        runtime.bus.subscribe("database", events.append)
        seed(runtime, "other:op:", "database:op:")
        runtime.graph.add_dependency("database:op:", "other:op:")

        runtime.invalidate("other:op:")

        assert [e.key for e in events] == ["database:op:"]


class TestPrefixInvalidation:

    def test_prefix_removes_matching_keys_only(self, runtime):
        seed(runtime, 'ns:op:"X","Y1"', 'ns:op:"X","Y2"', 'ns:op:"Z","Y1"')

        count = runtime.invalidate_by_prefix('ns:op:"X"')

        assert count == 2
        assert runtime.store.keys() == ['ns:op:"Z","Y1"']

    def test_prefix_matches_cascade_independently(self, runtime):
        seed(runtime, 'ns:op:"X","Y1"', 'ns:op:"X","Y2"', "ns:sum:")
        runtime.graph.add_dependency("ns:sum:", 'ns:op:"X","Y1"')
        runtime.graph.add_dependency("ns:sum:", 'ns:op:"X","Y2"')

        runtime.invalidate_by_prefix('ns:op:"X"')

        assert len(runtime.store) == 0

    def test_invalidate_cache_by_leading_arguments(self, runtime):
        seed(
            runtime,
            'database:getData:"INVENTORY","FURNITURE"',
            'database:getData:"INVENTORY","FURNITURE",{"id":"Item #"}',
            'database:getData:"INVENTORY","LIGHTING"',
        )

        count = invalidate_cache(
            runtime, [CacheRef("database", "getData", ("INVENTORY", "FURNITURE"))], by_prefix=True
        )

        assert count == 2
        assert runtime.store.keys() == ['database:getData:"INVENTORY","LIGHTING"']

    def test_invalidate_cache_exact(self, runtime):
        seed(runtime, 'database:getTabs:"INVENTORY"', 'database:getTabs:"PACK_LISTS"')

        invalidate_cache(runtime, [CacheRef("database", "getTabs", ("INVENTORY",))])

        assert runtime.store.keys() == ['database:getTabs:"PACK_LISTS"']


class TestBulkInvalidation:

    def test_invalidate_namespace(self, runtime):
        seed(runtime, "database:a:", "database:b:", "reports:a:")
        assert invalidate_namespace(runtime, "database") == 2
        assert runtime.store.keys() == ["reports:a:"]

    def test_invalidate_all_clears_store_and_graph(self, runtime):
        seed(runtime, "database:a:", "reports:a:")
        runtime.graph.add_dependency("reports:a:", "database:a:")
        runtime.graph.add_dependency("reports:a:", "database:expired:")

        assert invalidate_all(runtime) == 2
        assert len(runtime.store) == 0
        assert len(runtime.graph) == 0


class TestNestedScopeCascade:

    @pytest.mark.asyncio
    async def test_chain_of_nested_calls_is_invalidated(self, runtime):
        calls = []

        async def c(scope):
            calls.append("c")
            return ["c"]

        async def b(scope):
            calls.append("b")
            return await scope.call(ns.c) + ["b"]

        async def a(scope):
            calls.append("a")
            return await scope.call(ns.b) + ["a"]

        ns = wrap_operations(runtime, "ns", {"a": a, "b": b, "c": c})

        assert await ns.a() == ["c", "b", "a"]
        assert runtime.graph.has_edge("ns:a:", "ns:b:")
        assert runtime.graph.has_edge("ns:b:", "ns:c:")
        # close the chain into a cycle
        runtime.graph.add_dependency("ns:c:", "ns:a:")

        runtime.invalidate("ns:c:")

        assert len(runtime.store) == 0
        assert runtime.graph.edge_count() == 0
        assert await ns.a() == ["c", "b", "a"]
        assert calls == ["a", "b", "c", "a", "b", "c"]
