from recordcache.cache.graph import DependencyGraph


class TestDependencyGraph:

    def test_add_dependency_is_a_set(self):
        graph = DependencyGraph()
        graph.add_dependency("A", "B")
        graph.add_dependency("A", "B")
        assert graph.dependencies_of("A") == {"B"}
        assert graph.edge_count() == 1

    def test_dependents_of_uses_reverse_edges(self):
        graph = DependencyGraph()
        graph.add_dependency("A", "C")
        graph.add_dependency("B", "C")
        assert sorted(graph.dependents_of("C")) == ["A", "B"]
        assert graph.dependents_of("A") == []

    def test_drop_dependencies_removes_outgoing_edges_only(self):
        graph = DependencyGraph()
        graph.add_dependency("A", "B")
        graph.add_dependency("B", "C")

        graph.drop_dependencies("B")

        assert graph.dependencies_of("B") == set()
        assert graph.dependents_of("C") == []
        assert graph.has_edge("A", "B")

    def test_drop_unknown_key_is_noop(self):
        graph = DependencyGraph()
        graph.drop_dependencies("missing")
        assert len(graph) == 0
