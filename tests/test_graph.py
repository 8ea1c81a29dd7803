"""
Static dependency graph (graph.py)

Tests Tarjan cycle detection, topological sorting, layering and DOT
export.
"""

import pytest

from ignition import CircularDependency, DependencyGraph, ServiceSpec


# ============================================================================
# Helpers
# ============================================================================

def graph_of(**adjacency):
    graph = DependencyGraph()
    for name, dependencies in adjacency.items():
        graph.add_node(name, dependencies)
    return graph


# ============================================================================
# Construction
# ============================================================================

class TestFromServices:

    def test_lists_and_aliases(self):
        graph = DependencyGraph.from_services({
            "api": {"dependencies": {"database": "db"}},
            "worker": ServiceSpec(dependencies=["db", "api"]),
            "db": {},
        })

        assert graph.to_dict() == {"api": ["db"], "worker": ["db", "api"], "db": []}
        assert len(graph) == 3
        assert "db" in graph
        assert repr(graph) == "DependencyGraph(3 nodes)"

    def test_ignored_services_have_no_edges(self):
        graph = DependencyGraph.from_services({
            "old": {"dependencies": ["missing"], "ignore": True},
            "api": {"dependencies": ["old"]},
        })

        assert graph.get_dependencies("old") == []
        assert graph.missing() == []
        assert graph.ignored_edges() == [("api", "old")]

    def test_missing(self):
        graph = graph_of(api=["db", "cache"], db=[])

        assert graph.missing() == [("api", "cache")]


# ============================================================================
# Cycles
# ============================================================================

class TestCycles:

    def test_acyclic(self):
        graph = graph_of(api=["db"], db=[])

        assert graph.find_cycle() is None
        assert graph.validate() == (True, None)

    def test_self_loop(self):
        assert graph_of(A=["A"]).find_cycle() == ["A"]

    def test_two_cycle(self):
        assert sorted(graph_of(A=["B"], B=["A"]).find_cycle()) == ["A", "B"]

    def test_three_cycle(self):
        graph = graph_of(A=["B"], B=["C"], C=["A"], D=[])

        assert graph.find_cycle() == ["A", "B", "C"]
        valid, cycle = graph.validate()
        assert valid is False
        assert set(cycle) == {"A", "B", "C"}

    def test_missing_nodes_ignored(self):
        assert graph_of(A=["missing"]).find_cycle() is None


# ============================================================================
# Ordering
# ============================================================================

class TestOrdering:

    def test_topological_sort(self):
        graph = graph_of(api=["db", "cache"], cache=["db"], db=[])

        assert graph.topological_sort() == ["db", "cache", "api"]

    def test_topological_sort_raises_on_cycle(self):
        with pytest.raises(CircularDependency) as exc_info:
            graph_of(A=["B"], B=["A"]).topological_sort()

        assert set(exc_info.value.services) == {"A", "B"}

    def test_duplicate_edges(self):
        assert graph_of(api=["db", "db"], db=[]).topological_sort() == ["db", "api"]

    def test_layers(self):
        graph = graph_of(api=["db", "cache"], cache=["db"], db=[], metrics=[])

        assert graph.get_layers() == [["db", "metrics"], ["cache"], ["api"]]

    def test_layers_stop_at_unsatisfiable(self):
        graph = DependencyGraph.from_services({
            "db": {},
            "old": {"ignore": True},
            "api": {"dependencies": ["db", "old"]},
        })

        assert graph.get_layers() == [["db"]]

    def test_dependents(self):
        graph = graph_of(api=["db"], worker=["db"], db=[])

        assert graph.get_dependents("db") == ["api", "worker"]
        assert graph.get_dependents("api") == []


# ============================================================================
# Export
# ============================================================================

class TestExport:

    def test_to_dot(self):
        graph = DependencyGraph.from_services({
            "api": {"dependencies": ["db"]},
            "db": {},
            "old": {"ignore": True},
        })

        dot = graph.to_dot()

        assert dot.startswith("digraph services {")
        assert '  "api" -> "db";' in dot
        assert '  "old" [style=dashed];' in dot
        assert '  "db";' in dot
        assert dot.endswith("}")
