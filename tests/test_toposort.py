"""Tests for the generic topological sort."""

import pytest

from table_backup.errors import CyclicDependencyError
from table_backup.schema.toposort import topological_sort


def _edges(graph: dict[str, list[str]]):
    return lambda node: graph.get(node, [])


class TestOrdering:
    """Every node precedes the nodes it points to."""

    def test_chain(self) -> None:
        graph = {"a": ["b"], "b": ["c"], "c": []}
        assert topological_sort(["a", "b", "c"], _edges(graph)) == ["a", "b", "c"]

    def test_chain_given_in_reverse(self) -> None:
        graph = {"a": ["b"], "b": ["c"], "c": []}
        assert topological_sort(["c", "b", "a"], _edges(graph)) == ["a", "b", "c"]

    def test_independent_nodes_keep_input_order(self) -> None:
        assert topological_sort(["x", "y", "z"], _edges({})) == ["x", "y", "z"]

    def test_dependent_before_referenced(self) -> None:
        """orders -> customers: orders is deleted first, inserted last."""
        graph = {"orders": ["customers"], "customers": []}
        order = topological_sort(["customers", "orders"], _edges(graph))
        assert order == ["orders", "customers"]
        assert list(reversed(order)) == ["customers", "orders"]

    def test_diamond(self) -> None:
        graph = {"d": ["b", "c"], "b": ["a"], "c": ["a"], "a": []}
        order = topological_sort(["a", "b", "c", "d"], _edges(graph))
        assert order.index("d") < order.index("b") < order.index("a")
        assert order.index("d") < order.index("c") < order.index("a")

    def test_every_edge_respected(self) -> None:
        graph = {
            "line_items": ["orders", "products"],
            "orders": ["customers"],
            "products": ["suppliers"],
            "customers": [],
            "suppliers": [],
            "audit": [],
        }
        nodes = ["suppliers", "audit", "customers", "products", "orders", "line_items"]
        order = topological_sort(nodes, _edges(graph))
        assert sorted(order) == sorted(nodes)
        for node, targets in graph.items():
            for target in targets:
                assert order.index(node) < order.index(target)

    def test_edges_outside_node_set_ignored(self) -> None:
        graph = {"orders": ["customers", "regions"]}
        assert topological_sort(["orders", "customers"], _edges(graph)) == ["orders", "customers"]

    def test_duplicate_nodes_collapsed(self) -> None:
        assert topological_sort(["a", "b", "a"], _edges({"a": ["b"]})) == ["a", "b"]

    def test_duplicate_edges_counted_once(self) -> None:
        graph = {"a": ["b", "b"], "b": []}
        assert topological_sort(["b", "a"], _edges(graph)) == ["a", "b"]

    def test_empty(self) -> None:
        assert topological_sort([], _edges({})) == []

    def test_edges_returning_none(self) -> None:
        assert topological_sort(["a", "b"], {"a": ["b"]}.get) == ["a", "b"]


class TestCycles:
    """Cycles raise and no partial order is returned."""

    def test_two_node_cycle(self) -> None:
        graph = {"a": ["b"], "b": ["a"]}
        with pytest.raises(CyclicDependencyError) as exc_info:
            topological_sort(["a", "b"], _edges(graph))
        assert exc_info.value.remaining == ["a", "b"]
        assert "Circular dependencies" in str(exc_info.value)

    def test_self_edge(self) -> None:
        with pytest.raises(CyclicDependencyError):
            topological_sort(["x"], _edges({"x": ["x"]}))

    def test_remaining_excludes_ordered_nodes(self) -> None:
        graph = {"head": ["a"], "a": ["b"], "b": ["a"], "free": []}
        with pytest.raises(CyclicDependencyError) as exc_info:
            topological_sort(["free", "head", "a", "b"], _edges(graph))
        assert exc_info.value.remaining == ["a", "b"]
