"""Tests for deterministic topological scheduling."""

import pytest

from toolflow import CycleDetectedError, topological_sort


def test_empty_graph():
    """Test that no nodes yields an empty order."""
    assert topological_sort([], []) == []


def test_linear_chain():
    """Test that a chain runs in dependency order."""
    order = topological_sort(["c", "b", "a"], [("a", "b"), ("b", "c")])

    assert order == ["a", "b", "c"]


def test_independent_nodes_ordered_by_position():
    """Test that ready nodes run left to right, then top to bottom."""
    positions = {
        "right": {"x": 500, "y": 0},
        "left-low": {"x": 0, "y": 300},
        "left-high": {"x": 0, "y": 100},
    }

    order = topological_sort(["right", "left-low", "left-high"], [], positions)

    assert order == ["left-high", "left-low", "right"]


def test_identical_positions_fall_back_to_node_id():
    """Test that node ids break exact position ties."""
    positions = {"b": (10, 10), "a": (10, 10)}

    assert topological_sort(["b", "a"], [], positions) == ["a", "b"]


def test_released_nodes_compete_on_position():
    """Test that a node freed by a removal still yields to a node further left."""
    positions = {
        "src": {"x": 0, "y": 0},
        "free": {"x": 100, "y": 0},
        "child": {"x": 50, "y": 0},
    }

    order = topological_sort(["src", "free", "child"], [("src", "child")], positions)

    assert order == ["src", "child", "free"]


def test_dependency_beats_position():
    """Test that edges take precedence over canvas placement."""
    positions = {"upstream": {"x": 900, "y": 0}, "downstream": {"x": 0, "y": 0}}

    order = topological_sort(["downstream", "upstream"], [("upstream", "downstream")], positions)

    assert order == ["upstream", "downstream"]


def test_order_independent_of_insertion_order():
    """Test that the same graph always linearizes identically."""
    positions = {"a": (0, 0), "b": (100, 0), "c": (200, 0), "d": (300, 0)}
    edges = [("a", "c"), ("b", "c"), ("c", "d")]

    first = topological_sort(["a", "b", "c", "d"], edges, positions)
    second = topological_sort(["d", "c", "b", "a"], list(reversed(edges)), positions)

    assert first == second == ["a", "b", "c", "d"]


def test_every_edge_points_forward():
    """Test the topological property on a diamond."""
    edges = [("top", "left"), ("top", "right"), ("left", "bottom"), ("right", "bottom")]

    order = topological_sort(["bottom", "right", "left", "top"], edges)
    index = {node_id: i for i, node_id in enumerate(order)}

    assert all(index[source] < index[target] for source, target in edges)


def test_edges_to_unknown_nodes_ignored():
    """Test that dangling edges do not affect the order."""
    assert topological_sort(["a", "b"], [("a", "ghost"), ("ghost", "b")]) == ["a", "b"]


def test_cycle_detected():
    """Test that a cycle raises and names the unordered nodes."""
    with pytest.raises(CycleDetectedError) as exc_info:
        topological_sort(["a", "b", "c"], [("a", "b"), ("b", "c"), ("c", "b")])

    assert set(exc_info.value.node_ids) == {"b", "c"}
