"""Deterministic topological scheduling.

Kahn's algorithm with a position-based tiebreak: whenever several nodes are
ready the leftmost one runs first, then the topmost, so the same graph always
linearizes identically regardless of insertion order. Node ids break ties
between nodes sharing an identical position.
"""

import heapq
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from toolflow.utils.errors import CycleDetectedError


def _position_key(position: Any) -> Tuple[float, float]:
    if position is None:
        return (0.0, 0.0)
    if isinstance(position, Mapping):
        return (float(position.get("x", 0)), float(position.get("y", 0)))
    if isinstance(position, (tuple, list)):
        return (float(position[0]), float(position[1]))
    return (float(position.x), float(position.y))


def topological_sort(
    node_ids: Sequence[str],
    edges: Iterable[Tuple[str, str]],
    positions: Optional[Mapping[str, Any]] = None,
) -> List[str]:
    """Order nodes so every edge points forward.

    The ready set is a priority queue keyed by ``(x, y, node_id)``: both the
    initial indegree-0 nodes and every node released by a removal compete on
    position. A graph laid out left-to-right in a valid order therefore keeps
    that order.

    Args:
        node_ids: Node identifiers
        edges: ``(source, target)`` pairs; pairs touching unknown nodes are ignored
        positions: Optional node id -> position (``{"x", "y"}`` mapping,
            ``(x, y)`` pair or object with ``x``/``y``); missing means (0, 0)

    Returns:
        Node ids in execution order

    Raises:
        CycleDetectedError: If the edges contain a directed cycle
    """
    if not node_ids:
        return []

    positions = positions or {}
    in_degree: Dict[str, int] = {node_id: 0 for node_id in node_ids}
    adjacency: Dict[str, List[str]] = {node_id: [] for node_id in in_degree}

    for source, target in edges:
        if source not in in_degree or target not in in_degree:
            continue
        adjacency[source].append(target)
        in_degree[target] += 1

    def sort_key(node_id: str) -> Tuple[float, float, str]:
        x, y = _position_key(positions.get(node_id))
        return (x, y, node_id)

    ready = [sort_key(node_id) for node_id, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    order: List[str] = []

    while ready:
        _, _, current = heapq.heappop(ready)
        order.append(current)

        for neighbor in adjacency[current]:
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                heapq.heappush(ready, sort_key(neighbor))

    if len(order) != len(in_degree):
        ordered = set(order)
        raise CycleDetectedError([node_id for node_id in in_degree if node_id not in ordered])

    return order
