"""Bidirectional mapping between dependency graphs and linear pipelines.

Graph -> pipeline linearizes the graph with the deterministic scheduler and
turns every edge into a ``${{ steps.<i>.output.<port> }}`` reference.
Pipeline -> graph re-hydrates nodes from steps and derives edges from
whole-string step references and legacy input mappings.

The text encoding is ambiguous in one direction: a literal string that
happens to look like a step reference is indistinguishable from a real one
and comes back as a connection.

A legacy mapping with no field connects from the ``output`` port, so after a
round trip the step reads ``steps.<i>.output.output`` instead of the whole
output. Connectivity survives; the value the step receives may not.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from toolflow.backends.schema import GraphLayout, NodeLayout, NodePosition, Viewport
from toolflow.core.graph import DependencyGraph, GraphNode, Position
from toolflow.core.pipeline import PipelineDefinition, PipelineResult, PipelineStep, StepResult
from toolflow.utils.errors import CycleDetectedError
from toolflow.utils.expressions import StepReference, parse_reference, step_reference
from toolflow.utils.registry import ToolRegistry
from toolflow.utils.schema import get_ports

logger = logging.getLogger(__name__)

NODE_SPACING_X = 380
NODE_START_X = 80
NODE_START_Y = 120

LEGACY_DEFAULT_FIELD = "output"


def step_node_id(index: int) -> str:
    return f"step-{index}"


def auto_layout_positions(node_count: int) -> List[Position]:
    """Single-row, fixed-spacing, left-to-right layout."""
    return [
        Position(x=NODE_START_X + i * NODE_SPACING_X, y=NODE_START_Y)
        for i in range(node_count)
    ]


@dataclass
class GraphToPipelineResult:
    """Pipeline produced from a graph, with node <-> step index maps."""

    definition: PipelineDefinition
    node_to_step_index: Dict[str, int] = field(default_factory=dict)
    step_index_to_node: Dict[int, str] = field(default_factory=dict)


@dataclass
class PipelineToGraphResult:
    graph: DependencyGraph
    viewport: Viewport = field(default_factory=Viewport)


def graph_to_pipeline(graph: DependencyGraph) -> GraphToPipelineResult:
    """Linearize a graph into a pipeline definition.

    The scheduler's order is the step order, and a node's position in it is
    its step index.

    Raises:
        CycleDetectedError: If the graph contains a cycle
    """
    order = graph.execution_order()
    node_to_step_index = {node_id: index for index, node_id in enumerate(order)}

    steps = []
    for node_id in order:
        node = graph.get_node(node_id)
        connected = graph.connected_input_keys(node_id)

        step_input: Dict[str, Any] = {
            key: value for key, value in node.literal_values.items() if key not in connected
        }
        for edge in graph.incoming_edges(node_id):
            step_input[edge.target_port_key] = step_reference(
                node_to_step_index[edge.source_node_id], edge.source_port_key
            )

        steps.append(PipelineStep(tool_id=node.tool_id, input=step_input, bypass=node.bypass))

    logger.debug("Linearized graph with %d nodes into %d steps", len(graph), len(steps))
    return GraphToPipelineResult(
        definition=PipelineDefinition(steps=steps),
        node_to_step_index=node_to_step_index,
        step_index_to_node={index: node_id for node_id, index in node_to_step_index.items()},
    )


def _tool_infos(tools: Union[ToolRegistry, Iterable[Mapping[str, Any]], None]) -> Dict[str, Mapping[str, Any]]:
    if tools is None:
        return {}
    if isinstance(tools, ToolRegistry):
        tools = tools.list_with_schemas()
    return {info["id"]: info for info in tools}


def _layout_positions(layout: Optional[GraphLayout]) -> Dict[str, Position]:
    if layout is None:
        return {}
    return {
        entry.id: Position(x=entry.position.x, y=entry.position.y)
        for entry in layout.nodes
    }


def pipeline_to_graph(
    definition: PipelineDefinition,
    tools: Union[ToolRegistry, Iterable[Mapping[str, Any]], None] = None,
    layout: Optional[GraphLayout] = None,
) -> PipelineToGraphResult:
    """Re-hydrate an editor graph from a pipeline definition.

    Args:
        definition: Pipeline to convert
        tools: Registry, or ``list_with_schemas()``-style dicts, for ports and names
        layout: Stored layout; nodes without a stored position are auto-laid out

    Returns:
        PipelineToGraphResult with the graph and viewport
    """
    infos = _tool_infos(tools)
    positions = _layout_positions(layout)
    auto_positions = auto_layout_positions(len(definition.steps))
    graph = DependencyGraph()

    for index, step in enumerate(definition.steps):
        info = infos.get(step.tool_id) or {}
        node_id = step_node_id(index)
        legacy_keys = set((step.input_mapping or {}).keys())

        literal_values = {}
        for key, value in (step.input or {}).items():
            if key in legacy_keys:
                continue
            reference = parse_reference(value)
            if isinstance(reference, StepReference) and reference.step_index < index:
                continue
            literal_values[key] = value

        graph.add_node(
            GraphNode(
                id=node_id,
                tool_id=step.tool_id,
                position=positions.get(node_id, auto_positions[index]),
                tool_name=info.get("name", step.tool_id),
                category=info.get("category", "Utility"),
                input_ports=get_ports(info.get("inputSchema")),
                output_ports=get_ports(info.get("outputSchema")),
                literal_values=literal_values,
                bypass=step.bypass,
            )
        )

    for index, step in enumerate(definition.steps):
        target_id = step_node_id(index)

        # Legacy mappings overlay expression input at run time, so they win here too
        for key, mapping in (step.input_mapping or {}).items():
            if not 0 <= mapping.from_step < index:
                logger.warning(
                    "Step %d mapping '%s' references step %d which is not earlier; ignored",
                    index, key, mapping.from_step,
                )
                continue
            graph.connect(
                step_node_id(mapping.from_step),
                mapping.field or LEGACY_DEFAULT_FIELD,
                target_id,
                key,
            )

        for key, value in (step.input or {}).items():
            reference = parse_reference(value)
            if not isinstance(reference, StepReference) or reference.step_index >= index:
                continue
            if key in graph.connected_input_keys(target_id):
                continue
            graph.connect(step_node_id(reference.step_index), reference.field, target_id, key)

    viewport = layout.viewport if layout is not None and layout.viewport else Viewport()
    return PipelineToGraphResult(graph=graph, viewport=viewport)


def layout_from_graph(graph: DependencyGraph, viewport: Optional[Viewport] = None) -> GraphLayout:
    """Capture node positions for storage alongside a pipeline.

    Positions are keyed by the step node id each node will have after
    linearization, so they survive a save/load round-trip.
    """
    mapping = graph_to_pipeline(graph)
    return GraphLayout(
        nodes=[
            NodeLayout(
                id=step_node_id(index),
                position=NodePosition(
                    x=graph.get_node(node_id).position.x,
                    y=graph.get_node(node_id).position.y,
                ),
            )
            for index, node_id in sorted(mapping.step_index_to_node.items())
        ],
        viewport=viewport,
    )


def fallback_display_order(graph: DependencyGraph) -> List[str]:
    """Left-to-right, top-to-bottom node order ignoring edges.

    For display only; never execute a graph in this order.
    """
    return sorted(
        graph.nodes,
        key=lambda node_id: (
            graph.nodes[node_id].position.x,
            graph.nodes[node_id].position.y,
            node_id,
        ),
    )


def display_order(graph: DependencyGraph) -> Tuple[List[str], bool]:
    """Order nodes for display, degrading gracefully on cycles.

    Returns:
        ``(order, executable)``; ``executable`` is False when a cycle forced
        the positional fallback
    """
    try:
        return graph.execution_order(), True
    except CycleDetectedError as e:
        logger.info("Graph is cyclic (%s); using positional display order", e)
        return fallback_display_order(graph), False


def apply_results_to_graph(
    result: PipelineResult, step_index_to_node: Mapping[int, str]
) -> Dict[str, StepResult]:
    """Map each step result back onto the node that produced it."""
    return {
        step_index_to_node[index]: step_result
        for index, step_result in enumerate(result.steps)
        if index in step_index_to_node
    }
