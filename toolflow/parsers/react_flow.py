"""React Flow JSON parser for the visual editor's graph format.

The editor stores tool nodes and typed edges in React Flow's shape. Handle
ids carry an ``in:``/``out:`` prefix so an input and an output sharing a
port name stay distinct.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from toolflow.backends.schema import Viewport
from toolflow.core.graph import DependencyGraph, GraphEdge, GraphNode, Position
from toolflow.utils.errors import GraphValidationError
from toolflow.utils.registry import ToolRegistry
from toolflow.utils.schema import get_ports

INPUT_HANDLE_PREFIX = "in:"
OUTPUT_HANDLE_PREFIX = "out:"


def input_handle_id(key: str) -> str:
    return f"{INPUT_HANDLE_PREFIX}{key}"


def output_handle_id(key: str) -> str:
    return f"{OUTPUT_HANDLE_PREFIX}{key}"


def parse_handle_id(handle_id: Optional[str]) -> Optional[Dict[str, str]]:
    """Split a handle id into ``{"kind": "input"|"output", "key": ...}``."""
    if not handle_id:
        return None
    if handle_id.startswith(INPUT_HANDLE_PREFIX):
        return {"kind": "input", "key": handle_id[len(INPUT_HANDLE_PREFIX):]}
    if handle_id.startswith(OUTPUT_HANDLE_PREFIX):
        return {"kind": "output", "key": handle_id[len(OUTPUT_HANDLE_PREFIX):]}
    return None


class ReactFlowNode(BaseModel):
    """Schema for a node in React Flow JSON."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: str = "tool"
    data: Dict[str, Any] = Field(default_factory=dict)
    position: Optional[Dict[str, float]] = None


class ReactFlowEdge(BaseModel):
    """Schema for an edge in React Flow JSON."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    source: str
    target: str
    source_handle: Optional[str] = Field(None, alias="sourceHandle")
    target_handle: Optional[str] = Field(None, alias="targetHandle")
    data: Dict[str, Any] = Field(default_factory=dict)


class ReactFlowJSON(BaseModel):
    """Schema for the editor's saved graph."""

    nodes: List[ReactFlowNode] = Field(default_factory=list)
    edges: List[ReactFlowEdge] = Field(default_factory=list)
    viewport: Optional[Viewport] = None


class ReactFlowParser:
    """Parse editor JSON into a DependencyGraph and back.

    Node data fields used: ``toolId``, ``inputValues``, ``bypassed``. Ports
    are rebuilt from the registry so they always match the tool's current
    shape.

    Example:
        >>> parser = ReactFlowParser(registry)
        >>> graph = parser.parse(flow_json)
        >>> graph_to_pipeline(graph).definition
    """

    def __init__(self, registry: Optional[ToolRegistry] = None):
        self.registry = registry

    def parse(self, json_data: Dict[str, Any]) -> DependencyGraph:
        """Parse React Flow JSON into a DependencyGraph.

        Raises:
            GraphValidationError: If the JSON is malformed or breaks graph invariants
        """
        try:
            flow = ReactFlowJSON.model_validate(json_data)
        except ValidationError as e:
            raise GraphValidationError(f"Invalid React Flow JSON: {e}") from e

        graph = DependencyGraph()
        for raw_node in flow.nodes:
            graph.add_node(self._create_node(raw_node))

        for raw_edge in flow.edges:
            source_key = self._port_key(raw_edge.data.get("sourcePortKey"), raw_edge.source_handle, "output")
            target_key = self._port_key(raw_edge.data.get("targetPortKey"), raw_edge.target_handle, "input")
            if source_key is None or target_key is None:
                raise GraphValidationError(
                    f"Edge {raw_edge.source} -> {raw_edge.target} does not name its ports"
                )

            data_type = raw_edge.data.get("sourcePortType")
            if raw_edge.id is None:
                graph.connect(raw_edge.source, source_key, raw_edge.target, target_key, data_type)
                continue

            if data_type is None:
                source = graph.nodes.get(raw_edge.source)
                port = source.output_port(source_key) if source else None
                data_type = port.data_type if port else "unknown"
            graph.add_edge(
                GraphEdge(
                    id=raw_edge.id,
                    source_node_id=raw_edge.source,
                    source_port_key=source_key,
                    target_node_id=raw_edge.target,
                    target_port_key=target_key,
                    source_data_type=data_type,
                )
            )

        return graph

    def dump(self, graph: DependencyGraph, viewport: Optional[Viewport] = None) -> Dict[str, Any]:
        """Serialize a graph to editor JSON."""
        nodes = []
        for node in graph.nodes.values():
            nodes.append(
                {
                    "id": node.id,
                    "type": "tool",
                    "position": {"x": node.position.x, "y": node.position.y},
                    "data": {
                        "toolId": node.tool_id,
                        "toolName": node.tool_name or node.tool_id,
                        "category": node.category,
                        "inputValues": dict(node.literal_values),
                        "connectedInputs": sorted(graph.connected_input_keys(node.id)),
                        "connectedOutputs": sorted(graph.connected_output_keys(node.id)),
                        "bypassed": node.bypass,
                    },
                }
            )

        edges = [
            {
                "id": edge.id,
                "source": edge.source_node_id,
                "target": edge.target_node_id,
                "sourceHandle": output_handle_id(edge.source_port_key),
                "targetHandle": input_handle_id(edge.target_port_key),
                "type": "typed",
                "data": {
                    "sourcePortType": edge.source_data_type,
                    "sourcePortKey": edge.source_port_key,
                    "targetPortKey": edge.target_port_key,
                },
            }
            for edge in graph.edges
        ]

        return {
            "nodes": nodes,
            "edges": edges,
            "viewport": (viewport or Viewport()).model_dump(),
        }

    def _create_node(self, raw_node: ReactFlowNode) -> GraphNode:
        data = raw_node.data
        tool_id = data.get("toolId")
        if not tool_id:
            raise GraphValidationError(f"Node '{raw_node.id}' is missing 'toolId'")

        tool = self.registry.get(tool_id) if self.registry else None
        position = raw_node.position or {}

        return GraphNode(
            id=raw_node.id,
            tool_id=tool_id,
            position=Position(x=position.get("x", 0.0), y=position.get("y", 0.0)),
            tool_name=tool.name if tool else data.get("toolName", tool_id),
            category=tool.category if tool else data.get("category", "Utility"),
            input_ports=get_ports(tool.input_schema()) if tool else [],
            output_ports=get_ports(tool.output_schema()) if tool else [],
            literal_values=dict(data.get("inputValues") or {}),
            bypass=bool(data.get("bypassed", False)),
        )

    @staticmethod
    def _port_key(explicit: Optional[str], handle_id: Optional[str], kind: str) -> Optional[str]:
        if explicit:
            return explicit
        parsed = parse_handle_id(handle_id)
        if parsed and parsed["kind"] == kind:
            return parsed["key"]
        return handle_id or None
