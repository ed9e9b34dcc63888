"""Editor-facing dependency graph.

Nodes are tool instances placed on a canvas; edges connect one node's output
port to another node's input port. The connected-port sets of a node are
views over the edge set and are recomputed on every read, so they can never
drift from the edges they reflect.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field

from toolflow.core.scheduler import topological_sort
from toolflow.utils.errors import GraphValidationError
from toolflow.utils.schema import Port


class Position(BaseModel):
    """Canvas coordinates of a node."""

    x: float = 0.0
    y: float = 0.0


class GraphEdge(BaseModel):
    """Directed connection from a source output port to a target input port."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    source_node_id: str = Field(alias="sourceNodeId")
    source_port_key: str = Field(alias="sourcePortKey")
    target_node_id: str = Field(alias="targetNodeId")
    target_port_key: str = Field(alias="targetPortKey")
    source_data_type: str = Field(default="unknown", alias="sourceDataType")


def edge_id_for(source_node_id: str, source_port_key: str, target_node_id: str, target_port_key: str) -> str:
    return f"e-{source_node_id}-{source_port_key}-{target_node_id}-{target_port_key}"


@dataclass
class GraphNode:
    """A tool placed on the canvas.

    Attributes:
        id: Node identifier
        tool_id: Registered tool the node runs
        position: Canvas position (used for deterministic ordering)
        tool_name: Display name of the tool
        category: Tool category
        input_ports: Ports derived from the tool's input shape
        output_ports: Ports derived from the tool's output shape
        literal_values: Literal input values keyed by input port
        bypass: Pass input through as output instead of running the tool
    """

    id: str
    tool_id: str
    position: Position = field(default_factory=Position)
    tool_name: Optional[str] = None
    category: str = "Utility"
    input_ports: List[Port] = field(default_factory=list)
    output_ports: List[Port] = field(default_factory=list)
    literal_values: Dict[str, Any] = field(default_factory=dict)
    bypass: bool = False

    def output_port(self, key: str) -> Optional[Port]:
        for port in self.output_ports:
            if port.key == key:
                return port
        return None

    def input_port(self, key: str) -> Optional[Port]:
        for port in self.input_ports:
            if port.key == key:
                return port
        return None


@dataclass
class DependencyGraph:
    """Nodes plus typed edges, with editor invariants enforced on mutation.

    Invariants:
        - an edge never connects a node to itself
        - a target port receives at most one edge (no fan-in)
        - edges only reference nodes present in the graph

    Attributes:
        nodes: Mapping of node IDs to GraphNode instances, in insertion order
        edges: List of edges
    """

    nodes: Dict[str, GraphNode] = field(default_factory=dict)
    edges: List[GraphEdge] = field(default_factory=list)

    @classmethod
    def from_nodes_and_edges(
        cls, nodes: Iterable[GraphNode], edges: Iterable[GraphEdge]
    ) -> "DependencyGraph":
        """Build a graph, validating every node and edge.

        Raises:
            GraphValidationError: If a node id repeats or an edge breaks an invariant
        """
        graph = cls()
        for node in nodes:
            graph.add_node(node)
        for edge in edges:
            graph.add_edge(edge)
        return graph

    def add_node(self, node: GraphNode) -> GraphNode:
        if node.id in self.nodes:
            raise GraphValidationError(f"Duplicate node id: {node.id}")
        self.nodes[node.id] = node
        return node

    def remove_node(self, node_id: str) -> None:
        """Remove a node and every edge touching it."""
        self.get_node(node_id)
        del self.nodes[node_id]
        self.edges = [
            e for e in self.edges
            if e.source_node_id != node_id and e.target_node_id != node_id
        ]

    def add_edge(self, edge: GraphEdge) -> GraphEdge:
        """Add an edge after checking graph invariants.

        Raises:
            GraphValidationError: If the edge is invalid
        """
        if edge.source_node_id not in self.nodes:
            raise GraphValidationError(
                f"Edge references non-existent source node: {edge.source_node_id}"
            )
        if edge.target_node_id not in self.nodes:
            raise GraphValidationError(
                f"Edge references non-existent target node: {edge.target_node_id}"
            )
        if edge.source_node_id == edge.target_node_id:
            raise GraphValidationError(f"Edge {edge.id} connects node {edge.source_node_id} to itself")

        existing = self.incoming_edge(edge.target_node_id, edge.target_port_key)
        if existing is not None:
            raise GraphValidationError(
                f"Input '{edge.target_port_key}' of node {edge.target_node_id} "
                f"is already connected by edge {existing.id}"
            )
        if any(e.id == edge.id for e in self.edges):
            raise GraphValidationError(f"Duplicate edge id: {edge.id}")

        self.edges.append(edge)
        return edge

    def connect(
        self,
        source_node_id: str,
        source_port_key: str,
        target_node_id: str,
        target_port_key: str,
        source_data_type: Optional[str] = None,
    ) -> GraphEdge:
        """Connect an output port to an input port.

        The edge's data type defaults to the source port's declared type.
        Ids are derived from both endpoints and get a numeric suffix when
        hyphenated keys make two different connections spell the same id.
        """
        if source_data_type is None:
            source = self.nodes.get(source_node_id)
            port = source.output_port(source_port_key) if source else None
            source_data_type = port.data_type if port else "unknown"

        base_id = edge_id_for(source_node_id, source_port_key, target_node_id, target_port_key)
        taken = {e.id for e in self.edges}
        edge_id = base_id
        suffix = 2
        while edge_id in taken:
            edge_id = f"{base_id}-{suffix}"
            suffix += 1

        return self.add_edge(
            GraphEdge(
                id=edge_id,
                source_node_id=source_node_id,
                source_port_key=source_port_key,
                target_node_id=target_node_id,
                target_port_key=target_port_key,
                source_data_type=source_data_type,
            )
        )

    def disconnect(self, edge_id: str) -> GraphEdge:
        """Remove an edge by id.

        Raises:
            KeyError: If no edge has that id
        """
        for index, edge in enumerate(self.edges):
            if edge.id == edge_id:
                return self.edges.pop(index)
        raise KeyError(edge_id)

    def get_node(self, node_id: str) -> GraphNode:
        """Get a node by ID.

        Raises:
            KeyError: If node does not exist
        """
        return self.nodes[node_id]

    def incoming_edges(self, node_id: str) -> List[GraphEdge]:
        return [e for e in self.edges if e.target_node_id == node_id]

    def outgoing_edges(self, node_id: str) -> List[GraphEdge]:
        return [e for e in self.edges if e.source_node_id == node_id]

    def incoming_edge(self, node_id: str, port_key: str) -> Optional[GraphEdge]:
        for edge in self.edges:
            if edge.target_node_id == node_id and edge.target_port_key == port_key:
                return edge
        return None

    def connected_input_keys(self, node_id: str) -> Set[str]:
        """Input port keys of ``node_id`` that have an incoming edge."""
        return {e.target_port_key for e in self.edges if e.target_node_id == node_id}

    def connected_output_keys(self, node_id: str) -> Set[str]:
        """Output port keys of ``node_id`` that feed at least one edge."""
        return {e.source_port_key for e in self.edges if e.source_node_id == node_id}

    def positions(self) -> Dict[str, Position]:
        return {node_id: node.position for node_id, node in self.nodes.items()}

    def execution_order(self) -> List[str]:
        """Deterministic topological order of node ids.

        Raises:
            CycleDetectedError: If the graph contains a cycle
        """
        return topological_sort(
            list(self.nodes.keys()),
            [(e.source_node_id, e.target_node_id) for e in self.edges],
            self.positions(),
        )

    def __len__(self) -> int:
        return len(self.nodes)
