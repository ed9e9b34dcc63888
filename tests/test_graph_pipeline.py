"""Tests for graph <-> pipeline mapping and the React Flow parser."""

import pytest

from toolflow import (
    DependencyGraph,
    GraphNode,
    GraphValidationError,
    PipelineDefinition,
    Position,
    ReactFlowParser,
    display_order,
    graph_to_pipeline,
    layout_from_graph,
    pipeline_to_graph,
)
from toolflow.backends.schema import GraphLayout, Viewport
from toolflow.parsers.graph_pipeline import apply_results_to_graph, auto_layout_positions
from toolflow.utils.schema import get_ports


def _node(registry, node_id, tool_id, x, y=0.0, literals=None, bypass=False):
    tool = registry.get(tool_id)
    return GraphNode(
        id=node_id,
        tool_id=tool_id,
        position=Position(x=x, y=y),
        tool_name=tool.name,
        category=tool.category,
        input_ports=get_ports(tool.input_schema()),
        output_ports=get_ports(tool.output_schema()),
        literal_values=dict(literals or {}),
        bypass=bypass,
    )


@pytest.fixture
def two_node_graph(registry):
    """text -> echo, with the downstream node inserted first."""
    graph = DependencyGraph()
    graph.add_node(_node(registry, "n2", "echo", 400, literals={"value": "stale", "other": 1}))
    graph.add_node(_node(registry, "n1", "text", 0, literals={"text": "hello"}))
    graph.connect("n1", "length", "n2", "value")
    return graph


class TestGraphToPipeline:
    def test_edges_become_step_references(self, two_node_graph):
        """Test linearization and edge encoding."""
        result = graph_to_pipeline(two_node_graph)

        assert result.definition.to_wire() == {
            "steps": [
                {"toolId": "text", "input": {"text": "hello"}},
                {"toolId": "echo", "input": {"other": 1, "value": "${{ steps.0.output.length }}"}},
            ]
        }
        assert result.node_to_step_index == {"n1": 0, "n2": 1}
        assert result.step_index_to_node == {0: "n1", 1: "n2"}

    def test_connected_literal_is_overridden(self, two_node_graph):
        """Test that an edge wins over a stale literal on the same port."""
        step = graph_to_pipeline(two_node_graph).definition.steps[1]

        assert step.input["value"] == "${{ steps.0.output.length }}"

    def test_bypass_carried_over(self, registry):
        graph = DependencyGraph()
        graph.add_node(_node(registry, "only", "echo", 0, literals={"a": 1}, bypass=True))

        [step] = graph_to_pipeline(graph).definition.steps

        assert step.bypass is True

    def test_empty_graph(self):
        assert graph_to_pipeline(DependencyGraph()).definition.steps == []

    @pytest.mark.asyncio
    async def test_linearized_graph_runs(self, two_node_graph, executor):
        """Test that a linearized graph executes and maps results back to nodes."""
        mapping = graph_to_pipeline(two_node_graph)

        result = await executor.run(mapping.definition)
        by_node = apply_results_to_graph(result, mapping.step_index_to_node)

        assert by_node["n1"].output == {"text": "hello", "length": 5}
        assert by_node["n2"].output == {"other": 1, "value": 5}


class TestPipelineToGraph:
    def test_references_become_typed_edges(self, registry):
        """Test re-hydrating nodes, literals and edges from a pipeline."""
        definition = PipelineDefinition.model_validate(
            {
                "steps": [
                    {"toolId": "text", "input": {"text": "hello"}},
                    {
                        "toolId": "echo",
                        "input": {
                            "value": "${{ steps.0.output.length }}",
                            "other": 1,
                            "future": "${{ steps.5.output.x }}",
                        },
                    },
                ]
            }
        )

        graph = pipeline_to_graph(definition, registry).graph

        assert list(graph.nodes) == ["step-0", "step-1"]
        [edge] = graph.edges
        assert edge.id == "e-step-0-length-step-1-value"
        assert edge.source_data_type == "number"
        assert graph.get_node("step-1").literal_values == {
            "other": 1,
            "future": "${{ steps.5.output.x }}",
        }
        assert graph.get_node("step-0").tool_name == "Text Length"

    def test_auto_layout(self, registry):
        """Test the single-row default layout."""
        definition = PipelineDefinition.model_validate(
            {"steps": [{"toolId": "echo"}, {"toolId": "echo"}, {"toolId": "echo"}]}
        )

        graph = pipeline_to_graph(definition, registry).graph

        assert [node.position for node in graph.nodes.values()] == auto_layout_positions(3)
        assert graph.get_node("step-2").position == Position(x=840, y=120)

    def test_whole_output_reference_stays_literal(self, registry):
        definition = PipelineDefinition.model_validate(
            {
                "steps": [
                    {"toolId": "echo", "input": {"a": 1}},
                    {"toolId": "echo", "input": {"all": "${{ steps.0.output }}"}},
                ]
            }
        )

        graph = pipeline_to_graph(definition, registry).graph

        assert graph.edges == []
        assert graph.get_node("step-1").literal_values == {"all": "${{ steps.0.output }}"}

    def test_legacy_mapping_wins(self, registry):
        """Test that a legacy mapping replaces an expression on the same key."""
        definition = PipelineDefinition.model_validate(
            {
                "steps": [
                    {"toolId": "text", "input": {"text": "hi"}},
                    {
                        "toolId": "echo",
                        "input": {"value": "${{ steps.0.output.length }}"},
                        "inputMapping": {
                            "value": {"fromStep": 0, "field": "text"},
                            "whole": {"fromStep": 0},
                        },
                    },
                ]
            }
        )

        graph = pipeline_to_graph(definition, registry).graph

        assert {(e.source_port_key, e.target_port_key) for e in graph.edges} == {
            ("text", "value"),
            ("output", "whole"),
        }
        assert graph.get_node("step-1").literal_values == {}

    def test_without_registry(self):
        """Test that unknown tools still produce nodes."""
        definition = PipelineDefinition.model_validate(
            {
                "steps": [
                    {"toolId": "mystery"},
                    {"toolId": "mystery", "input": {"x": "${{ steps.0.output.y }}"}},
                ]
            }
        )

        graph = pipeline_to_graph(definition).graph

        node = graph.get_node("step-0")
        assert node.tool_name == "mystery"
        assert node.input_ports == []
        assert graph.edges[0].source_data_type == "unknown"

    def test_accepts_tool_listing(self, registry):
        definition = PipelineDefinition.model_validate({"steps": [{"toolId": "text"}]})

        graph = pipeline_to_graph(definition, registry.list_with_schemas()).graph

        assert [port.key for port in graph.get_node("step-0").input_ports] == ["text"]


class TestRoundTrip:
    def test_pipeline_graph_pipeline(self, registry):
        """Test that expression-only pipelines survive a round trip unchanged."""
        wire = {
            "steps": [
                {"toolId": "text", "input": {"text": "hello"}},
                {"toolId": "echo", "input": {"a": "${{ steps.0.output.length }}", "b": "lit"}},
                {
                    "toolId": "echo",
                    "input": {
                        "x": "${{ steps.1.output.a }}",
                        "y": "${{ steps.0.output.text }}",
                        "z": "${{ steps.0.output }}",
                    },
                    "bypass": True,
                },
            ]
        }
        definition = PipelineDefinition.model_validate(wire)

        graph = pipeline_to_graph(definition, registry).graph
        again = graph_to_pipeline(graph).definition

        assert again.to_wire() == wire

    def test_hyphenated_port_keys_round_trip(self, registry):
        wire = {
            "steps": [
                {"toolId": "echo", "input": {"a": 1}},
                {"toolId": "echo", "input": {"step-2-k": "${{ steps.0.output.x }}"}},
                {"toolId": "echo", "input": {"k": "${{ steps.0.output.x-step-1 }}"}},
            ]
        }

        graph = pipeline_to_graph(PipelineDefinition.model_validate(wire), registry).graph

        assert len({edge.id for edge in graph.edges}) == 2
        assert graph_to_pipeline(graph).definition.to_wire() == wire

    @pytest.mark.asyncio
    async def test_fieldless_legacy_mapping_reads_output_port(self, registry, executor):
        """Test that a whole-output legacy mapping comes back as an output port reference."""
        definition = PipelineDefinition.model_validate(
            {
                "steps": [
                    {"toolId": "echo", "input": {"a": 1}},
                    {"toolId": "echo", "inputMapping": {"whole": {"fromStep": 0}}},
                ]
            }
        )

        before = await executor.run(definition)
        again = graph_to_pipeline(pipeline_to_graph(definition, registry).graph).definition
        after = await executor.run(again)

        assert before.steps[1].output == {"whole": {"a": 1}}
        assert again.steps[1].input == {"whole": "${{ steps.0.output.output }}"}
        assert after.steps[1].output == {}

    def test_layout_survives_save_and_load(self, registry, two_node_graph):
        """Test that stored positions are reapplied to the rebuilt graph."""
        layout = layout_from_graph(two_node_graph, Viewport(x=5, y=6, zoom=0.5))
        definition = graph_to_pipeline(two_node_graph).definition

        restored = pipeline_to_graph(definition, registry, GraphLayout.model_validate(layout.model_dump()))

        assert restored.graph.get_node("step-0").position == Position(x=0, y=0)
        assert restored.graph.get_node("step-1").position == Position(x=400, y=0)
        assert restored.viewport == Viewport(x=5, y=6, zoom=0.5)

    def test_partial_layout_falls_back_to_auto(self, registry):
        definition = PipelineDefinition.model_validate({"steps": [{"toolId": "echo"}, {"toolId": "echo"}]})
        layout = GraphLayout.model_validate(
            {"nodes": [{"id": "step-1", "position": {"x": 10, "y": 20}}]}
        )

        result = pipeline_to_graph(definition, registry, layout)

        assert result.graph.get_node("step-0").position == Position(x=80, y=120)
        assert result.graph.get_node("step-1").position == Position(x=10, y=20)
        assert result.viewport == Viewport()


class TestDisplayOrder:
    def test_acyclic_graph_is_executable(self, two_node_graph):
        assert display_order(two_node_graph) == (["n1", "n2"], True)

    def test_cyclic_graph_falls_back_to_positions(self, registry):
        """Test that a cycle degrades to positional display order."""
        graph = DependencyGraph()
        graph.add_node(_node(registry, "b", "echo", 300))
        graph.add_node(_node(registry, "a", "echo", 0))
        graph.connect("a", "x", "b", "x")
        graph.connect("b", "x", "a", "x")

        assert display_order(graph) == (["a", "b"], False)


class TestReactFlowParser:
    @pytest.fixture
    def flow_json(self):
        return {
            "nodes": [
                {"id": "n1", "position": {"x": 0, "y": 0}, "data": {"toolId": "text", "inputValues": {"text": "hi"}}},
                {"id": "n2", "position": {"x": 300, "y": 0}, "data": {"toolId": "echo", "bypassed": True}},
            ],
            "edges": [
                {"id": "edge-1", "source": "n1", "target": "n2", "sourceHandle": "out:length", "targetHandle": "in:value"},
            ],
        }

    def test_parse(self, registry, flow_json):
        """Test parsing editor JSON into a graph."""
        graph = ReactFlowParser(registry).parse(flow_json)

        assert graph.get_node("n1").literal_values == {"text": "hi"}
        assert graph.get_node("n2").bypass is True
        [edge] = graph.edges
        assert (edge.id, edge.source_port_key, edge.target_port_key) == ("edge-1", "length", "value")
        assert edge.source_data_type == "number"

    def test_parse_then_linearize(self, registry, flow_json):
        graph = ReactFlowParser(registry).parse(flow_json)

        definition = graph_to_pipeline(graph).definition

        assert definition.steps[1].input == {"value": "${{ steps.0.output.length }}"}
        assert definition.steps[1].bypass is True

    def test_dump_and_parse_back(self, registry, flow_json):
        parser = ReactFlowParser(registry)
        graph = parser.parse(flow_json)

        dumped = parser.dump(graph)
        reparsed = parser.parse(dumped)

        assert dumped["edges"][0]["sourceHandle"] == "out:length"
        assert dumped["nodes"][1]["data"]["connectedInputs"] == ["value"]
        assert reparsed.edges == graph.edges

    def test_missing_tool_id_rejected(self, registry):
        with pytest.raises(GraphValidationError):
            ReactFlowParser(registry).parse({"nodes": [{"id": "n1", "data": {}}]})
