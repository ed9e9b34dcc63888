"""React Flow JSON to pipeline example.

This example parses an editor graph, linearizes it into a pipeline, saves it,
runs it while streaming events, and maps the results back onto graph nodes.
"""

import asyncio
import json

from toolflow import (
    EventType,
    MemoryPipelineStore,
    PipelineExecutor,
    ReactFlowParser,
    create_default_registry,
    graph_to_pipeline,
    layout_from_graph,
)
from toolflow.parsers.graph_pipeline import apply_results_to_graph
from toolflow.utils import configure_logging, load_env

# Load environment variables from .env file
load_env()
configure_logging()


SAMPLE_FLOW = {
    "nodes": [
        {
            "id": "greeting",
            "position": {"x": 100, "y": 100},
            "data": {"toolId": "variable-set", "inputValues": {"name": "greeting", "value": "hello"}},
        },
        {
            "id": "save",
            "position": {"x": 480, "y": 100},
            "data": {
                "toolId": "save-file",
                "inputValues": {
                    "mimeType": "text/plain",
                    "folder": "examples",
                    "filename": "greeting.txt",
                },
            },
        },
    ],
    "edges": [
        {"id": "e1", "source": "greeting", "target": "save", "sourceHandle": "out:value", "targetHandle": "in:data"},
    ],
}


async def main():
    """Parse, save and execute an editor graph."""
    print("=== Toolflow React Flow Example ===\n")

    registry = create_default_registry()
    graph = ReactFlowParser(registry).parse(SAMPLE_FLOW)
    print(f"Graph parsed: {len(graph.nodes)} nodes, {len(graph.edges)} edges\n")

    mapping = graph_to_pipeline(graph)
    print("Pipeline:")
    print(json.dumps(mapping.definition.to_wire(), indent=2))

    store = MemoryPipelineStore()
    await store.save(
        {
            "id": "greeting-file",
            "name": "Greeting file",
            "steps": mapping.definition.to_wire()["steps"],
            "layout": layout_from_graph(graph).model_dump(),
        }
    )

    executor = PipelineExecutor(registry)
    result = None
    async for event in executor.execute(mapping.definition):
        if event.type == EventType.PROGRESS:
            print(f"[{event.percent:3d}%] {event.message}")
        elif event.type == EventType.EXECUTION_COMPLETE:
            result = event.output

    for node_id, step_result in apply_results_to_graph(result, mapping.step_index_to_node).items():
        print(f"{node_id}: {step_result.output} ({step_result.duration_ms}ms)")


if __name__ == "__main__":
    asyncio.run(main())
