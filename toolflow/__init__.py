"""
Toolflow: pipeline orchestration for composable tools

Compose registered tools into multi-step pipelines whose steps reference
earlier outputs and named variables through ``${{ ... }}`` expressions.
Pipelines can be written directly in their serialized form or derived from an
editor dependency graph.

Example:
    >>> from toolflow import PipelineExecutor, create_default_registry
    >>>
    >>> executor = PipelineExecutor(create_default_registry())
    >>> result = await executor.run({
    ...     "steps": [
    ...         {"toolId": "variable-set", "input": {"name": "greeting", "value": "hi"}},
    ...         {"toolId": "variable-set",
    ...          "input": {"name": "copy", "value": "${{ variables.greeting }} there"}},
    ...     ]
    ... })
    >>> result.steps[1].output
    {'name': 'copy', 'value': 'hi there'}
"""

__version__ = "0.1.0"

# Core components
from toolflow.core.tool import (
    CancellationToken,
    ToolContext,
    ToolDefinition,
    ToolProgress,
    ToolResult,
    tool_fail,
    tool_ok,
)
from toolflow.core.pipeline import (
    InputMapping,
    PipelineDefinition,
    PipelineResult,
    PipelineStep,
    StepResult,
)
from toolflow.core.state import ExecutionContext
from toolflow.core.events import EventEmitter, EventType, ExecutionEvent
from toolflow.core.graph import DependencyGraph, GraphEdge, GraphNode, Position
from toolflow.core.scheduler import topological_sort
from toolflow.core.executor import PipelineExecutor, execute_pipeline

# Registry and expressions
from toolflow.utils.registry import ToolRegistry, create_default_registry
from toolflow.utils.expressions import ABSENT, ExpressionResolver, resolve_expressions

# Parsers
from toolflow.parsers.graph_pipeline import (
    auto_layout_positions,
    display_order,
    graph_to_pipeline,
    layout_from_graph,
    pipeline_to_graph,
)
from toolflow.parsers.react_flow import ReactFlowParser

# Stores
from toolflow.backends.base import PipelineStore
from toolflow.backends.memory import MemoryPipelineStore
from toolflow.backends.sqlite import SQLitePipelineStore
from toolflow.backends.schema import SavedPipeline, SavedPipelineSummary, SavePipelineInput

# Errors
from toolflow.utils.errors import (
    ToolflowError,
    DuplicateToolError,
    GraphValidationError,
    CycleDetectedError,
    PipelineExecutionError,
    ToolNotFoundError,
    StepInputInvalidError,
    StepExecutionFailedError,
    PipelineCancelledError,
    PipelineNotFoundError,
    PipelineValidationError,
)

__all__ = [
    # Version
    "__version__",
    # Core
    "CancellationToken",
    "ToolContext",
    "ToolDefinition",
    "ToolProgress",
    "ToolResult",
    "tool_fail",
    "tool_ok",
    "InputMapping",
    "PipelineDefinition",
    "PipelineResult",
    "PipelineStep",
    "StepResult",
    "ExecutionContext",
    "EventEmitter",
    "EventType",
    "ExecutionEvent",
    "DependencyGraph",
    "GraphEdge",
    "GraphNode",
    "Position",
    "topological_sort",
    "PipelineExecutor",
    "execute_pipeline",
    # Registry and expressions
    "ToolRegistry",
    "create_default_registry",
    "ABSENT",
    "ExpressionResolver",
    "resolve_expressions",
    # Parsers
    "auto_layout_positions",
    "display_order",
    "graph_to_pipeline",
    "layout_from_graph",
    "pipeline_to_graph",
    "ReactFlowParser",
    # Stores
    "PipelineStore",
    "MemoryPipelineStore",
    "SQLitePipelineStore",
    "SavedPipeline",
    "SavedPipelineSummary",
    "SavePipelineInput",
    # Errors
    "ToolflowError",
    "DuplicateToolError",
    "GraphValidationError",
    "CycleDetectedError",
    "PipelineExecutionError",
    "ToolNotFoundError",
    "StepInputInvalidError",
    "StepExecutionFailedError",
    "PipelineCancelledError",
    "PipelineNotFoundError",
    "PipelineValidationError",
]
