"""Core pipeline orchestration components."""

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

__all__ = [
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
]
