"""Converters between editor graphs and serialized pipelines."""

from toolflow.parsers.graph_pipeline import (
    GraphToPipelineResult,
    PipelineToGraphResult,
    apply_results_to_graph,
    auto_layout_positions,
    display_order,
    fallback_display_order,
    graph_to_pipeline,
    layout_from_graph,
    pipeline_to_graph,
)
from toolflow.parsers.react_flow import ReactFlowJSON, ReactFlowParser

__all__ = [
    "GraphToPipelineResult",
    "PipelineToGraphResult",
    "apply_results_to_graph",
    "auto_layout_positions",
    "display_order",
    "fallback_display_order",
    "graph_to_pipeline",
    "layout_from_graph",
    "pipeline_to_graph",
    "ReactFlowJSON",
    "ReactFlowParser",
]
