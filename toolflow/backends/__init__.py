"""Saved-pipeline stores."""

from toolflow.backends.base import PipelineStore
from toolflow.backends.memory import MemoryPipelineStore
from toolflow.backends.sqlite import SQLitePipelineStore
from toolflow.backends.schema import (
    GraphLayout,
    NodeLayout,
    NodePosition,
    SavedPipeline,
    SavedPipelineSummary,
    SavePipelineInput,
    Viewport,
    validate_slug,
)

__all__ = [
    "PipelineStore",
    "MemoryPipelineStore",
    "SQLitePipelineStore",
    "GraphLayout",
    "NodeLayout",
    "NodePosition",
    "SavedPipeline",
    "SavedPipelineSummary",
    "SavePipelineInput",
    "Viewport",
    "validate_slug",
]
