"""Utility functions and helpers."""

from toolflow.utils.expressions import ABSENT, ExpressionResolver, resolve_expressions
from toolflow.utils.registry import ToolRegistry, create_default_registry
from toolflow.utils.config import load_env, get_config, configure_logging
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
    PipelineStoreError,
    PipelineNotFoundError,
    PipelineValidationError,
)

__all__ = [
    "ABSENT",
    "ExpressionResolver",
    "resolve_expressions",
    "ToolRegistry",
    "create_default_registry",
    "load_env",
    "get_config",
    "configure_logging",
    "ToolflowError",
    "DuplicateToolError",
    "GraphValidationError",
    "CycleDetectedError",
    "PipelineExecutionError",
    "ToolNotFoundError",
    "StepInputInvalidError",
    "StepExecutionFailedError",
    "PipelineCancelledError",
    "PipelineStoreError",
    "PipelineNotFoundError",
    "PipelineValidationError",
]
