"""Custom error classes for Toolflow."""

from typing import Any, Dict, List, Optional


class ToolflowError(Exception):
    """Base exception for all Toolflow errors."""

    pass


class DuplicateToolError(ToolflowError):
    """Raised when a tool id is registered twice."""

    def __init__(self, tool_id: str):
        self.tool_id = tool_id
        super().__init__(f'Tool "{tool_id}" is already registered')


class GraphValidationError(ToolflowError):
    """Raised when graph validation fails."""

    pass


class CycleDetectedError(GraphValidationError):
    """Raised when a cycle is detected in the graph.

    Attributes:
        node_ids: Nodes that could not be ordered (members of, or downstream of, a cycle)
    """

    def __init__(self, node_ids: Optional[list] = None):
        self.node_ids = list(node_ids or [])
        message = "Cycle detected in graph"
        if self.node_ids:
            message += f": {', '.join(self.node_ids)}"
        super().__init__(message)


class PipelineExecutionError(ToolflowError):
    """Raised when a pipeline run aborts.

    Every execution error is attributed to the 0-based index of the failing
    step and the tool id involved.
    """

    def __init__(self, step_index: int, tool_id: str, message: str):
        self.step_index = step_index
        self.tool_id = tool_id
        self.reason = message
        super().__init__(f"Step {step_index} ({tool_id}): {message}")


class ToolNotFoundError(PipelineExecutionError):
    """Raised when a step references a tool that is not registered."""

    def __init__(self, step_index: int, tool_id: str):
        super().__init__(step_index, tool_id, f'tool "{tool_id}" not found')


class StepInputInvalidError(PipelineExecutionError):
    """Raised when a step's resolved input fails validation.

    Attributes:
        details: Human-readable summary of the failure
        errors: Structured validation errors, when available
    """

    def __init__(
        self,
        step_index: int,
        tool_id: str,
        details: str,
        errors: Optional[List[Dict[str, Any]]] = None,
    ):
        self.details = details
        self.errors = errors or []
        super().__init__(step_index, tool_id, f"invalid input: {details}")


class StepExecutionFailedError(PipelineExecutionError):
    """Raised when a tool reports failure or raises during execution."""

    def __init__(
        self,
        step_index: int,
        tool_id: str,
        message: str,
        original_error: Optional[Exception] = None,
    ):
        self.original_error = original_error
        super().__init__(step_index, tool_id, message)


class PipelineCancelledError(PipelineExecutionError):
    """Raised when a run is cancelled before a step starts."""

    def __init__(self, step_index: int, tool_id: str):
        super().__init__(step_index, tool_id, "pipeline cancelled")


class PipelineStoreError(ToolflowError):
    """Base class for saved-pipeline store errors."""

    pass


class PipelineNotFoundError(PipelineStoreError):
    """Raised when a saved pipeline does not exist."""

    def __init__(self, pipeline_id: str):
        self.pipeline_id = pipeline_id
        super().__init__(f"Pipeline not found: {pipeline_id}")


class PipelineValidationError(PipelineStoreError):
    """Raised when a pipeline fails validation before being saved."""

    pass
