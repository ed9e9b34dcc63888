"""Sequential pipeline executor with streaming events.

This module implements the engine that runs a serialized pipeline: for each
step it resolves ``${{ ... }}`` references against the outputs accumulated so
far, validates the result against the tool's declared input shape, invokes
the tool, and records output, timing and named variables.

Execution is strictly sequential. Any step may reference any earlier step by
absolute index, so the linearized pipeline is effectively a straight line;
step i+1 never starts before step i has completed.
"""

import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

from toolflow.core.events import EventEmitter, EventType, ExecutionEvent
from toolflow.core.pipeline import PipelineDefinition, PipelineResult, PipelineStep, StepResult
from toolflow.core.state import ExecutionContext
from toolflow.core.tool import ToolContext, ToolDefinition, ToolProgress, ToolResult, tool_fail, tool_ok
from toolflow.utils.errors import (
    PipelineCancelledError,
    PipelineExecutionError,
    StepExecutionFailedError,
    StepInputInvalidError,
    ToolNotFoundError,
)
from toolflow.utils.expressions import ABSENT, ExpressionResolver
from toolflow.utils.registry import ToolRegistry

logger = logging.getLogger(__name__)

VARIABLE_SET_TOOL_ID = "variable-set"


def progress_percent(index: int, total: int) -> int:
    """``round(100 * index / total)`` with halves rounded up."""
    if total <= 0:
        return 100
    return (200 * index + total) // (2 * total)


def format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors(include_url=False):
        location = ".".join(str(part) for part in item.get("loc", ())) or "input"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


def _elapsed_ms(started: float) -> int:
    return max(0, int(round((time.perf_counter() - started) * 1000)))


class PipelineExecutor:
    """Runs pipeline definitions against a tool registry.

    Each run owns a fresh ExecutionContext; two runs never share one. The
    executor is fail-fast: the first failing step aborts the run and no
    partial result is returned.

    Example:
        >>> executor = PipelineExecutor(create_default_registry())
        >>> result = await executor.run({"steps": [...]})
        >>> result.steps[0].output
    """

    def __init__(
        self,
        registry: ToolRegistry,
        event_emitter: Optional[EventEmitter] = None,
        variable_tool_id: str = VARIABLE_SET_TOOL_ID,
    ):
        """Initialize executor.

        Args:
            registry: Registry used to resolve step tool ids
            event_emitter: Optional emitter notified of every event
            variable_tool_id: Tool whose ``{name, value}`` output sets a variable
        """
        self.registry = registry
        self.events = event_emitter or EventEmitter()
        self.variable_tool_id = variable_tool_id

    async def execute(
        self,
        definition: Union[PipelineDefinition, Dict[str, Any]],
        tool_context: Optional[ToolContext] = None,
        context: Optional[ExecutionContext] = None,
    ) -> AsyncIterator[ExecutionEvent]:
        """Execute a pipeline with streaming events.

        Per step:
            1. Look up the tool in the registry
            2. Resolve expressions in ``input`` and overlay legacy mappings
            3. Report progress
            4. Validate the input against the tool's input shape
            5. Invoke the tool (or pass input through when bypassed)
            6. Record output, duration and variables

        Args:
            definition: Pipeline definition or its wire-format dict
            tool_context: Context handed to tools (env, progress, cancellation)
            context: Optional fresh ExecutionContext for this run

        Yields:
            ExecutionEvent: Streaming execution events; the final
            EXECUTION_COMPLETE event carries the PipelineResult as ``output``

        Raises:
            PipelineExecutionError: On the first failing step
            ValueError: If ``context`` already holds step outputs
        """
        if not isinstance(definition, PipelineDefinition):
            definition = PipelineDefinition.model_validate(definition)

        context = context if context is not None else ExecutionContext()
        if context.step_outputs:
            raise ValueError("ExecutionContext belongs to another run; pass a fresh context")

        tool_context = tool_context or ToolContext()
        resolver = ExpressionResolver(context)
        total = len(definition.steps)
        step_results: List[StepResult] = []
        run_started = time.perf_counter()

        logger.info("Pipeline run %s started (%d steps)", context.trace_id, total)
        yield self._emit(
            ExecutionEvent(
                type=EventType.EXECUTION_START,
                metadata={"trace_id": context.trace_id, "steps": total},
            )
        )

        for index, step in enumerate(definition.steps):
            try:
                if tool_context.cancel_token.cancelled:
                    raise PipelineCancelledError(index, step.tool_id)

                tool = self.registry.get(step.tool_id)
                if tool is None:
                    raise ToolNotFoundError(index, step.tool_id)

                step_input = self._build_input(index, step, resolver)

                yield self._emit(
                    ExecutionEvent(type=EventType.STEP_START, step_index=index, tool_id=step.tool_id)
                )
                message = f"Step {index + 1}/{total}: {tool.name}"
                percent = progress_percent(index, total)
                self._report_progress(tool_context, message, percent)
                yield self._emit(
                    ExecutionEvent(
                        type=EventType.PROGRESS,
                        step_index=index,
                        tool_id=step.tool_id,
                        message=message,
                        percent=percent,
                    )
                )

                step_started = time.perf_counter()
                if step.bypass:
                    output = step_input
                else:
                    validated = self._validate_input(index, tool, step_input)
                    output = await self._invoke(index, tool, validated, tool_context)
                duration_ms = _elapsed_ms(step_started)

            except PipelineExecutionError as e:
                logger.warning("Pipeline run %s aborted: %s", context.trace_id, e)
                yield self._emit(
                    ExecutionEvent(
                        type=EventType.STEP_ERROR,
                        step_index=e.step_index,
                        tool_id=e.tool_id,
                        error=str(e),
                    )
                )
                yield self._emit(
                    ExecutionEvent(
                        type=EventType.EXECUTION_ERROR,
                        step_index=e.step_index,
                        tool_id=e.tool_id,
                        error=str(e),
                        metadata={"trace_id": context.trace_id},
                    )
                )
                raise

            context.add_step_output(output)
            step_result = StepResult(
                tool_id=step.tool_id,
                output=output,
                duration_ms=duration_ms,
                bypassed=step.bypass,
            )
            step_results.append(step_result)

            if step.tool_id == self.variable_tool_id and not step.bypass:
                context.set_variable(output["name"], output.get("value"))

            logger.debug("Step %d (%s) finished in %dms", index, step.tool_id, duration_ms)
            yield self._emit(
                ExecutionEvent(
                    type=EventType.STEP_BYPASSED if step.bypass else EventType.STEP_COMPLETE,
                    step_index=index,
                    tool_id=step.tool_id,
                    output=output,
                    duration_ms=duration_ms,
                )
            )

        self._report_progress(tool_context, "Pipeline complete", 100)
        yield self._emit(
            ExecutionEvent(type=EventType.PROGRESS, message="Pipeline complete", percent=100)
        )

        result = PipelineResult(steps=step_results, total_duration_ms=_elapsed_ms(run_started))
        logger.info(
            "Pipeline run %s completed in %dms", context.trace_id, result.total_duration_ms
        )
        yield self._emit(
            ExecutionEvent(
                type=EventType.EXECUTION_COMPLETE,
                output=result,
                duration_ms=result.total_duration_ms,
                metadata={"trace_id": context.trace_id},
            )
        )

    async def run(
        self,
        definition: Union[PipelineDefinition, Dict[str, Any]],
        tool_context: Optional[ToolContext] = None,
        context: Optional[ExecutionContext] = None,
    ) -> PipelineResult:
        """Execute a pipeline and return its result.

        Raises:
            PipelineExecutionError: On the first failing step
        """
        result: Optional[PipelineResult] = None
        async for event in self.execute(definition, tool_context, context):
            if event.type == EventType.EXECUTION_COMPLETE:
                result = event.output
        return result

    def _build_input(
        self, index: int, step: PipelineStep, resolver: ExpressionResolver
    ) -> Dict[str, Any]:
        """Resolve expressions in ``input``, then overlay legacy mappings."""
        step_input = resolver.resolve(step.input or {})

        for key, mapping in (step.input_mapping or {}).items():
            if not resolver.context.has_step_output(mapping.from_step):
                raise StepInputInvalidError(
                    index,
                    step.tool_id,
                    f"input mapping '{key}' references step {mapping.from_step} which has no output",
                )
            value = resolver.resolve_mapping(mapping.from_step, mapping.field)
            if value is ABSENT:
                step_input.pop(key, None)
            else:
                step_input[key] = value

        return step_input

    def _validate_input(self, index: int, tool: ToolDefinition, step_input: Dict[str, Any]) -> BaseModel:
        try:
            return tool.input_model.model_validate(step_input)
        except ValidationError as e:
            raise StepInputInvalidError(
                index,
                tool.id,
                format_validation_error(e),
                errors=e.errors(include_url=False),
            ) from e

    async def _invoke(
        self,
        index: int,
        tool: ToolDefinition,
        validated: BaseModel,
        tool_context: ToolContext,
    ) -> Any:
        try:
            result = await tool.execute(validated, tool_context)
        except PipelineExecutionError:
            raise
        except Exception as e:
            raise StepExecutionFailedError(index, tool.id, str(e) or type(e).__name__, e) from e

        if not isinstance(result, ToolResult):
            raise StepExecutionFailedError(
                index, tool.id, f"tool returned {type(result).__name__}, expected ToolResult"
            )
        if not result.ok:
            raise StepExecutionFailedError(
                index, tool.id, result.error or "tool reported failure", result.exception
            )

        output = result.value
        if isinstance(output, BaseModel):
            output = output.model_dump(by_alias=True)
        return output

    def _report_progress(self, tool_context: ToolContext, message: str, percent: int) -> None:
        if tool_context.on_progress is None:
            return
        try:
            tool_context.on_progress(ToolProgress(message=message, percent=percent))
        except Exception:
            logger.warning("Progress callback failed for %r", message, exc_info=True)

    def _emit(self, event: ExecutionEvent) -> ExecutionEvent:
        self.events.emit(event)
        return event


async def execute_pipeline(
    definition: Union[PipelineDefinition, Dict[str, Any]],
    registry: Optional[ToolRegistry] = None,
    tool_context: Optional[ToolContext] = None,
) -> ToolResult:
    """Run a pipeline behind a result-returning boundary.

    No exception escapes: failures come back as ``tool_fail`` with the
    formatted message in ``error`` and the typed error in ``exception``.

    Args:
        definition: Pipeline definition or its wire-format dict
        registry: Tool registry; defaults to the built-in tools
        tool_context: Context handed to tools

    Returns:
        ToolResult whose ``value`` is the PipelineResult on success
    """
    if registry is None:
        from toolflow.utils.registry import create_default_registry

        registry = create_default_registry()

    try:
        if not isinstance(definition, PipelineDefinition):
            definition = PipelineDefinition.model_validate(definition)
    except ValidationError as e:
        return tool_fail(f"Invalid pipeline definition: {format_validation_error(e)}", e)

    try:
        result = await PipelineExecutor(registry).run(definition, tool_context)
    except PipelineExecutionError as e:
        return tool_fail(str(e), e)

    return tool_ok(result)
