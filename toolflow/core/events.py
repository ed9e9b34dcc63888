"""Event system for streaming pipeline execution updates."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Event types emitted while a pipeline runs.

    Prefixed with ``data-`` so they can be forwarded unchanged over the same
    streams UI clients already consume.
    """

    EXECUTION_START = "data-execution-start"
    EXECUTION_COMPLETE = "data-execution-complete"
    EXECUTION_ERROR = "data-execution-error"

    STEP_START = "data-step-start"
    STEP_COMPLETE = "data-step-complete"
    STEP_BYPASSED = "data-step-bypassed"
    STEP_ERROR = "data-step-error"

    PROGRESS = "data-progress"


@dataclass
class ExecutionEvent:
    """A single execution event.

    Attributes:
        type: Event type
        step_index: Index of the step the event concerns, if any
        tool_id: Tool of that step, if any
        output: Step output, or the PipelineResult on completion
        error: Error message on failure events
        message: Progress message
        percent: Progress percentage
        duration_ms: Step duration on completion events
        timestamp: When the event was created
        metadata: Additional data (e.g. trace_id)
    """

    type: EventType
    step_index: Optional[int] = None
    tool_id: Optional[str] = None
    output: Optional[Any] = None
    error: Optional[str] = None
    message: Optional[str] = None
    percent: Optional[int] = None
    duration_ms: Optional[int] = None
    timestamp: datetime = field(default_factory=datetime.now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to a JSON-friendly dict, wrapping payload in 'data'."""
        event_type = self.type.value if isinstance(self.type, EventType) else self.type
        payload: Dict[str, Any] = {"timestamp": self.timestamp.isoformat()}

        if self.step_index is not None:
            payload["stepIndex"] = self.step_index
        if self.tool_id is not None:
            payload["toolId"] = self.tool_id
        if self.output is not None:
            output = self.output
            if hasattr(output, "model_dump"):
                output = output.model_dump(by_alias=True)
            payload["output"] = output
        if self.error is not None:
            payload["errorText"] = self.error
        if self.message is not None:
            payload["message"] = self.message
        if self.percent is not None:
            payload["percent"] = self.percent
        if self.duration_ms is not None:
            payload["durationMs"] = self.duration_ms
        if self.metadata:
            payload["metadata"] = self.metadata

        return {"type": event_type, "data": payload}


class EventEmitter:
    """Synchronous, fire-and-forget event fan-out.

    Listener failures are logged and never affect the run that emitted the
    event.
    """

    def __init__(self):
        self._listeners: List[Callable[[ExecutionEvent], None]] = []

    def on(self, listener: Callable[[ExecutionEvent], None]) -> None:
        """Register an event listener."""
        self._listeners.append(listener)

    def off(self, listener: Callable[[ExecutionEvent], None]) -> None:
        """Remove an event listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event: ExecutionEvent) -> None:
        """Emit an event to all listeners."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.warning("Event listener %r failed", listener, exc_info=True)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
