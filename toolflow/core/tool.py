"""Tool contract shared by every registered tool.

A tool is an async transformation with a declared input and output shape.
Shapes are pydantic models: the engine validates resolved step input against
``input_model`` and the registry exposes both models as JSON Schema for
external consumers (e.g. building forms or graph ports).
"""

import os
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Protocol, Type

from pydantic import BaseModel


@dataclass
class ToolProgress:
    """Progress notification emitted during a tool or pipeline run.

    Attributes:
        message: Human-readable status line
        percent: Optional completion percentage (0-100)
    """

    message: str
    percent: Optional[int] = None


@dataclass
class ToolResult:
    """Explicit success/failure result returned by tools.

    Attributes:
        ok: Whether the operation succeeded
        value: Output value when ok
        error: Failure message when not ok
        exception: Typed error behind the failure, if any
    """

    ok: bool
    value: Any = None
    error: Optional[str] = None
    exception: Optional[Exception] = field(default=None, repr=False)


def tool_ok(value: Any) -> ToolResult:
    """Build a successful ToolResult."""
    return ToolResult(ok=True, value=value)


def tool_fail(error: str, exception: Optional[Exception] = None) -> ToolResult:
    """Build a failed ToolResult."""
    return ToolResult(ok=False, error=error, exception=exception)


class CancellationToken:
    """Cooperative cancellation flag shared between a caller and a run.

    The engine checks the token before starting each step. Tools receive it
    through ``ToolContext.cancel_token`` and are responsible for honouring it
    while they run.
    """

    def __init__(self):
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation."""
        self._cancelled = True
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"


ProgressCallback = Callable[[ToolProgress], None]


@dataclass
class ToolContext:
    """Runtime context handed to every tool invocation.

    Attributes:
        env: Environment variables visible to tools
        on_progress: Synchronous, fire-and-forget progress callback
        cancel_token: Cooperative cancellation token
    """

    env: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    on_progress: Optional[ProgressCallback] = None
    cancel_token: CancellationToken = field(default_factory=CancellationToken)


class ToolExecuteFn(Protocol):
    def __call__(self, input: Any, context: ToolContext) -> Awaitable[ToolResult]:
        ...


@dataclass(frozen=True)
class ToolDefinition:
    """A registered, named transformation.

    Attributes:
        id: Unique identifier used by pipeline steps (``toolId``)
        name: Display name
        description: One-line description
        category: Grouping label (e.g. "Utility")
        input_model: Pydantic model describing the accepted input
        output_model: Pydantic model describing the produced output
        execute: Async callable ``(input, context) -> ToolResult``; ``input``
            is an instance of ``input_model``
    """

    id: str
    name: str
    description: str
    category: str
    input_model: Type[BaseModel]
    output_model: Type[BaseModel]
    execute: ToolExecuteFn

    def input_schema(self) -> Dict[str, Any]:
        """JSON Schema of the declared input shape."""
        return self.input_model.model_json_schema()

    def output_schema(self) -> Dict[str, Any]:
        """JSON Schema of the declared output shape."""
        return self.output_model.model_json_schema()

    def summary(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
        }
