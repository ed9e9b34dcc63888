"""Per-run execution state.

This module provides the transient context accumulated while a pipeline runs.
"""

from typing import Any, Dict, List
from dataclasses import dataclass, field
import copy
import uuid


@dataclass
class ExecutionContext:
    """State accumulated by one in-flight pipeline run.

    A context is owned by exactly one run and must never be shared between
    runs. Expressions are resolved against it at every step boundary.

    Attributes:
        step_outputs: Outputs of completed steps (index = step index)
        variables: Named values written by the variable-setter tool
        trace_id: Unique identifier for this run
    """

    step_outputs: List[Any] = field(default_factory=list)
    variables: Dict[str, Any] = field(default_factory=dict)
    trace_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def add_step_output(self, output: Any) -> int:
        """Record the output of the step that just completed.

        Returns:
            Index assigned to the output
        """
        self.step_outputs.append(output)
        return len(self.step_outputs) - 1

    def get_step_output(self, index: int) -> Any:
        """Get a completed step's output.

        Raises:
            IndexError: If the step has not produced an output
        """
        if index < 0:
            raise IndexError(index)
        return self.step_outputs[index]

    def has_step_output(self, index: int) -> bool:
        return 0 <= index < len(self.step_outputs)

    def set_variable(self, name: str, value: Any) -> None:
        """Set a named variable, last write wins.

        The value is deep-copied so later mutation of the source output does
        not change what subsequent steps observe.
        """
        self.variables[name] = copy.deepcopy(value)

    def get_variable(self, name: str, default: Any = None) -> Any:
        return self.variables.get(name, default)
