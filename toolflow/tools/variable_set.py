"""Variable Set tool: the designated writer of pipeline variables."""

from typing import Any

from pydantic import BaseModel, Field

from toolflow.core.tool import ToolContext, ToolDefinition, ToolResult, tool_ok


class VariableSetInput(BaseModel):
    name: str = Field(description="Variable name")
    value: Any = Field(
        default=None,
        description="Variable value (can be an expression like ${{ steps.0.output.field }})"
    )


class VariableSetOutput(BaseModel):
    name: str
    value: Any = None


async def execute(input: VariableSetInput, context: ToolContext) -> ToolResult:
    return tool_ok(VariableSetOutput(name=input.name, value=input.value))


tool = ToolDefinition(
    id="variable-set",
    name="Variable Set",
    description="Set a named variable for use in subsequent pipeline steps",
    category="Utility",
    input_model=VariableSetInput,
    output_model=VariableSetOutput,
    execute=execute,
)
