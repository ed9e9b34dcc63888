"""Pytest configuration and fixtures for Toolflow tests."""

from typing import Any, Dict, List

import pytest
from pydantic import BaseModel, ConfigDict

from toolflow import (
    MemoryPipelineStore,
    PipelineExecutor,
    SQLitePipelineStore,
    ToolDefinition,
    ToolRegistry,
    tool_fail,
    tool_ok,
)
from toolflow.tools import variable_set_tool


class AnyInput(BaseModel):
    model_config = ConfigDict(extra="allow")


class AnyOutput(BaseModel):
    model_config = ConfigDict(extra="allow")


class TextInput(BaseModel):
    text: str


class TextOutput(BaseModel):
    text: str
    length: int


class CountOutput(BaseModel):
    count: int


class MutateInput(BaseModel):
    target: Dict[str, Any]


def make_tool(tool_id, execute, input_model=AnyInput, output_model=AnyOutput, name=None):
    return ToolDefinition(
        id=tool_id,
        name=name or tool_id.title(),
        description=f"Test tool {tool_id}",
        category="Testing",
        input_model=input_model,
        output_model=output_model,
        execute=execute,
    )


@pytest.fixture
def calls() -> List[str]:
    """Tool ids in the order they were invoked."""
    return []


@pytest.fixture
def registry(calls):
    """Registry with the variable setter plus deterministic test tools."""

    async def echo(input, context):
        calls.append("echo")
        return tool_ok(input.model_dump())

    async def text(input, context):
        calls.append("text")
        return tool_ok(TextOutput(text=input.text, length=len(input.text)))

    async def fail(input, context):
        calls.append("fail")
        return tool_fail("boom")

    async def explode(input, context):
        calls.append("explode")
        raise RuntimeError("kaboom")

    async def count(input, context):
        calls.append("count")
        return tool_ok({"count": len(calls)})

    async def mutate(input, context):
        calls.append("mutate")
        input.target["mutated"] = True
        return tool_ok({"target": input.target})

    return ToolRegistry(
        [
            variable_set_tool,
            make_tool("echo", echo),
            make_tool("text", text, TextInput, TextOutput, name="Text Length"),
            make_tool("fail", fail),
            make_tool("explode", explode),
            make_tool("count", count, output_model=CountOutput),
            make_tool("mutate", mutate, MutateInput),
        ]
    )


@pytest.fixture
def executor(registry):
    """Create an executor over the test registry."""
    return PipelineExecutor(registry)


@pytest.fixture
def memory_store():
    """Create an in-memory pipeline store for testing."""
    return MemoryPipelineStore()


@pytest.fixture
def sqlite_store(tmp_path):
    """Create a temporary SQLite pipeline store."""
    return SQLitePipelineStore(str(tmp_path / "pipelines.db"))
