"""Built-in tools."""

from toolflow.tools.http_request import tool as http_request_tool
from toolflow.tools.save_file import tool as save_file_tool
from toolflow.tools.variable_set import tool as variable_set_tool

BUILTIN_TOOLS = [
    variable_set_tool,
    save_file_tool,
    http_request_tool,
]

__all__ = [
    "BUILTIN_TOOLS",
    "variable_set_tool",
    "save_file_tool",
    "http_request_tool",
]
