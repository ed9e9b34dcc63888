"""Tool registry for resolving tool ids to executable tools.

Registration is a boot-time, append-only action; there is no removal. Reads
never take the lock and are safe under concurrent access once registration
has finished.
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from toolflow.core.tool import ToolDefinition
from toolflow.utils.errors import DuplicateToolError

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry mapping tool ids to tool contracts.

    Pipeline steps and graph nodes reference tools by string id; the
    registry is the single place those ids are resolved.

    Example:
        >>> registry = ToolRegistry()
        >>> registry.register(variable_set_tool)
        >>> registry.get("variable-set").name
        'Variable Set'
    """

    def __init__(self, tools: Optional[Iterable[ToolDefinition]] = None):
        """Initialize registry.

        Args:
            tools: Optional tools to register immediately, in order
        """
        self._tools: Dict[str, ToolDefinition] = {}
        self._lock = threading.Lock()

        for tool in tools or []:
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        """Register a tool.

        Args:
            tool: Tool contract to register

        Raises:
            DuplicateToolError: If a tool with the same id is already registered
        """
        with self._lock:
            if tool.id in self._tools:
                raise DuplicateToolError(tool.id)
            # Copy-on-write so concurrent readers always see a complete dict
            tools = dict(self._tools)
            tools[tool.id] = tool
            self._tools = tools
        logger.debug("Registered tool %s (%s)", tool.id, tool.category)

    def get(self, tool_id: str) -> Optional[ToolDefinition]:
        """Get a tool by id, or None if not registered."""
        return self._tools.get(tool_id)

    def has(self, tool_id: str) -> bool:
        """Check if tool is registered."""
        return tool_id in self._tools

    def get_all(self) -> List[ToolDefinition]:
        """All registered tools in registration order."""
        return list(self._tools.values())

    def list(self) -> List[Dict[str, str]]:
        """Summaries of all tools, without executable handles."""
        return [tool.summary() for tool in self._tools.values()]

    def list_with_schemas(self) -> List[Dict[str, Any]]:
        """Summaries plus each tool's declared input/output JSON Schema."""
        return [
            {
                **tool.summary(),
                "inputSchema": tool.input_schema(),
                "outputSchema": tool.output_schema(),
            }
            for tool in self._tools.values()
        ]

    def __contains__(self, tool_id: str) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry(tools={len(self._tools)})"


def create_default_registry() -> ToolRegistry:
    """Create a registry holding the built-in tools."""
    from toolflow.tools import BUILTIN_TOOLS

    return ToolRegistry(BUILTIN_TOOLS)
