"""
Agent host: tool schema, tool registry/executor and the Agent itself.
"""

from typing import TYPE_CHECKING

from .schema import ToolCall, ToolDefinition, ToolParameter, ToolParameterType, ToolProgress, ToolResult
from .tools import ProgressCallback, RegisteredTool, ToolExecutor, ToolHandler, ToolRegistry

if TYPE_CHECKING:  # pragma: no cover
    from .agent import Agent

__all__ = [
    "Agent",
    "ProgressCallback",
    "RegisteredTool",
    "ToolCall",
    "ToolDefinition",
    "ToolExecutor",
    "ToolHandler",
    "ToolParameter",
    "ToolParameterType",
    "ToolProgress",
    "ToolRegistry",
    "ToolResult",
]


def __getattr__(name: str):  # pragma: no cover - simple thunk
    # Agent imports the plugin layer, which imports this package's schema
    if name == "Agent":
        from .agent import Agent as _Agent

        return _Agent
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
