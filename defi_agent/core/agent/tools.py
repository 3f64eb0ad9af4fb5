"""
Tool Registry and Executor for LLM-driven tool calling.

Plugins contribute tools; the agent registers them here and the LLM loop
(external) dispatches ``ToolCall`` objects through the executor.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .schema import ToolCall, ToolDefinition, ToolProgress, ToolResult


ProgressCallback = Callable[[ToolProgress], None]
# handler(arguments, on_progress) -> JSON string
ToolHandler = Callable[[Dict[str, Any], Optional[ProgressCallback]], Awaitable[str]]


@dataclass
class RegisteredTool:
    """A tool registered in the registry with its definition and handler."""
    definition: ToolDefinition
    handler: ToolHandler


class ToolRegistry:
    """
    Registry of available tools that the LLM can call.

    Each tool has a definition (name, description, parameters) and a handler function.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._tools: Dict[str, RegisteredTool] = {}
        self.logger = logger or logging.getLogger(__name__)

    def register(
        self,
        name: str,
        definition: ToolDefinition,
        handler: ToolHandler,
    ) -> None:
        """Register a tool with its definition and handler."""
        if name in self._tools:
            self.logger.warning(f"Tool {name} registered twice; keeping the latest")
        self._tools[name] = RegisteredTool(definition=definition, handler=handler)

    def get_definitions(self) -> List[ToolDefinition]:
        """Get all tool definitions for passing to the LLM."""
        return [tool.definition for tool in self._tools.values()]

    def get_tool(self, name: str) -> Optional[RegisteredTool]:
        """Get a registered tool by name."""
        return self._tools.get(name)

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def names(self) -> List[str]:
        return list(self._tools.keys())


class ToolExecutor:
    """
    Executes tool calls requested by the LLM.

    Supports parallel execution of independent tool calls.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        logger: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)

    async def execute_single(
        self,
        tool_call: ToolCall,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ToolResult:
        """Execute a single tool call and return the result.

        Tools answer with a JSON string. A payload whose ``status`` is
        ``"error"`` is surfaced through ``ToolResult.error`` so the LLM sees
        it flagged as a failure, with the parsed payload kept as ``result``.
        """
        tool = self.registry.get_tool(tool_call.name)

        if not tool:
            return ToolResult(
                tool_call_id=tool_call.id,
                result=None,
                error=f"Unknown tool: {tool_call.name}",
            )

        try:
            raw = await tool.handler(tool_call.arguments, on_progress)
        except Exception as e:
            self.logger.error(f"Tool execution error for {tool_call.name}: {e}")
            return ToolResult(tool_call_id=tool_call.id, result=None, error=str(e))

        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            return ToolResult(tool_call_id=tool_call.id, result=raw)

        if isinstance(payload, dict) and payload.get("status") == "error":
            return ToolResult(
                tool_call_id=tool_call.id,
                result=payload,
                error=str(payload.get("message") or "Tool failed"),
            )
        return ToolResult(tool_call_id=tool_call.id, result=payload)

    async def execute_parallel(self, tool_calls: List[ToolCall]) -> List[ToolResult]:
        """Execute multiple tool calls in parallel."""
        if not tool_calls:
            return []

        tasks = [self.execute_single(tc) for tc in tool_calls]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        final_results = []
        for i, result in enumerate(results):
            if isinstance(result, Exception):
                final_results.append(ToolResult(
                    tool_call_id=tool_calls[i].id,
                    result=None,
                    error=str(result),
                ))
            else:
                final_results.append(result)

        return final_results
