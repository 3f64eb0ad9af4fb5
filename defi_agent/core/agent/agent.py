"""
Agent host.

Holds the wallet and the networks the agent may act on, wires plugins'
tools in, and dispatches tool calls coming from the LLM loop. The LLM loop
itself lives outside this package.
"""

import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from ..wallet import Wallet
from .schema import ToolCall, ToolDefinition, ToolResult
from .tools import ProgressCallback, ToolExecutor, ToolRegistry

if TYPE_CHECKING:  # pragma: no cover
    from ...plugins.base import BasePlugin
    from ...tools.base import BaseTool


class Agent:
    """
    Owns the wallet, the configured networks and every registered plugin.

    Usage:
        agent = Agent(wallet, networks=["bnb", "solana"])
        agent.register_plugin(swap_plugin)
        result_json = await agent.execute_tool("swap", {...})
    """

    def __init__(
        self,
        wallet: Wallet,
        networks: Iterable[str],
        logger: Optional[logging.Logger] = None,
    ):
        self.wallet = wallet
        self.networks: List[str] = []
        for network in networks:
            if network.lower() not in self.networks:
                self.networks.append(network.lower())
        self.logger = logger or logging.getLogger(__name__)

        self.tool_registry = ToolRegistry(logger=self.logger)
        self.tool_executor = ToolExecutor(self.tool_registry, logger=self.logger)
        self._plugins: Dict[str, "BasePlugin"] = {}
        self._tools: Dict[str, "BaseTool"] = {}

    # ------------------------------------------------------------------
    # Collaborators handed to tools
    # ------------------------------------------------------------------

    def get_wallet(self) -> Wallet:
        return self.wallet

    def get_networks(self) -> List[str]:
        return list(self.networks)

    # ------------------------------------------------------------------
    # Plugins
    # ------------------------------------------------------------------

    def register_plugin(self, plugin: "BasePlugin") -> None:
        """Attach ``plugin``'s tools to this agent and make them callable."""
        name = plugin.get_name()
        if name in self._plugins:
            self.logger.warning(f"Plugin {name} registered twice; replacing it")
        plugin.register(self)
        for tool in plugin.get_tools():
            self._tools[tool.name] = tool
            self.tool_registry.register(tool.name, tool.get_definition(), tool.execute)
        self._plugins[name] = plugin
        self.logger.info(f"Registered plugin {name}")

    def get_plugin(self, name: str) -> Optional["BasePlugin"]:
        return self._plugins.get(name)

    def get_plugins(self) -> List["BasePlugin"]:
        return list(self._plugins.values())

    def get_tool_definitions(self) -> List[ToolDefinition]:
        """Current tool definitions; network enums reflect providers registered so far."""
        return [tool.get_definition() for tool in self._tools.values()]

    # ------------------------------------------------------------------
    # Tool dispatch
    # ------------------------------------------------------------------

    async def execute_tool(
        self,
        name: str,
        arguments: Dict[str, Any],
        on_progress: Optional[ProgressCallback] = None,
    ) -> str:
        """Run one tool and return its JSON result string."""
        tool = self.tool_registry.get_tool(name)
        if tool is None:
            return json.dumps({"status": "error", "message": f"Unknown tool: {name}"})
        return await tool.handler(arguments, on_progress)

    async def execute_tool_calls(self, tool_calls: List[ToolCall]) -> List[ToolResult]:
        return await self.tool_executor.execute_parallel(tool_calls)

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    def clear_expired(self) -> int:
        removed = sum(plugin.clear_expired() for plugin in self._plugins.values())
        if removed:
            self.logger.debug(f"Cleared {removed} expired cache entries")
        return removed

    def cleanup(self) -> None:
        for plugin in self._plugins.values():
            plugin.cleanup()
