"""
Plugin base: a family of providers plus the tools that drive them.

An agent registers plugins; each plugin owns one ``ProviderRegistry`` and
shares it with its tools, so providers registered after the tools were
built are still visible to them.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, List, Optional, Type

from ..core.registry import ALL_NETWORKS, ProviderRegistry
from ..providers.base import BaseProvider
from ..tools.base import BaseTool

if TYPE_CHECKING:  # pragma: no cover
    from ..tools.base import AgentContext


logger = logging.getLogger(__name__)


@dataclass
class PluginConfig:
    """Configuration passed to ``BasePlugin.initialize``."""

    providers: List[BaseProvider] = field(default_factory=list)
    supported_networks: List[str] = field(default_factory=list)
    default_network: Optional[str] = None
    default_slippage: Optional[float] = None


class BasePlugin(ABC):
    """Base class for swap, staking, bridge and wallet plugins."""

    provider_type: ClassVar[Type[BaseProvider]] = BaseProvider

    def __init__(self):
        self.registry: ProviderRegistry[Any] = ProviderRegistry(self.provider_type)
        self.config = PluginConfig()
        self.agent: Optional["AgentContext"] = None
        self._supported_networks: List[str] = []
        self._tools: List[BaseTool] = []

    @abstractmethod
    def get_name(self) -> str:
        ...

    @abstractmethod
    def create_tools(self, config: PluginConfig) -> List[BaseTool]:
        """Build this plugin's tools around ``self.registry``."""

    def initialize(self, config: Optional[PluginConfig] = None) -> None:
        self.config = config or PluginConfig()
        for network in self.config.supported_networks:
            self._add_network(network.lower())
        self._tools = self.create_tools(self.config)
        for provider in self.config.providers:
            self.register_provider(provider)
        logger.info(
            f"Initialized plugin {self.get_name()} with {len(self.registry)} providers "
            f"and tools: {', '.join(tool.name for tool in self._tools)}"
        )

    def register(self, agent: "AgentContext") -> None:
        """Attach the plugin's tools to ``agent``."""
        self.agent = agent
        for tool in self.get_tools():
            tool.set_agent(agent)

    def get_tools(self) -> List[BaseTool]:
        if not self._tools:
            raise RuntimeError(f"Plugin {self.get_name()} has not been initialized")
        return list(self._tools)

    def register_provider(self, provider: BaseProvider) -> None:
        self.registry.register_provider(provider)
        for network in provider.get_supported_networks():
            self._add_network(network)

    def get_providers(self) -> List[BaseProvider]:
        return self.registry.get_providers_by_network(ALL_NETWORKS)

    def get_providers_for_network(self, network: str) -> List[BaseProvider]:
        return self.registry.get_providers_by_network(network)

    def get_supported_networks(self) -> List[str]:
        return list(self._supported_networks)

    def clear_expired(self) -> int:
        return sum(provider.clear_expired() for provider in self.get_providers())

    def cleanup(self) -> None:
        for provider in self.get_providers():
            provider.cleanup()

    def _add_network(self, network: str) -> None:
        if network not in self._supported_networks:
            self._supported_networks.append(network)
