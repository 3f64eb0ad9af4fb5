from typing import List

from ..providers.bridge import BaseBridgeProvider
from ..tools.base import BaseTool
from ..tools.bridge import BridgeTool
from .base import BasePlugin, PluginConfig


class BridgePlugin(BasePlugin):
    """Cross-network transfers."""

    provider_type = BaseBridgeProvider

    def get_name(self) -> str:
        return "bridge"

    def create_tools(self, config: PluginConfig) -> List[BaseTool]:
        return [BridgeTool(self.registry)]
